import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional, Tuple


logger = logging.getLogger(__name__)

# mysql-connector-python refuses pools larger than this; every driver needs a connection
MAX_POOL_SIZE = 32


class ConfigError(ValueError):
    pass


def check_min_max(min_value: int, max_value: int) -> Tuple[int, int]:
    """Clamp both bounds to at least 1 and swap them if they are reversed."""
    if min_value < 1:
        min_value = 1
    if max_value < 1:
        max_value = 1
    if min_value > max_value:
        min_value, max_value = max_value, min_value
    return min_value, max_value


def _get_int(env, key, default):
    raw = env.get(key, default)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {raw!r}")


def _get_float(env, key, default):
    raw = env.get(key, default)
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Config:
    # Traffic
    rate: float = 2.0
    table_num: int = 10
    table_prefix: str = "nginx_logs_"
    min_rows: int = 5
    max_rows: int = 100
    burst_multiplier: float = 10.0
    burst_duration: int = 30
    cycle_duration: int = 60

    # Field weights
    ipv4_percent: int = 100
    status_ok_percent: int = 80
    path_min: int = 1
    path_max: int = 5
    get_percent: int = 60
    post_percent: int = 30
    put_percent: int = 0
    patch_percent: int = 0
    delete_percent: int = 0

    seed: Optional[int] = None
    log_level: str = "INFO"

    # GreptimeDB (MySQL protocol)
    db_host: str = ""
    db_name: str = ""
    db_port: int = 5001
    db_user: str = ""
    db_password: str = ""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        env = os.environ if environ is None else environ
        config = cls(
            rate=_get_float(env, "RATE", "2"),
            table_num=_get_int(env, "TABLE_NUM", "10"),
            table_prefix=env.get("TABLE_PREFIX", "nginx_logs_"),
            min_rows=_get_int(env, "MIN_ROW", "5"),
            max_rows=_get_int(env, "MAX_ROW", "100"),
            burst_multiplier=_get_float(env, "BURST_MULTIPLIER", "10"),
            burst_duration=_get_int(env, "BURST_DURATION", "30"),
            cycle_duration=_get_int(env, "CYCLE_DURATION", "60"),
            ipv4_percent=_get_int(env, "IPV4_PERCENT", "100"),
            status_ok_percent=_get_int(env, "STATUS_OK_PERCENT", "80"),
            path_min=_get_int(env, "PATH_MIN", "1"),
            path_max=_get_int(env, "PATH_MAX", "5"),
            get_percent=_get_int(env, "GET_PERCENT", "60"),
            post_percent=_get_int(env, "POST_PERCENT", "30"),
            put_percent=_get_int(env, "PUT_PERCENT", "0"),
            patch_percent=_get_int(env, "PATCH_PERCENT", "0"),
            delete_percent=_get_int(env, "DELETE_PERCENT", "0"),
            seed=_get_int(env, "SEED", None) if env.get("SEED") else None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            db_host=env.get("DB_HOST", ""),
            db_name=env.get("DATABASE", ""),
            db_port=_get_int(env, "DB_PORT", "5001"),
            db_user=env.get("DB_USERNAME", ""),
            db_password=env.get("DB_PASSWORD", ""),
        )
        return config.normalized().validated()

    def normalized(self) -> "Config":
        path_min, path_max = check_min_max(self.path_min, self.path_max)
        min_rows, max_rows = check_min_max(self.min_rows, self.max_rows)
        return replace(self, path_min=path_min, path_max=path_max,
                       min_rows=min_rows, max_rows=max_rows)

    def validated(self) -> "Config":
        if self.rate <= 0:
            raise ConfigError(f"RATE must be positive, got {self.rate}")
        if self.table_num < 1:
            raise ConfigError(f"TABLE_NUM must be at least 1, got {self.table_num}")
        if self.table_num > MAX_POOL_SIZE:
            raise ConfigError(f"TABLE_NUM must be at most {MAX_POOL_SIZE}, got {self.table_num}")
        if self.burst_multiplier <= 0:
            raise ConfigError(f"BURST_MULTIPLIER must be positive, got {self.burst_multiplier}")
        if self.burst_duration < 0:
            raise ConfigError(f"BURST_DURATION must not be negative, got {self.burst_duration}")
        if self.cycle_duration < 1:
            raise ConfigError(f"CYCLE_DURATION must be at least 1, got {self.cycle_duration}")
        if self.burst_duration >= self.cycle_duration:
            logger.warning(
                "BURST_DURATION (%ds) is not shorter than CYCLE_DURATION (%ds); tables may stay in burst mode",
                self.burst_duration, self.cycle_duration,
            )

        percents = {
            "IPV4_PERCENT": self.ipv4_percent,
            "STATUS_OK_PERCENT": self.status_ok_percent,
            "GET_PERCENT": self.get_percent,
            "POST_PERCENT": self.post_percent,
            "PUT_PERCENT": self.put_percent,
            "PATCH_PERCENT": self.patch_percent,
            "DELETE_PERCENT": self.delete_percent,
        }
        for key, value in percents.items():
            if not 0 <= value <= 100:
                raise ConfigError(f"{key} must be between 0 and 100, got {value}")

        # PUT/PATCH/DELETE would be unreachable
        if self.get_percent + self.post_percent >= 100:
            raise ConfigError("HTTP method percentages add up to more than 100%")
        if sum(percent for _, percent in self.method_weights) >= 100:
            raise ConfigError("HTTP method percentages add up to 100% or more, leaving nothing for other methods")
        return self

    @property
    def method_weights(self) -> Tuple[Tuple[str, int], ...]:
        return (
            ("GET", self.get_percent),
            ("POST", self.post_percent),
            ("PUT", self.put_percent),
            ("PATCH", self.patch_percent),
            ("DELETE", self.delete_percent),
        )

    def table_name(self, index: int) -> str:
        return f"{self.table_prefix}{index}"

    def table_seed(self, index: int) -> Optional[int]:
        if self.seed is None:
            return None
        return self.seed + index + 1
