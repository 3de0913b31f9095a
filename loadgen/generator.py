from dataclasses import dataclass
from datetime import datetime, timezone

from faker import Faker

HTTP_VERSION = "HTTP/1.1"
REFERRER = "-"

# Duplicates bias the draw toward "-" and "/"
PATH_SEPARATORS = ("-", "-", "_", "%20", "/", "/", "/")
PATH_EXTENSIONS = (".html", ".php", ".htm", ".jpg", ".png", ".gif", ".svg", ".css", ".js")

BUZZWORDS = (
    "24 hour", "4th generation", "actuating", "adaptive", "analyzing", "asymmetric",
    "asynchronous", "attitude-oriented", "background", "bandwidth-monitored",
    "bi-directional", "bifurcated", "bottom-line", "clear-thinking", "client-driven",
    "client-server", "coherent", "cohesive", "composite", "content-based",
    "context-sensitive", "contextually-based", "dedicated", "demand-driven",
    "didactic", "directional", "discrete", "disintermediate", "dynamic",
    "eco-centric", "empowering", "encompassing", "even-keeled", "executive",
    "explicit", "exuding", "fault-tolerant", "foreground", "fresh-thinking",
    "full-range", "global", "grid-enabled", "heuristic", "high-level", "holistic",
    "homogeneous", "human-resource", "hybrid", "impactful", "incremental",
    "intangible", "interactive", "intermediate", "leading edge", "local",
    "logistical", "maximized", "methodical", "mission-critical", "mobile",
    "modular", "motivating", "multimedia", "multi-state", "multi-tasking",
    "national", "needs-based", "neutral", "next generation", "non-volatile",
    "object-oriented", "optimal", "optimizing", "radical", "real-time",
    "reciprocal", "regional", "responsive", "scalable", "secondary",
    "solution-oriented", "stable", "static", "system-worthy", "systematic",
    "systemic", "tangible", "tertiary", "transitional", "uniform", "upward-trending",
    "user-facing", "value-added", "web-enabled", "well-modulated", "zero administration",
    "zero defect", "zero tolerance",
)

# 200 is deliberately absent: the fallback branch never reports success
STATUS_CODE_POOL = (301, 302, 304, 400, 401, 403, 404, 405, 408, 409, 429, 500, 502, 503, 504)


def weighted_ip_version(fake: Faker, ipv4_percent: int) -> str:
    roll = fake.random_int(0, 100)
    if roll <= ipv4_percent:
        return fake.ipv4()
    return fake.ipv6()


def weighted_http_method(fake: Faker, weights) -> str:
    """Pick a method using cumulative thresholds over a 0..100 roll.

    ``weights`` is an ordered sequence of (method, percent) pairs. A roll that
    lands past the last threshold falls back to any standard method.
    """
    roll = fake.random_int(0, 100)
    threshold = 0
    for method, percent in weights:
        if percent <= 0:
            continue
        threshold += percent
        if roll <= threshold:
            return method
    return fake.http_method()


def random_path(fake: Faker, min_length: int, max_length: int) -> str:
    length = fake.random_int(min_length, max_length)

    parts = ["/"]
    for i in range(length):
        if i > 0:
            parts.append(fake.random_element(PATH_SEPARATORS))
        parts.append(fake.random_element(BUZZWORDS))
    parts.append(fake.random_element(PATH_EXTENSIONS))

    return "".join(parts).replace(" ", "%20")


def weighted_status_code(fake: Faker, ok_percent: int) -> int:
    roll = fake.random_int(0, 100)
    if roll <= ok_percent:
        return 200
    return fake.random_element(STATUS_CODE_POOL)


def realistic_bytes_sent(fake: Faker, status_code: int) -> int:
    if status_code != 200:
        return fake.random_int(30, 120)
    return fake.random_int(800, 3100)


@dataclass
class LogRow:
    ip: str
    http_method: str
    path: str
    http_version: str
    status_code: int
    body_bytes_sent: int
    referrer: str
    user_agent: str
    time_local: datetime

    def values(self):
        return (
            self.ip, self.http_method, self.path, self.http_version,
            self.status_code, self.body_bytes_sent, self.referrer,
            self.user_agent, self.time_local,
        )


class Generator:
    def __init__(self, config, fake: Faker):
        self.config = config
        self.fake = fake
        self.method_weights = config.method_weights

    def generate_row(self) -> LogRow:
        status_code = weighted_status_code(self.fake, self.config.status_ok_percent)
        return LogRow(
            ip=weighted_ip_version(self.fake, self.config.ipv4_percent),
            http_method=weighted_http_method(self.fake, self.method_weights),
            path=random_path(self.fake, self.config.path_min, self.config.path_max),
            http_version=HTTP_VERSION,
            status_code=status_code,
            body_bytes_sent=realistic_bytes_sent(self.fake, status_code),
            referrer=REFERRER,
            user_agent=self.fake.user_agent(),
            time_local=datetime.now(timezone.utc),
        )

    def generate_batch(self, count):
        return [self.generate_row() for _ in range(count)]

    def row_count(self, max_rows: int) -> int:
        return self.fake.random_int(self.config.min_rows, max_rows)


def make_faker(seed=None) -> Faker:
    """Faker with its own random stream, safe to hand to a single thread."""
    fake = Faker()
    fake.seed_instance(seed)
    return fake
