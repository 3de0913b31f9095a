import pytest

from loadgen.config import MAX_POOL_SIZE, Config, ConfigError, check_min_max


def test_defaults_from_empty_environment():
    config = Config.from_env({})
    assert config.rate == 2
    assert config.ipv4_percent == 100
    assert config.status_ok_percent == 80
    assert (config.path_min, config.path_max) == (1, 5)
    assert [p for _, p in config.method_weights] == [60, 30, 0, 0, 0]
    assert (config.min_rows, config.max_rows) == (5, 100)
    assert config.table_num == 10
    assert config.burst_multiplier == 10
    assert config.burst_duration == 30
    assert config.cycle_duration == 60
    assert config.db_port == 5001
    assert config.seed is None


def test_reads_environment_keys():
    config = Config.from_env({
        "RATE": "0.5",
        "TABLE_NUM": "3",
        "DB_HOST": "greptime.local",
        "DATABASE": "public",
        "DB_USERNAME": "loader",
        "SEED": "7",
    })
    assert config.rate == 0.5
    assert config.table_num == 3
    assert config.db_host == "greptime.local"
    assert config.db_name == "public"
    assert config.db_user == "loader"
    assert config.seed == 7


def test_check_min_max_swaps_reversed_bounds():
    assert check_min_max(5, 1) == (1, 5)


def test_check_min_max_raises_zero_to_one():
    assert check_min_max(0, 3) == (1, 3)
    assert check_min_max(-4, 0) == (1, 1)


def test_path_and_row_bounds_are_normalized():
    config = Config.from_env({"PATH_MIN": "5", "PATH_MAX": "1", "MIN_ROW": "50", "MAX_ROW": "10"})
    assert (config.path_min, config.path_max) == (1, 5)
    assert (config.min_rows, config.max_rows) == (10, 50)


def test_get_plus_post_of_100_is_rejected():
    with pytest.raises(ConfigError, match="more than 100%"):
        Config.from_env({"GET_PERCENT": "70", "POST_PERCENT": "30"})


@pytest.mark.parametrize("env", [
    {"RATE": "0"},
    {"RATE": "-1"},
    {"TABLE_NUM": "0"},
    {"CYCLE_DURATION": "0"},
    {"BURST_MULTIPLIER": "0"},
    {"IPV4_PERCENT": "101"},
    {"MAX_ROW": "lots"},
    {"GET_PERCENT": "50", "POST_PERCENT": "40", "PUT_PERCENT": "50"},
    {"GET_PERCENT": "50", "POST_PERCENT": "40", "PATCH_PERCENT": "5", "DELETE_PERCENT": "5"},
    {"TABLE_NUM": "33"},
])
def test_invalid_values_are_rejected(env):
    with pytest.raises(ConfigError):
        Config.from_env(env)


def test_table_names_and_seeds():
    config = Config(table_prefix="nginx_logs_", seed=10)
    assert config.table_name(3) == "nginx_logs_3"
    assert config.table_seed(0) == 11
    assert Config().table_seed(0) is None


def test_method_percentages_below_100_are_accepted():
    config = Config.from_env({"GET_PERCENT": "40", "POST_PERCENT": "30", "PUT_PERCENT": "10",
                              "PATCH_PERCENT": "10", "DELETE_PERCENT": "9"})
    assert sum(p for _, p in config.method_weights) == 99


def test_table_num_up_to_pool_size_is_accepted():
    assert Config.from_env({"TABLE_NUM": str(MAX_POOL_SIZE)}).table_num == MAX_POOL_SIZE


def test_burst_as_long_as_cycle_warns(caplog):
    Config.from_env({"BURST_DURATION": "60", "CYCLE_DURATION": "60"})
    assert "tables may stay in burst mode" in caplog.text


def test_default_burst_and_cycle_do_not_warn(caplog):
    Config.from_env({})
    assert "burst mode" not in caplog.text
