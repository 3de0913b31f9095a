import pytest

from loadgen.config import Config
from loadgen.shaper import BURST, STEADY, Shape, TableState

START = 1_700_000_000.0


def make_state(**overrides):
    fields = dict(
        name="nginx_logs_0",
        steady_rate=2.0,
        burst_multiplier=10.0,
        burst_duration=30,
        cycle_duration=60,
        started_at=START,
    )
    fields.update(overrides)
    return TableState(**fields)


def test_burst_at_the_start_of_the_cycle():
    state = make_state()
    assert state.phase(START + 10) == BURST
    assert state.phase(START + 45) == STEADY


def test_phase_repeats_every_cycle():
    state = make_state()
    assert state.phase(START + 60 * 7 + 10) == BURST
    assert state.phase(START + 60 * 7 + 45) == STEADY
    # Window boundary is exclusive
    assert state.phase(START + 29.9) == BURST
    assert state.phase(START + 30) == STEADY


def test_burst_shape_scales_rate_and_rows():
    state = make_state(burst_multiplier=2.5)
    shape = state.shape(max_rows=100, now=START + 10)
    assert shape.phase == BURST
    assert shape.bursting
    assert shape.rate == 2.0 * 2.5
    assert shape.max_rows == 250


def test_burst_rate_is_exact_product():
    state = make_state()
    assert state.shape(max_rows=100, now=START + 10).rate == state.steady_rate * state.burst_multiplier


def test_steady_shape_uses_base_values():
    state = make_state()
    shape = state.shape(max_rows=100, now=START + 45)
    assert shape == Shape(STEADY, 2.0, 100)
    assert not shape.bursting
    assert shape.interval == 0.5


def test_burst_rows_floor_and_never_below_min():
    state = make_state(burst_multiplier=0.55)
    assert state.shape(max_rows=10, min_rows=1, now=START).max_rows == 5
    assert state.shape(max_rows=10, min_rows=8, now=START).max_rows == 8


def test_zero_burst_duration_never_bursts():
    state = make_state(burst_duration=0)
    assert all(state.phase(START + s) == STEADY for s in range(0, 120))


def test_non_positive_rate_fails_fast():
    with pytest.raises(ValueError):
        Shape(STEADY, 0.0, 10).interval


def test_create_draws_within_half_to_full(fake):
    config = Config(rate=3, burst_multiplier=10, burst_duration=30, cycle_duration=60)
    for i in range(50):
        state = TableState.create(i, config, fake, now=START)
        assert state.name == f"nginx_logs_{i}"
        assert state.steady_rate == 3
        assert 5 <= state.burst_multiplier <= 10
        assert 15 <= state.burst_duration <= 30
        assert 30 <= state.cycle_duration <= 60
        assert state.started_at == START


def test_create_never_yields_an_empty_cycle(fake):
    config = Config(burst_duration=0, cycle_duration=1)
    assert all(TableState.create(i, config, fake).cycle_duration >= 1 for i in range(20))
