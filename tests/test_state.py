import threading
import time

import pytest

import state as state_module
from state import LotIndexError, MoneyManagementState, resize

REFERENCE_LOTS = [1, 1, 2, 3, 4, 5, 8, 11, 19, 27, 40, 40, 39, 40, 41, 42, 43, 44, 45, 46]


def test_resize_extends_with_last_element():
    extended = resize(REFERENCE_LOTS, 25)

    assert len(extended) == 25
    assert extended[:20] == REFERENCE_LOTS
    assert extended[20:] == [46] * 5


def test_resize_truncates_tail():
    assert resize(REFERENCE_LOTS, 10) == [1, 1, 2, 3, 4, 5, 8, 11, 19, 27]


def test_resize_is_idempotent():
    once = resize(REFERENCE_LOTS, 25)

    assert resize(once, 25) == once
    assert resize(resize(REFERENCE_LOTS, 7), 7) == resize(REFERENCE_LOTS, 7)


def test_resize_empty_fills_with_one():
    assert resize([], 3) == [1, 1, 1]
    assert resize([], 0) == []


def test_resize_copies_trailing_zero():
    assert resize([2, 0], 4) == [2, 0, 0, 0]


def test_resize_does_not_mutate_input():
    lots = [1, 2]
    resize(lots, 5)

    assert lots == [1, 2]


@pytest.mark.parametrize("n", [-1, 2.5, "3", True])
def test_resize_rejects_invalid_step_count(n):
    with pytest.raises(ValueError):
        resize([1], n)


def test_default_state(state):
    assert state.params.stop_per_lot == 9
    assert state.params.profit_per_lot == 21
    assert state.params.cost_per_lot == 75
    assert state.params.num_steps == 20
    assert state.lots == REFERENCE_LOTS
    assert len(state.result.records) == 20


def test_set_num_steps_grows_and_shrinks(state):
    state.set_num_steps(25)
    assert state.lots[20:] == [46] * 5
    assert len(state.result.records) == 25

    state.set_num_steps(10)
    assert state.lots == REFERENCE_LOTS[:10]
    assert state.params.num_steps == 10
    assert len(state.result.records) == 10


def test_set_num_steps_same_value_is_noop(state):
    before = state.result

    state.set_num_steps(20)

    assert state.result is before


def test_set_num_steps_to_zero(state):
    state.set_num_steps(0)

    assert state.lots == []
    assert state.result.records == []
    assert state.result.summary.max_net is None


def test_set_param_recomputes(state):
    before = state.result

    state.set_param("stop_per_lot", 10)

    assert state.params.stop_per_lot == 10
    assert state.result is not before
    assert state.result.records[0].stop_money == 10


def test_set_param_routes_num_steps(state):
    state.set_param("num_steps", 3)

    assert state.params.num_steps == 3
    assert state.lots == [1, 1, 2]


def test_set_param_unknown_name(state):
    with pytest.raises(KeyError):
        state.set_param("leverage", 100)


def test_set_lot_keeps_length(state):
    state.set_lot(2, 7)

    assert state.lots[2] == 7
    assert len(state.lots) == 20
    assert state.result.records[2].lots == 7


@pytest.mark.parametrize("index", [-1, 20, 100])
def test_set_lot_out_of_range_leaves_state_untouched(state, index):
    before_lots = state.lots
    before_result = state.result

    with pytest.raises(LotIndexError):
        state.set_lot(index, 5)

    assert state.lots == before_lots
    assert state.result is before_result


def test_lots_property_is_a_copy(state):
    state.lots.append(99)

    assert len(state.lots) == 20


def test_replace_lots_sets_step_count(state):
    state.replace_lots([3, 2, 1])

    assert state.params.num_steps == 3
    assert [r.lots for r in state.result.records] == [3, 2, 1]


def test_reset_restores_defaults(state, settings):
    state.set_param("profit_per_lot", 0)
    state.set_num_steps(4)

    state.reset(settings)

    assert state.params.profit_per_lot == 21
    assert state.lots == REFERENCE_LOTS


def test_explicit_num_steps_resizes_initial_lots():
    state = MoneyManagementState(9, 21, 75, lots=[1, 2], num_steps=4)

    assert state.lots == [1, 2, 2, 2]


def test_set_param_accepts_whole_float_step_count(state):
    state.set_param("num_steps", 5.0)

    assert state.params.num_steps == 5
    assert state.lots == REFERENCE_LOTS[:5]


def test_set_num_steps_rejects_fractional_float(state):
    with pytest.raises(ValueError):
        state.set_num_steps(5.5)

    assert state.params.num_steps == 20


def test_lot_edit_during_recompute_is_not_lost(state, monkeypatch):
    started = threading.Event()
    real_compute = state_module.compute

    def slow_compute(lots, params):
        started.set()
        time.sleep(0.2)
        return real_compute(lots, params)

    monkeypatch.setattr(state_module, "compute", slow_compute)

    reader = threading.Thread(target=lambda: state.result)
    reader.start()
    assert started.wait(timeout=5)
    state.set_lot(0, 5)
    reader.join()

    assert state.lots[0] == 5
    assert state.result.records[0].lots == 5


def test_snapshot_matches_result(state):
    state.set_num_steps(3)

    params, lots, result = state.snapshot()

    assert params.num_steps == len(lots) == len(result.records) == 3
    assert [r.lots for r in result.records] == lots
