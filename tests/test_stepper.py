import pytest

from algorithms import AlgorithmFamily, AlgorithmRole
from engine.errors import PlaybackError
from engine.parser import parse
from engine.stepper import Stepper, StepperState
from tests.conftest import bubble_sort_steps, envelope


@pytest.fixture
def result():
    return parse(AlgorithmFamily.ARRAY, AlgorithmRole.SORT, envelope(bubble_sort_steps([3, 1, 2])))


@pytest.fixture
def loaded(result):
    stepper = Stepper()
    stepper.load(result, stepper.begin_request())
    return stepper


def test_starts_empty_and_current_raises():
    stepper = Stepper()
    assert stepper.state is StepperState.EMPTY
    with pytest.raises(PlaybackError):
        stepper.current()


def test_navigation_is_a_no_op_without_a_run():
    stepper = Stepper()
    stepper.seek(3)
    stepper.step(1)
    stepper.jump_to_end()
    assert stepper.state is StepperState.EMPTY
    assert stepper.current_idx == -1


def test_begin_request_moves_to_loading(loaded):
    loaded.begin_request()
    assert loaded.state is StepperState.LOADING
    assert loaded.result is None
    with pytest.raises(PlaybackError):
        loaded.current()


def test_load_installs_step_zero(loaded, result):
    assert loaded.state is StepperState.READY
    assert loaded.current_idx == 0
    assert loaded.current() is result.steps[0]


def test_seek_clamps_both_ends(loaded):
    n = loaded.total
    loaded.seek(-1)
    assert loaded.current_idx == 0
    loaded.seek(n)
    assert loaded.current_idx == n - 1
    loaded.seek(10 ** 6)
    assert loaded.current_idx == n - 1


def test_seek_is_idempotent(loaded):
    loaded.seek(2)
    first = loaded.snapshot()
    loaded.seek(2)
    assert loaded.snapshot() == first


def test_step_rewind_and_jump_to_end(loaded):
    loaded.step(2)
    assert loaded.current_idx == 2
    loaded.step(-1)
    assert loaded.current_idx == 1
    loaded.jump_to_end()
    assert loaded.snapshot().at_end
    loaded.rewind()
    assert loaded.snapshot().at_start


def test_stale_token_is_ignored(result):
    stepper = Stepper()
    old = stepper.begin_request()
    new = stepper.begin_request()
    assert stepper.load(result, old) is False
    assert stepper.state is StepperState.LOADING
    assert stepper.load(result, new) is True
    assert stepper.state is StepperState.READY


def test_fail_only_clears_for_latest_token(result):
    stepper = Stepper()
    old = stepper.begin_request()
    new = stepper.begin_request()
    assert stepper.fail(old) is False
    assert stepper.state is StepperState.LOADING
    assert stepper.fail(new) is True
    assert stepper.state is StepperState.EMPTY


def test_reset_invalidates_outstanding_token(result):
    stepper = Stepper()
    token = stepper.begin_request()
    stepper.reset()
    assert stepper.load(result, token) is False
    assert stepper.state is StepperState.EMPTY


def test_on_step_fires_on_change_and_on_clear(result):
    seen = []
    stepper = Stepper(on_step=seen.append)
    stepper.load(result, stepper.begin_request())
    stepper.seek(0)
    stepper.step(1)
    stepper.reset()
    assert seen == [result.steps[0], result.steps[1], None]


def test_snapshot_carries_run_description(loaded, result):
    snap = loaded.snapshot()
    assert snap.total == len(result)
    assert snap.description == result.description
    assert snap.index == 0
