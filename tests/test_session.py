"""
Live session state machine.
"""

import time

import pytest

from factories import (
    FakeClock,
    InMemoryWorkoutStore,
    counter_ids,
    make_exercise,
    make_planned,
    make_session,
    make_set,
    make_workout,
)

from fortyfive.core.errors import PersistenceError, SessionStateError
from fortyfive.core.session import (
    ActiveSessionController,
    RestTicker,
    SessionPhase,
    session_progress,
)

PRESS = make_exercise("press", "Chest", True)
ROW = make_exercise("row", "Back", True)
PLANK = make_exercise("plank", "Abs", equipment=())


def _workout():
    return make_workout(
        make_planned(PRESS, sets=2, reps=10, weight=20.0, rest_time=90),
        make_planned(ROW, sets=2, reps=10, weight=20.0, rest_time=90),
        make_planned(PLANK, sets=1, reps=20, weight=0.0, rest_time=45),
    )


class _Recorder:
    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    def record_session(self, session, workout_name):
        self.calls.append((session.id, workout_name))
        if self.fail:
            raise RuntimeError("service down")


@pytest.fixture
def store():
    return InMemoryWorkoutStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(store, clock):
    return ActiveSessionController(store, clock=clock, id_factory=counter_ids("x"))


def _started(controller):
    controller.start(_workout(), "user-1", 1)
    return controller


class TestStart:
    def test_persists_empty_session(self, controller, store):
        session = controller.start(_workout(), "user-1", 3)
        assert controller.phase == SessionPhase.IN_PROGRESS
        assert store.save_calls == 1
        stored = store.sessions[session.id]
        assert stored.sets == []
        assert stored.week_number == 3
        assert stored.workout_id == "w-1"
        assert stored.completed is False

    def test_only_one_active_session(self, controller):
        _started(controller)
        with pytest.raises(SessionStateError):
            controller.start(_workout(), "user-1", 1)

    def test_failed_start_stays_idle(self, controller, store):
        store.fail_saves = True
        with pytest.raises(PersistenceError):
            controller.start(_workout(), "user-1", 1)
        assert controller.phase == SessionPhase.NOT_STARTED
        assert controller.session is None

    def test_empty_workout_is_immediately_complete(self, controller):
        controller.start(make_workout(), "user-1", 1)
        assert controller.phase == SessionPhase.IN_PROGRESS
        assert controller.is_complete
        with pytest.raises(SessionStateError):
            controller.complete_set(10, 20.0, 8)
        assert controller.finish().completed is True


class TestSets:
    def test_intermediate_set_starts_rest(self, controller):
        _started(controller)
        recorded = controller.complete_set(10, 20.0, 7)

        assert recorded.set_number == 1
        assert recorded.exercise_id == "press"
        assert recorded.target_weight == 20.0
        assert controller.phase == SessionPhase.RESTING
        assert controller.rest_remaining == 90
        assert controller.set_number == 2
        assert controller.exercise_index == 0

    def test_last_set_moves_on_without_rest(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 7)
        controller.complete_set(9, 20.0, 8)

        assert controller.phase == SessionPhase.IN_PROGRESS
        assert controller.rest_remaining == 0
        assert controller.exercise_index == 1
        assert controller.set_number == 1
        assert controller.current_exercise.id == "row"

    def test_set_during_rest_ends_rest(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 7)
        assert controller.is_resting
        controller.complete_set(10, 20.0, 7)
        assert controller.phase == SessionPhase.IN_PROGRESS

    def test_aggregates_and_persistence(self, controller, store):
        _started(controller)
        controller.complete_set(10, 20.0, 6)
        controller.complete_set(8, 22.5, 8)

        # 10 x 20 + 8 x 22.5 = 380
        assert controller.total_volume == pytest.approx(380.0)
        assert controller.average_rpe == pytest.approx(7.0)
        stored = store.sessions[controller.session.id]
        assert len(stored.sets) == 2
        assert stored.total_volume_kg == pytest.approx(380.0)
        assert store.save_calls == 3

    def test_invalid_rpe_records_nothing(self, controller):
        _started(controller)
        with pytest.raises(ValueError):
            controller.complete_set(10, 20.0, 11)
        with pytest.raises(ValueError):
            controller.complete_set(-1, 20.0, 8)
        assert controller.session.sets == []
        assert controller.set_number == 1

    def test_persistence_failure_keeps_set(self, controller, store):
        _started(controller)
        store.fail_saves = True
        with pytest.raises(PersistenceError):
            controller.complete_set(10, 20.0, 8)
        assert len(controller.session.sets) == 1
        assert controller.set_number == 2

    def test_not_started(self, controller):
        with pytest.raises(SessionStateError):
            controller.complete_set(10, 20.0, 8)

    def test_current_exercise_sets(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        assert [s.set_number for s in controller.current_exercise_sets] == [1]


class TestRest:
    def test_tick_counts_down_to_in_progress(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        assert controller.tick(30) == 60
        assert controller.tick(60) == 0
        assert controller.phase == SessionPhase.IN_PROGRESS

    def test_pause_freezes_countdown(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        controller.pause()
        assert controller.tick(10) == 90
        controller.resume_from_pause()
        assert controller.tick(10) == 80

    def test_negative_add_ends_rest(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        controller.add_rest_time(-999)
        assert controller.phase == SessionPhase.IN_PROGRESS
        assert controller.rest_remaining == 0

    def test_add_rest_time(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        assert controller.add_rest_time(30) == 120

    def test_add_rest_ignored_when_not_resting(self, controller):
        _started(controller)
        assert controller.add_rest_time(30) == 0
        assert controller.phase == SessionPhase.IN_PROGRESS

    def test_end_rest(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        controller.end_rest()
        assert not controller.is_resting

    def test_rest_ticker_thread(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        with RestTicker(controller, interval=0.01, step=30):
            deadline = time.monotonic() + 2.0
            while controller.is_resting and time.monotonic() < deadline:
                time.sleep(0.01)
        assert controller.phase == SessionPhase.IN_PROGRESS


class TestNavigation:
    def test_skip_exercise(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        controller.skip_exercise()
        assert controller.exercise_index == 1
        assert controller.set_number == 1
        assert not controller.is_resting

    def test_skip_past_end(self, controller):
        _started(controller)
        for _ in range(3):
            controller.skip_exercise()
        assert controller.is_complete
        with pytest.raises(SessionStateError):
            controller.skip_exercise()

    def test_replace_exercise_keeps_prescription(self, controller):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        incline = make_exercise("incline", "Chest", True)
        controller.replace_exercise(incline)

        assert controller.current_exercise.id == "incline"
        assert controller.current_planned_exercise.weight == 20.0
        assert controller.set_number == 1

    def test_previous_and_next_bounds(self, controller):
        _started(controller)
        controller.go_to_previous_exercise()
        assert controller.exercise_index == 0
        controller.go_to_next_exercise()
        controller.go_to_next_exercise()
        controller.go_to_next_exercise()
        assert controller.exercise_index == 2
        controller.go_to_previous_exercise()
        assert controller.exercise_index == 1


class TestFinish:
    def test_finish_seals_and_notifies(self, store, clock):
        marked = []
        sink = _Recorder()
        controller = ActiveSessionController(
            store,
            on_completed=lambda session, workout: marked.append((session.id, workout.id)),
            sinks=[sink],
            clock=clock,
            id_factory=counter_ids("x"),
        )
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        clock.advance(minutes=42)
        sealed = controller.finish(notes="good")

        assert sealed.completed is True
        assert sealed.duration_minutes == 42
        assert sealed.notes == "good"
        assert sealed.total_volume_kg == pytest.approx(200.0)
        assert store.sessions[sealed.id].completed is True
        assert marked == [(sealed.id, "w-1")]
        assert sink.calls == [(sealed.id, "Workout A")]
        assert controller.phase == SessionPhase.FINISHED
        assert controller.last_session == sealed

    def test_double_finish_is_noop(self, controller, store):
        _started(controller)
        first = controller.finish()
        saves = store.save_calls
        assert controller.finish() is first
        assert store.save_calls == saves

    def test_finish_before_start(self, controller):
        with pytest.raises(SessionStateError):
            controller.finish()

    def test_sink_and_callback_failures_are_swallowed(self, store, clock):
        def broken_callback(session, workout):
            raise RuntimeError("boom")

        healthy = _Recorder()
        controller = ActiveSessionController(
            store,
            on_completed=broken_callback,
            sinks=[_Recorder(fail=True), healthy],
            clock=clock,
        )
        _started(controller)
        sealed = controller.finish()
        assert sealed.completed is True
        assert len(healthy.calls) == 1

    def test_failed_finish_can_be_retried(self, controller, store):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        store.fail_saves = True
        with pytest.raises(PersistenceError):
            controller.finish()
        assert controller.is_active
        store.fail_saves = False
        assert controller.finish().completed is True

    def test_new_session_after_finish(self, controller):
        _started(controller)
        controller.finish()
        controller.start(_workout(), "user-1", 1)
        assert controller.phase == SessionPhase.IN_PROGRESS
        assert controller.session.sets == []


class TestCancel:
    def test_cancel_keeps_stored_partial(self, controller, store):
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        session_id = controller.session.id
        controller.cancel()

        assert controller.phase == SessionPhase.CANCELLED
        assert controller.session is None
        assert len(store.sessions[session_id].sets) == 1

    def test_cancel_when_idle(self, controller):
        controller.cancel()
        assert controller.phase == SessionPhase.NOT_STARTED


class TestResumeAndObservers:
    def test_resume_at_first_unfinished_exercise(self, controller):
        partial = make_session(
            "old",
            [
                make_set("press", 8, set_number=1, session_id="old"),
                make_set("press", 8, set_number=2, session_id="old"),
                make_set("row", 8, set_number=1, session_id="old"),
            ],
            completed=False,
        )
        controller.resume(partial, _workout())
        assert controller.exercise_index == 1
        assert controller.set_number == 2
        assert controller.total_volume == pytest.approx(600.0)

    def test_resume_sealed_session(self, controller):
        with pytest.raises(SessionStateError):
            controller.resume(make_session("done"), _workout())

    def test_listeners(self, controller):
        seen = []

        def broken(snapshot):
            raise RuntimeError("listener bug")

        controller.subscribe(broken)
        unsubscribe = controller.subscribe(seen.append)
        _started(controller)
        controller.complete_set(10, 20.0, 8)
        unsubscribe()
        controller.end_rest()

        assert [s.phase for s in seen] == [SessionPhase.IN_PROGRESS, SessionPhase.RESTING]
        assert seen[-1].sets_recorded == 1
        assert seen[-1].rest_remaining == 90

    def test_progress(self):
        # exercise 0 of 2, set 1 of 3: (0 + (1/4) / 2) x 100
        assert session_progress(0, 1, 3, 2) == pytest.approx(12.5)
        assert session_progress(0, 1, 3, 0) == 0.0
        assert session_progress(5, 1, 0, 2) == 100.0
