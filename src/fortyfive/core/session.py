"""
Live workout session controller.

Walks a PlannedWorkout exercise by exercise and set by set:

    NOT_STARTED -> IN_PROGRESS <-> RESTING -> ... -> FINISHED
                                            \\-> CANCELLED

Completing an intermediate set starts a rest countdown; completing the last
set of an exercise moves straight to the next exercise without rest.
Pausing freezes the rest countdown and nothing else.

All public methods run under one re-entrant lock, so the RestTicker thread
and user actions are applied strictly one after another.  In-memory state
always reflects a transition before the store is written; a failed write
is reported to the caller but the recorded set stays in memory.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from .errors import PersistenceError, SessionStateError
from .metrics import session_average_rpe, session_total_volume
from .models import Exercise, PlannedExercise, PlannedWorkout, WorkoutSession, WorkoutSet
from .protocols import SessionSink, WorkoutStore

log = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    RESTING = "resting"
    FINISHED = "finished"
    CANCELLED = "cancelled"


_ACTIVE_PHASES = (SessionPhase.IN_PROGRESS, SessionPhase.RESTING)


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the controller state, passed to subscribers."""

    phase: SessionPhase
    exercise_index: int
    set_number: int
    total_exercises: int
    rest_remaining: int
    paused: bool
    is_complete: bool
    sets_recorded: int
    progress: float


Listener = Callable[[SessionSnapshot], None]
CompletionCallback = Callable[[WorkoutSession, PlannedWorkout], None]


def session_progress(exercise_index: int, set_number: int, planned_sets: int, total_exercises: int) -> float:
    """
    Percent through the workout.

    progress = (index / total + (set / (sets + 1)) / total) x 100,
    clamped to 0-100.
    """
    if total_exercises == 0:
        return 0.0
    exercise_part = exercise_index / total_exercises
    set_part = set_number / (planned_sets + 1)
    return max(0.0, min(100.0, (exercise_part + set_part / total_exercises) * 100))


class ActiveSessionController:
    """
    State machine for one live session at a time.

    Args:
        store: Workout store; every session write goes here
        on_completed: Called with the sealed session and its planned workout
            after a successful finish (e.g. to mark the workout completed)
        sinks: Best-effort receivers of the finished session
        clock: Source of timestamps
        id_factory: Source of session and set ids
    """

    def __init__(
        self,
        store: WorkoutStore,
        *,
        on_completed: CompletionCallback | None = None,
        sinks: Sequence[SessionSink] = (),
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._store = store
        self._on_completed = on_completed
        self._sinks = list(sinks)
        self._clock = clock
        self._new_id = id_factory
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self.last_session: WorkoutSession | None = None
        self._reset(SessionPhase.NOT_STARTED)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reset(self, phase: SessionPhase) -> None:
        self._phase = phase
        self._session: WorkoutSession | None = None
        self._workout: PlannedWorkout | None = None
        self._index = 0
        self._set_number = 1
        self._rest_remaining = 0
        self._paused = False

    def _require_active(self, action: str) -> None:
        if self._phase not in _ACTIVE_PHASES:
            raise SessionStateError(f"Cannot {action}: no active session ({self._phase.value})")

    def _end_rest(self) -> None:
        self._rest_remaining = 0
        if self._phase == SessionPhase.RESTING:
            self._phase = SessionPhase.IN_PROGRESS

    def _persist(self, session: WorkoutSession) -> None:
        try:
            self._store.save_workout_session(replace(session, sets=list(session.sets)))
        except PersistenceError:
            log.error("Failed to save session %s", session.id, exc_info=True)
            raise
        except OSError as e:
            log.error("Failed to save session %s", session.id, exc_info=True)
            raise PersistenceError(f"Could not save session {session.id}: {e}") from e

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                log.warning("Session listener failed", exc_info=True)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state listener; returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                phase=self._phase,
                exercise_index=self._index,
                set_number=self._set_number,
                total_exercises=self.total_exercises,
                rest_remaining=self._rest_remaining,
                paused=self._paused,
                is_complete=self.is_complete,
                sets_recorded=len(self._session.sets) if self._session else 0,
                progress=self.progress,
            )

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def is_active(self) -> bool:
        return self._phase in _ACTIVE_PHASES

    @property
    def is_resting(self) -> bool:
        return self._phase == SessionPhase.RESTING

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def rest_remaining(self) -> int:
        return self._rest_remaining

    @property
    def exercise_index(self) -> int:
        return self._index

    @property
    def set_number(self) -> int:
        return self._set_number

    @property
    def session(self) -> WorkoutSession | None:
        """Copy of the in-memory session record."""
        with self._lock:
            if self._session is None:
                return None
            return replace(self._session, sets=list(self._session.sets))

    @property
    def planned_workout(self) -> PlannedWorkout | None:
        return self._workout

    @property
    def total_exercises(self) -> int:
        return len(self._workout.exercises) if self._workout else 0

    @property
    def is_complete(self) -> bool:
        """True once every exercise has been done or skipped."""
        return self._workout is not None and self._index >= len(self._workout.exercises)

    @property
    def current_planned_exercise(self) -> PlannedExercise | None:
        if self._workout is None or self._index >= len(self._workout.exercises):
            return None
        return self._workout.exercises[self._index]

    @property
    def current_exercise(self) -> Exercise | None:
        planned = self.current_planned_exercise
        return planned.exercise if planned else None

    @property
    def current_exercise_sets(self) -> list[WorkoutSet]:
        exercise = self.current_exercise
        if exercise is None or self._session is None:
            return []
        return [s for s in self._session.sets if s.exercise_id == exercise.id]

    @property
    def progress(self) -> float:
        planned = self.current_planned_exercise
        return session_progress(
            self._index, self._set_number, planned.sets if planned else 0, self.total_exercises
        )

    @property
    def total_volume(self) -> float:
        return session_total_volume(self._session.sets) if self._session else 0.0

    @property
    def average_rpe(self) -> float | None:
        return session_average_rpe(self._session.sets) if self._session else None

    @property
    def duration(self) -> timedelta | None:
        if self._session is None:
            return None
        return self._clock() - self._session.start_time

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, planned_workout: PlannedWorkout, user_id: str, week_number: int) -> WorkoutSession:
        """
        Start a session for the planned workout and save the empty record.

        Raises:
            SessionStateError: If a session is already active
            PersistenceError: If the empty record cannot be saved; the
                controller then stays idle
        """
        with self._lock:
            if self.is_active:
                raise SessionStateError("A session is already in progress")

            session = WorkoutSession(
                id=self._new_id(),
                user_id=user_id,
                workout_type=planned_workout.workout_type,
                week_number=week_number,
                start_time=self._clock(),
                workout_id=planned_workout.id,
            )
            self._persist(session)

            self._reset(SessionPhase.IN_PROGRESS)
            self._session = session
            self._workout = planned_workout.copy()
            log.debug(
                "Started session %s for %s (%d exercises)",
                session.id,
                planned_workout.name,
                len(planned_workout.exercises),
            )
            self._notify()
            return self.session  # type: ignore[return-value]

    def resume(self, session: WorkoutSession, planned_workout: PlannedWorkout) -> None:
        """
        Continue a partially recorded session, e.g. after a crash.

        The position is the first exercise with fewer recorded sets than
        prescribed.

        Raises:
            SessionStateError: If a session is already active or the record
                is already sealed
        """
        with self._lock:
            if self.is_active:
                raise SessionStateError("A session is already in progress")
            if session.completed:
                raise SessionStateError(f"Session {session.id} is already completed")

            self._reset(SessionPhase.IN_PROGRESS)
            self._session = replace(session, sets=list(session.sets))
            self._workout = planned_workout.copy()

            counts = {ex_id: len(sets) for ex_id, sets in session.sets_by_exercise().items()}
            self._index = len(self._workout.exercises)
            for i, planned in enumerate(self._workout.exercises):
                done = counts.get(planned.exercise.id, 0)
                if done < planned.sets:
                    self._index = i
                    self._set_number = done + 1
                    break
            log.debug("Resumed session %s at exercise %d", session.id, self._index)
            self._notify()

    def complete_set(
        self,
        actual_reps: int,
        actual_weight: float,
        rpe: int,
        notes: str | None = None,
    ) -> WorkoutSet:
        """
        Record the current set and advance.

        A set completed during rest ends the rest first.  After the last
        set of an exercise the controller moves to the next exercise at set
        1 without resting; otherwise it rests for the prescribed time.

        Returns:
            The recorded set

        Raises:
            SessionStateError: If no session is active or every exercise is done
            ValueError: If reps, weight or RPE are out of range
            PersistenceError: If the save fails; the set is still recorded
                in memory
        """
        with self._lock:
            self._require_active("complete a set")
            planned = self.current_planned_exercise
            if planned is None or self._session is None:
                raise SessionStateError("All exercises are done; finish the session")

            workout_set = WorkoutSet(
                id=self._new_id(),
                session_id=self._session.id,
                exercise_id=planned.exercise.id,
                exercise_name=planned.exercise.name,
                set_number=self._set_number,
                target_reps=planned.reps,
                actual_reps=actual_reps,
                target_weight=planned.weight,
                actual_weight=actual_weight,
                rpe=rpe,
                rest_time_sec=planned.rest_time,
                timestamp=self._clock(),
                notes=notes,
            )

            sets = [*self._session.sets, workout_set]
            self._session = replace(
                self._session,
                sets=sets,
                total_volume_kg=session_total_volume(sets),
                rpe_average=session_average_rpe(sets),
            )

            self._end_rest()
            if self._set_number >= planned.sets:
                self._index += 1
                self._set_number = 1
            else:
                self._set_number += 1
                if planned.rest_time > 0:
                    self._phase = SessionPhase.RESTING
                    self._rest_remaining = planned.rest_time

            log.debug(
                "Set %d of %s recorded: %d x %.1f kg @ RPE %d",
                workout_set.set_number,
                workout_set.exercise_id,
                actual_reps,
                actual_weight,
                rpe,
            )
            self._notify()
            self._persist(self._session)
            return workout_set

    def skip_exercise(self) -> None:
        """Move to the next exercise regardless of completed sets."""
        with self._lock:
            self._require_active("skip an exercise")
            if self.is_complete:
                raise SessionStateError("No exercise left to skip")
            self._index += 1
            self._set_number = 1
            self._end_rest()
            self._notify()

    def replace_exercise(self, new_exercise: Exercise) -> None:
        """Swap the current exercise, keeping its prescription, back to set 1."""
        with self._lock:
            self._require_active("replace an exercise")
            if self._workout is None or self.current_planned_exercise is None:
                raise SessionStateError("No current exercise to replace")
            self._workout = self._workout.with_exercise_replaced(self._index, new_exercise)
            self._set_number = 1
            self._notify()

    def go_to_previous_exercise(self) -> None:
        with self._lock:
            self._require_active("navigate")
            if self._index > 0:
                self._index -= 1
                self._set_number = 1
                self._end_rest()
                self._notify()

    def go_to_next_exercise(self) -> None:
        with self._lock:
            self._require_active("navigate")
            if self._index < self.total_exercises - 1:
                self._index += 1
                self._set_number = 1
                self._end_rest()
                self._notify()

    # ------------------------------------------------------------------
    # Rest timer
    # ------------------------------------------------------------------

    def tick(self, seconds: int = 1) -> int:
        """
        Advance the rest countdown unless paused.

        Returns:
            Remaining rest seconds (0 when not resting)
        """
        with self._lock:
            if self._phase != SessionPhase.RESTING or self._paused:
                return self._rest_remaining
            self._rest_remaining -= seconds
            if self._rest_remaining <= 0:
                self._end_rest()
            self._notify()
            return self._rest_remaining

    def add_rest_time(self, delta: int) -> int:
        """
        Lengthen (or with a negative delta, shorten) the current rest.

        A result at or below zero ends the rest.  Ignored when not resting.
        """
        with self._lock:
            if self._phase != SessionPhase.RESTING:
                return self._rest_remaining
            self._rest_remaining += delta
            if self._rest_remaining <= 0:
                self._end_rest()
            self._notify()
            return self._rest_remaining

    def end_rest(self) -> None:
        with self._lock:
            if self._phase == SessionPhase.RESTING:
                self._end_rest()
                self._notify()

    def pause(self) -> None:
        """Freeze the rest countdown."""
        with self._lock:
            self._require_active("pause")
            self._paused = True
            self._notify()

    def resume_from_pause(self) -> None:
        with self._lock:
            self._require_active("resume")
            self._paused = False
            self._notify()

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def finish(self, notes: str | None = None) -> WorkoutSession:
        """
        Seal the session, save it and notify downstream consumers.

        Finishing an already finished session returns the same sealed
        record and changes nothing.  Failures of the completion callback or
        of any sink are logged and swallowed.

        Returns:
            The sealed session

        Raises:
            SessionStateError: If no session was started
            PersistenceError: If the sealed record cannot be saved; the
                session stays active so finish can be retried
        """
        with self._lock:
            if self._phase == SessionPhase.FINISHED and self.last_session is not None:
                return self.last_session
            self._require_active("finish")
            if self._session is None or self._workout is None:
                raise SessionStateError("Cannot finish: no session record")

            sets = list(self._session.sets)
            sealed = replace(
                self._session,
                sets=sets,
                end_time=self._clock(),
                total_volume_kg=session_total_volume(sets),
                rpe_average=session_average_rpe(sets),
                notes=notes if notes is not None else self._session.notes,
                completed=True,
            )
            self._persist(sealed)
            workout = self._workout

            if self._on_completed is not None:
                try:
                    self._on_completed(sealed, workout)
                except Exception:
                    log.warning("Could not mark workout %s completed", workout.id, exc_info=True)

            for sink in self._sinks:
                try:
                    sink.record_session(sealed, workout.name)
                except Exception:
                    log.warning("Session sink %r failed", sink, exc_info=True)

            self._reset(SessionPhase.FINISHED)
            self.last_session = sealed
            log.debug(
                "Finished session %s: %d sets, %.1f kg",
                sealed.id,
                len(sets),
                sealed.total_volume_kg,
            )
            self._notify()
            return sealed

    def cancel(self) -> None:
        """Drop the in-memory session; the partial stored record is kept."""
        with self._lock:
            if not self.is_active:
                return
            log.debug("Cancelled session %s", self._session.id if self._session else "?")
            self._reset(SessionPhase.CANCELLED)
            self._notify()


class RestTicker:
    """
    Background thread that ticks a controller's rest countdown.

    Usage:
        with RestTicker(controller):
            ...  # interactive loop
    """

    def __init__(self, controller: ActiveSessionController, interval: float = 1.0, step: int = 1):
        self.controller = controller
        self.interval = interval
        self.step = step
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="rest-ticker", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.controller.tick(self.step)

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval * 2)
            self._thread = None

    def __enter__(self) -> "RestTicker":
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()
