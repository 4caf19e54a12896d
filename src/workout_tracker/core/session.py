"""
Workout session lifecycle.

SessionController owns the single active workout draft:

    IDLE --start()--> ACTIVE --complete()--> COMPLETING --> IDLE
                        |                        |
                        +--discard()--> IDLE     +--(failure)--> ACTIVE

Mutations are synchronous and persist the whole draft before returning,
so a crash loses at most the call in flight. Calls must come from a
single event-loop thread; the controller takes no locks of its own.
"""

import asyncio
import copy
from collections.abc import Callable, Coroutine, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import structlog

from ..io.document_store import DocumentStore
from ..io.draft_store import SessionStore
from ..io.serializers import ValidationError
from .config import DEFAULT_REPS, DEFAULT_WEIGHT, QUICK_WORKOUT_NAME
from .leveling import AwardResult, LevelingGateway, LevelTracker
from .models import ExerciseEntry, PersonalRecord, SetEntry, UserLevel, WorkoutLog, utc_now
from .observable import Channel
from .programs.base import ExerciseTemplate, ProgramTemplate, WorkoutDayTemplate
from .progression import workout_xp
from .records import build_record, evaluate_workout, is_new_record, snapshot_from_records

logger = structlog.get_logger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETING = "completing"


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Observable session state for the presentation layer.

    ``draft`` is a copy taken at publish time; later edits do not change it.
    """

    state: SessionState
    draft: WorkoutLog | None
    elapsed_seconds: float
    new_prs: frozenset[str]


@dataclass
class CompletionResult:
    """Everything complete() did, for the summary / celebration screen."""

    log: WorkoutLog
    new_prs: set[str]
    xp_awarded: int
    level: UserLevel
    leveled_up: bool
    previous_level: int | None
    records_written: list[str] = field(default_factory=list)


def exercise_from_template(template: ExerciseTemplate, order: int) -> ExerciseEntry:
    """Build a logged exercise with sets pre-filled from the template targets."""
    return ExerciseEntry(
        name=template.name,
        order=order,
        rest_seconds=template.rest_seconds,
        completed_sets=[
            SetEntry(
                set_number=n,
                target_reps=template.reps,
                target_weight=template.weight,
                actual_reps=template.reps,
                weight=template.weight,
            )
            for n in range(1, template.sets + 1)
        ],
    )


def previous_performance_hints(log: WorkoutLog, exercise_name: str) -> list[str]:
    """
    Format the completed sets of an exercise in a past log.

    Returns one "reps×weight" string per completed set, e.g. ["10×135", "8×145"].
    """
    exercise = log.find_exercise(exercise_name)
    if exercise is None:
        return []
    return [f"{s.actual_reps}×{int(s.weight)}" for s in exercise.completed_sets if s.is_completed]


def apply_hints(exercise: ExerciseEntry, hints: list[str]) -> None:
    """Copy hints onto sets by position; extra sets reuse the last hint."""
    if not hints:
        return
    for j, s in enumerate(exercise.completed_sets):
        s.previous_performance = hints[j] if j < len(hints) else hints[-1]


class SessionController:
    """
    State machine for the active workout.

    Collaborators are injected so tests can pass in-memory fakes.
    """

    def __init__(
        self,
        user_id: str,
        store: DocumentStore,
        session_store: SessionStore,
        gateway: LevelingGateway,
        level_tracker: LevelTracker | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.user_id = user_id
        self.store = store
        self.session_store = session_store
        self.gateway = gateway
        self.level_tracker = level_tracker
        self._now = clock

        self.state = SessionState.IDLE
        self.draft: WorkoutLog | None = None
        self.new_prs: set[str] = set()
        self._clock_start: datetime | None = None
        self._records: dict[str, PersonalRecord] | None = None
        self._completing = False
        self._tasks: set[asyncio.Task] = set()

        self.state_channel: Channel[SessionSnapshot] = Channel("session", self.snapshot())

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state is not SessionState.IDLE

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self.state,
            draft=copy.deepcopy(self.draft),
            elapsed_seconds=self._elapsed_from(self._clock_start),
            new_prs=frozenset(self.new_prs),
        )

    def _publish(self) -> None:
        self.state_channel.publish(self.snapshot())

    def _elapsed_from(self, started: datetime | None) -> float:
        if self.draft is None or started is None:
            return 0.0
        return max(0.0, (self._now() - started).total_seconds())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        day: WorkoutDayTemplate | None = None,
        program: ProgramTemplate | None = None,
    ) -> WorkoutLog:
        """
        Begin a new workout, replacing any draft already in memory.

        With a template day every exercise gets its target sets; without
        one the workout starts empty as a "Quick Workout". The draft and the
        clock start are persisted before returning. Record prefetch and
        history-fill run in the background when an event loop is running.

        Args:
            day: Template day to copy, or None for a blank workout
            program: Program the day belongs to (recorded on the log)

        Returns:
            The new draft, or the draft being completed if a completion
            is in flight (nothing is replaced then)
        """
        if self._completing and self.draft is not None:
            logger.warning("start_ignored_while_completing", log_id=self.draft.id)
            return self.draft
        if self.draft is not None:
            logger.info("session_replaced", log_id=self.draft.id)
            self._cancel_background()

        now = self._now()
        if day is None:
            draft = WorkoutLog(user_id=self.user_id, day_name=QUICK_WORKOUT_NAME, started_at=now)
        else:
            draft = WorkoutLog(
                user_id=self.user_id,
                day_name=day.name,
                started_at=now,
                exercises=[exercise_from_template(t, i) for i, t in enumerate(day.exercises)],
                program_id=program.program_id if program is not None else None,
                program_name=program.name if program is not None else None,
            )

        self.draft = draft
        self.state = SessionState.ACTIVE
        self.new_prs = set()
        self._records = None
        self._clock_start = now

        self.session_store.save_clock_start(now)
        self.session_store.save(draft)
        logger.info("session_started", log_id=draft.id, day_name=draft.day_name,
                    exercises=len(draft.exercises))

        self._schedule(self._prepare(draft.id, [e.name for e in draft.exercises]))
        self._publish()
        return draft

    def restore(self) -> bool:
        """
        Reload a draft left behind by a crash or restart.

        The elapsed clock resumes from the persisted start time. A corrupt
        draft is cleared and the controller stays idle.

        Returns:
            True if a draft was restored
        """
        try:
            draft = self.session_store.load()
        except ValidationError:
            logger.warning("draft_corrupt_cleared", exc_info=True)
            self.session_store.clear()
            return False
        if draft is None:
            return False
        if draft.user_id != self.user_id:
            logger.warning("draft_owner_mismatch", draft_user=draft.user_id, user_id=self.user_id)
            return False

        clock_start = self.session_store.load_clock_start()
        if clock_start is None:
            clock_start = draft.started_at
            self.session_store.save_clock_start(clock_start)

        self.draft = draft
        self.state = SessionState.ACTIVE
        self._clock_start = clock_start
        logger.info("session_restored", log_id=draft.id, day_name=draft.day_name)
        self._publish()
        return True

    def discard(self) -> bool:
        """
        Abandon the active workout without any remote writes.

        Background history-fill is cancelled; any late result is dropped.

        Returns:
            True if a draft was discarded
        """
        if self.state is not SessionState.ACTIVE or self.draft is None:
            return False
        log_id = self.draft.id
        self._cancel_background()
        self._reset()
        self.new_prs = set()
        logger.info("session_discarded", log_id=log_id)
        self._publish()
        return True

    def refresh_elapsed(self) -> float:
        """
        Recompute elapsed seconds from the persisted clock start.

        Call after the app returns from the background; never relies on an
        in-process counter.
        """
        if self.draft is None:
            return 0.0
        persisted = self.session_store.load_clock_start()
        if persisted is not None:
            self._clock_start = persisted
        elapsed = self._elapsed_from(self._clock_start or self.draft.started_at)
        self._publish()
        return elapsed

    # ------------------------------------------------------------------
    # Mutations (no-ops unless ACTIVE; bad indices are ignored)
    # ------------------------------------------------------------------

    def _editable(self) -> WorkoutLog | None:
        if self.state is not SessionState.ACTIVE:
            logger.debug("mutation_ignored", state=self.state.value)
            return None
        return self.draft

    def _exercise(self, draft: WorkoutLog, exercise_index: int) -> ExerciseEntry | None:
        if 0 <= exercise_index < len(draft.exercises):
            return draft.exercises[exercise_index]
        logger.debug("exercise_index_ignored", exercise_index=exercise_index)
        return None

    def _commit(self) -> None:
        assert self.draft is not None
        self.session_store.save(self.draft)
        self._publish()

    def add_exercise(self, template: ExerciseTemplate) -> bool:
        """Append an exercise with its template sets and look up its history."""
        draft = self._editable()
        if draft is None:
            return False
        entry = exercise_from_template(template, len(draft.exercises))
        draft.exercises.append(entry)
        self._commit()
        self._schedule(self._fill_history(draft.id, [entry.name]))
        return True

    def remove_exercise(self, exercise_index: int) -> bool:
        """Remove an exercise; later exercises move up and order stays 0..N-1."""
        draft = self._editable()
        if draft is None or self._exercise(draft, exercise_index) is None:
            return False
        del draft.exercises[exercise_index]
        for i, exercise in enumerate(draft.exercises):
            exercise.order = i
        self._commit()
        return True

    def add_set(self, exercise_index: int) -> bool:
        """Append a set copying the previous set's targets and weight."""
        draft = self._editable()
        if draft is None:
            return False
        exercise = self._exercise(draft, exercise_index)
        if exercise is None:
            return False
        last = exercise.completed_sets[-1] if exercise.completed_sets else None
        target_reps = last.target_reps if last is not None else DEFAULT_REPS
        exercise.completed_sets.append(
            SetEntry(
                set_number=len(exercise.completed_sets) + 1,
                target_reps=target_reps,
                target_weight=last.target_weight if last is not None else DEFAULT_WEIGHT,
                actual_reps=target_reps,
                weight=last.weight if last is not None else DEFAULT_WEIGHT,
                previous_performance=last.previous_performance if last is not None else None,
            )
        )
        self._commit()
        return True

    def remove_set(self, exercise_index: int, set_index: int) -> bool:
        """Remove a set and renumber the rest 1..N."""
        draft = self._editable()
        if draft is None:
            return False
        exercise = self._exercise(draft, exercise_index)
        if exercise is None or not 0 <= set_index < len(exercise.completed_sets):
            return False
        del exercise.completed_sets[set_index]
        for n, s in enumerate(exercise.completed_sets, 1):
            s.set_number = n
        self._commit()
        return True

    def update_set(
        self,
        exercise_index: int,
        set_index: int,
        reps: int,
        weight: float,
        completed: bool,
    ) -> bool:
        """Record what was actually lifted for one set."""
        draft = self._editable()
        if draft is None:
            return False
        exercise = self._exercise(draft, exercise_index)
        if exercise is None or not 0 <= set_index < len(exercise.completed_sets):
            return False
        if reps < 0 or weight < 0:
            logger.debug("set_values_ignored", reps=reps, weight=weight)
            return False
        entry = exercise.completed_sets[set_index]
        entry.actual_reps = reps
        entry.weight = weight
        entry.is_completed = completed
        self._commit()
        return True

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def load_record_snapshot(self) -> dict[str, PersonalRecord]:
        """Fetch the user's records once and cache them for this session."""
        records = await self.store.list_personal_records(self.user_id)
        self._records = snapshot_from_records(records)
        return self._records

    def set_record_snapshot(self, records: Iterable[PersonalRecord]) -> None:
        """Replace the cached snapshot, e.g. from a live records subscription."""
        self._records = snapshot_from_records(records)

    async def complete(self) -> CompletionResult | None:
        """
        Finish the workout: detect PRs, save everything, award XP.

        Returns None without doing anything when idle or when another
        completion is already in flight. On any failure the draft stays
        active and persisted and the exception propagates, so the caller
        can offer a retry; writes that already succeeded are not undone.

        Returns:
            CompletionResult, or None if ignored
        """
        draft = self.draft
        if draft is None or self.state is not SessionState.ACTIVE or self._completing:
            logger.debug("complete_ignored", state=self.state.value)
            return None

        self._completing = True
        self.state = SessionState.COMPLETING
        self._publish()
        try:
            result = await self._complete(draft)
        except BaseException:
            if self.draft is draft:
                self.state = SessionState.ACTIVE
            logger.warning("session_complete_failed", log_id=draft.id, exc_info=True)
            self._publish()
            raise
        finally:
            self._completing = False

        if self.draft is draft:
            self._cancel_background()
            self._reset()
        logger.info(
            "session_completed",
            log_id=result.log.id,
            new_prs=sorted(result.new_prs),
            xp=result.xp_awarded,
            leveled_up=result.leveled_up,
        )
        self._publish()
        return result

    async def _complete(self, draft: WorkoutLog) -> CompletionResult:
        # 1. freeze the clock on a copy; the live draft is untouched until success
        completed_at = self._now()
        started = self.session_store.load_clock_start() or self._clock_start or draft.started_at
        log = copy.deepcopy(draft)
        log.completed_at = completed_at
        log.duration = max(0.0, (completed_at - started).total_seconds())

        # 2. detect against the cached snapshot
        snapshot = self._records if self._records is not None else await self.load_record_snapshot()
        new_prs = evaluate_workout(log, snapshot)
        self.new_prs = set(new_prs)

        # 3. mark sets
        for exercise in log.exercises:
            if exercise.name in new_prs:
                for s in exercise.completed_sets:
                    if s.is_completed:
                        s.is_pr = True

        # 4. write records that are still better than the remote copy
        written: list[str] = []
        for exercise in log.exercises:
            if exercise.name not in new_prs:
                continue
            candidate = build_record(self.user_id, exercise, log.id, completed_at)
            if candidate is None:
                continue
            remote = await self.store.get_personal_record(self.user_id, exercise.name)
            if is_new_record(candidate.weight, candidate.reps, remote):
                await self.store.put_personal_record(candidate)
                written.append(exercise.name)
            else:
                logger.info("personal_record_superseded", exercise=exercise.name)

        # 5. save the log (keyed by draft id, so a retry overwrites)
        await self.store.put_workout_log(log)

        # 6. award XP
        has_prs = len(new_prs) > 0
        xp = workout_xp(has_prs)
        award: AwardResult
        if self.level_tracker is not None:
            award = await self.level_tracker.award_workout_xp(has_prs)
        else:
            award = await self.gateway.award_xp(self.user_id, xp)

        return CompletionResult(
            log=log,
            new_prs=set(new_prs),
            xp_awarded=xp,
            level=award.level,
            leveled_up=award.leveled_up,
            previous_level=award.previous_level,
            records_written=written,
        )

    def _reset(self) -> None:
        self.draft = None
        self.state = SessionState.IDLE
        self._clock_start = None
        self._records = None
        self.session_store.clear()

    # ------------------------------------------------------------------
    # Background work
    # ------------------------------------------------------------------

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug("background_skipped_no_loop")
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _cancel_background(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    async def wait_for_background(self) -> None:
        """Wait for pending prefetch / history-fill tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _is_current(self, draft_id: str) -> bool:
        return self.draft is not None and self.draft.id == draft_id

    async def _prepare(self, draft_id: str, names: list[str]) -> None:
        try:
            records = await self.store.list_personal_records(self.user_id)
        except Exception:
            logger.warning("record_prefetch_failed", exc_info=True)
        else:
            if self._is_current(draft_id) and self._records is None:
                self._records = snapshot_from_records(records)
        await self._fill_history(draft_id, names)

    async def _fill_history(self, draft_id: str, names: list[str]) -> None:
        """
        Annotate sets with the last logged performance of each exercise.

        Writes only previous_performance, and only while the same draft is
        still active. Lookup failures are logged and skipped.
        """
        filled = False
        for name in dict.fromkeys(names):
            if not self._is_current(draft_id):
                return
            try:
                past = await self.store.get_recent_log_containing(self.user_id, name)
            except Exception:
                logger.warning("history_fill_failed", exercise=name, exc_info=True)
                continue
            if past is None or not self._is_current(draft_id):
                continue
            hints = previous_performance_hints(past, name)
            if not hints:
                continue
            assert self.draft is not None
            for exercise in self.draft.exercises:
                if exercise.name == name:
                    apply_hints(exercise, hints)
                    filled = True

        if filled and self._is_current(draft_id):
            self._commit()
