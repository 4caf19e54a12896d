"""
XP awards and observable level state.

LevelingGateway performs the atomic read-modify-write of a user's level
against the durable store. LevelTracker wraps it for presentation code:
it keeps the latest level, a pending level-up event for the celebration
screen, and publishes LevelSnapshots.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import NamedTuple

import structlog

from ..io.document_store import DocumentStore
from .models import LevelUpEvent, UserLevel, utc_now
from .observable import Channel
from .progression import add_xp, workout_xp

logger = structlog.get_logger(__name__)


class AwardResult(NamedTuple):
    """Outcome of LevelingGateway.award_xp()."""

    level: UserLevel
    leveled_up: bool
    previous_level: int | None  # level before this award; only set on level-up


@dataclass(frozen=True)
class LevelSnapshot:
    """What the presentation layer needs to draw level progress."""

    level: UserLevel | None
    progress: float
    pending_level_up: LevelUpEvent | None


class LevelingGateway:
    """
    Awards XP under the store's transactional guarantee.

    Two concurrent awards for the same user are serialized by
    DocumentStore.run_atomic, so neither can overwrite the other's XP.
    """

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self._now = clock

    async def award_xp(
        self,
        user_id: str,
        xp_amount: int,
        level_hint: UserLevel | None = None,
    ) -> AwardResult:
        """
        Add XP to the user's stored level.

        The authoritative level is always read inside the atomic update;
        ``level_hint`` is only used to skip a read when nothing is awarded.

        Args:
            user_id: Owner of the level
            xp_amount: XP to add; <= 0 performs no write
            level_hint: Caller's last known level, if any

        Returns:
            AwardResult(level, leveled_up, previous_level)
        """
        if xp_amount <= 0:
            if level_hint is not None:
                return AwardResult(level_hint, False, None)
            current = await self.store.get_user_level(user_id)
            return AwardResult(current or UserLevel(user_id=user_id), False, None)

        # Set by update(); the store may call it more than once, the last
        # invocation is the one that committed.
        leveled_up = False
        before = 1

        def update(current: UserLevel | None) -> UserLevel:
            nonlocal leveled_up, before
            base = current if current is not None else UserLevel(user_id=user_id)
            result = add_xp(base.current_level, base.current_xp, base.total_xp, xp_amount)
            now = self._now()
            updated = replace(
                base,
                current_level=result.new_level,
                current_xp=result.new_current_xp,
                total_xp=result.new_total_xp,
                last_level_up_date=now if result.leveled_up else base.last_level_up_date,
                updated_at=now,
            )
            leveled_up = result.leveled_up
            before = base.current_level
            return updated

        level = await self.store.run_atomic(user_id, update)
        previous = before if leveled_up else None

        logger.info(
            "xp_awarded",
            user_id=user_id,
            xp=xp_amount,
            level=level.current_level,
            leveled_up=leveled_up,
        )
        return AwardResult(level, leveled_up, previous)


class LevelTracker:
    """
    Presentation-facing level state for one user.

    Holds the latest UserLevel and a pending LevelUpEvent that stays set
    until acknowledge_level_up() is called.
    """

    def __init__(
        self,
        user_id: str,
        gateway: LevelingGateway,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.user_id = user_id
        self.gateway = gateway
        self._now = clock
        self.level: UserLevel | None = None
        self.pending_level_up: LevelUpEvent | None = None
        self.level_channel: Channel[LevelSnapshot] = Channel("level")

    @property
    def current_level(self) -> int:
        return self.level.current_level if self.level is not None else 1

    @property
    def progress_to_next_level(self) -> float:
        return self.level.progress_to_next_level if self.level is not None else 0.0

    async def refresh(self) -> UserLevel:
        """Load the stored level, creating a level-1 record for new users."""
        level = await self.gateway.store.get_user_level(self.user_id)
        if level is None:
            level = await self.gateway.store.run_atomic(
                self.user_id,
                lambda current: current if current is not None else UserLevel(user_id=self.user_id),
            )
            logger.info("user_level_initialized", user_id=self.user_id)
        self.level = level
        self._publish()
        return level

    async def award_workout_xp(self, has_prs: bool) -> AwardResult:
        """
        Award the XP for a completed workout.

        On level-up a LevelUpEvent is left pending for the celebration UI.
        Failures propagate to the caller.
        """
        result = await self.gateway.award_xp(self.user_id, workout_xp(has_prs), self.level)
        self.level = result.level
        if result.leveled_up and result.previous_level is not None:
            self.pending_level_up = LevelUpEvent(
                previous_level=result.previous_level,
                new_level=result.level.current_level,
                timestamp=self._now(),
            )
        self._publish()
        return result

    def acknowledge_level_up(self) -> None:
        """Dismiss the pending level-up celebration."""
        if self.pending_level_up is None:
            return
        self.pending_level_up = None
        self._publish()

    def snapshot(self) -> LevelSnapshot:
        return LevelSnapshot(
            level=self.level,
            progress=self.progress_to_next_level,
            pending_level_up=self.pending_level_up,
        )

    def _publish(self) -> None:
        self.level_channel.publish(self.snapshot())
