"""Highest answer rate achievement tracking."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from chat_practice.models.achievement import (
    HIGHEST_ANSWER_RATE_TITLE,
    AchievementChange,
)
from chat_practice.storage.store import JsonStore


def format_answer_rate(rate: float) -> str:
    """Achievement description shown to the learner, e.g. ``정답률 55.00% 달성``."""
    return f"정답률 {rate * 100:.2f}% 달성"


class AchievementTracker:
    """Keeps one "Highest Answer Rate" achievement per user.

    The stored level only ever goes up. Checks for the same user are
    serialized in-process, and raising the level is a single conditional
    write in the store.

    Args:
        store: Data store holding achievements.
        logger: Log sink; defaults to the module logger.
    """

    def __init__(self, store: JsonStore, logger=None):
        self.store = store
        self.logger = logger or structlog.get_logger()
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Hold the user's lock; it is dropped once no check is waiting on it."""
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._waiters[user_id] = self._waiters.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[user_id] -= 1
            if not self._waiters[user_id]:
                del self._waiters[user_id]
                del self._locks[user_id]

    async def check_and_create_achievement(
        self, user_id: str, answer_rate: float
    ) -> AchievementChange:
        """Create or raise the user's highest answer rate achievement.

        Args:
            user_id: User being checked.
            answer_rate: Freshly computed answer rate.

        Returns:
            Which of create, update or no-op happened.
        """
        async with self._user_lock(user_id):
            existing = await self.store.find_latest_user_achievement(
                user_id, title=HIGHEST_ANSWER_RATE_TITLE
            )

            if existing is None:
                achievement = await self.store.create_achievement(
                    title=HIGHEST_ANSWER_RATE_TITLE,
                    description=format_answer_rate(answer_rate),
                    level=answer_rate,
                )
                await self.store.create_user_achievement(user_id, achievement.id)
                self.logger.info(
                    "achievement_created",
                    user_id=user_id,
                    achievement_id=achievement.id,
                    level=answer_rate,
                )
                return AchievementChange.CREATED

            if answer_rate <= existing.achievement.level:
                return AchievementChange.UNCHANGED

            updated = await self.store.update_achievement_if_higher(
                existing.achievement.id,
                answer_rate,
                title=HIGHEST_ANSWER_RATE_TITLE,
                description=format_answer_rate(answer_rate),
            )
            if updated is None:
                # another process raised it past us in the meantime
                return AchievementChange.UNCHANGED

            self.logger.info(
                "achievement_updated",
                user_id=user_id,
                achievement_id=updated.id,
                level=answer_rate,
            )
            return AchievementChange.UPDATED
