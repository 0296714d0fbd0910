"""Builds the learner profile sent along with problem generation requests."""

from collections.abc import Callable
from datetime import date, datetime

import structlog

from chat_practice.achievements.accuracy import answer_rate
from chat_practice.achievements.tracker import AchievementTracker
from chat_practice.models.context import FeedbackEntry, PersonalizationContext, UserInfo
from chat_practice.models.user import User
from chat_practice.storage.store import JsonStore

logger = structlog.get_logger()

# Placeholder until a proficiency table exists.
DEFAULT_LANGUAGE_LEVEL = "초급"


def months_between(now: date, birth: date) -> int:
    """Whole months between two dates, ignoring the day of month."""
    return abs((now.year - birth.year) * 12 + (now.month - birth.month))


class PersonalizationContextBuilder:
    """Assembles a ``PersonalizationContext`` for a user.

    Building a context always runs the achievement check with the
    user's current answer rate.

    Args:
        store: Data store for solve histories and parent feedback.
        tracker: Achievement tracker to update.
        clock: Returns the current time.
    """

    def __init__(
        self,
        store: JsonStore,
        tracker: AchievementTracker,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.tracker = tracker
        self.clock = clock

    async def build(self, user: User) -> PersonalizationContext:
        age = months_between(self.clock().date(), user.birth)

        histories = await self.store.list_solve_histories(user.id)
        accuracy = answer_rate(histories)

        await self.tracker.check_and_create_achievement(user.id, accuracy)

        feedback = await self.store.list_parent_feedback(user.id)

        logger.debug(
            "personalization_context_built",
            user_id=user.id,
            age=age,
            accuracy=accuracy,
            history_count=len(histories),
            feedback_count=len(feedback),
        )

        return PersonalizationContext(
            user_info=UserInfo(
                age=age,
                accuracy=accuracy,
                interests=user.interests,
                language_level=DEFAULT_LANGUAGE_LEVEL,
                language_goals=None,
                feedback=[
                    FeedbackEntry(feedback=entry.feedback, created_at=entry.created_at)
                    for entry in feedback
                ],
            )
        )
