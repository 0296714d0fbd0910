"""Data store persistence (JSON + fcntl.flock + atomic write).

Each collection lives in ``<data_dir>/<collection>.json`` as
``{"items": [...]}``. Writers hold an exclusive lock on a sidecar
``.lock`` file for the whole read-modify-write, so conditional updates
are atomic across processes sharing the directory. File I/O runs in a
worker thread to keep the event loop free.
"""

import asyncio
import fcntl
import json
import os
import tempfile
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from chat_practice.errors import DuplicateRecordError
from chat_practice.models.achievement import Achievement, UserAchievement
from chat_practice.models.history import SolveHistory
from chat_practice.models.problem import Problem
from chat_practice.models.user import ParentFeedback, User

USERS = "users"
PROBLEMS = "problems"
SOLVE_HISTORIES = "solve_histories"
ACHIEVEMENTS = "achievements"
USER_ACHIEVEMENTS = "user_achievements"
PARENT_FEEDBACKS = "parent_feedbacks"


def _new_id() -> str:
    return str(uuid.uuid4())


class JsonStore:
    """Async facade over the JSON collections.

    Args:
        data_dir: Directory holding the collection files.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir
        self.data_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # File primitives (blocking, called through asyncio.to_thread)
    # ------------------------------------------------------------------

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    @contextmanager
    def _locked(self, collection: str, exclusive: bool = True) -> Iterator[None]:
        lock_path = self.data_dir / f"{collection}.json.lock"
        with open(lock_path, "a") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _read(self, collection: str) -> list[dict]:
        path = self._path(collection)
        if not path.exists():
            return []
        return json.loads(path.read_text(encoding="utf-8")).get("items", [])

    def _write(self, collection: str, items: list[dict]) -> None:
        with tempfile.NamedTemporaryFile(
            "w", dir=self.data_dir, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump({"items": items}, tmp, indent=2, ensure_ascii=False)
        os.replace(tmp.name, self._path(collection))

    def _load(self, collection: str) -> list[dict]:
        with self._locked(collection, exclusive=False):
            return self._read(collection)

    def _insert(self, collection: str, record: BaseModel) -> None:
        """Append a record under the collection lock.

        Raises:
            DuplicateRecordError: if a record with the same id exists.
        """
        record_id = record.id
        with self._locked(collection):
            items = self._read(collection)
            if any(item["id"] == record_id for item in items):
                raise DuplicateRecordError(collection, record_id)
            items.append(record.model_dump(mode="json"))
            self._write(collection, items)

    def _modify(
        self, collection: str, record_id: str, mutate: Callable[[dict], bool]
    ) -> dict | None:
        """Apply ``mutate`` to one record under the collection lock.

        ``mutate`` returns False to leave the record untouched, in which
        case nothing is written and None is returned.

        Raises:
            KeyError: if no record has ``record_id``.
        """
        with self._locked(collection):
            items = self._read(collection)
            for item in items:
                if item["id"] == record_id:
                    if not mutate(item):
                        return None
                    self._write(collection, items)
                    return item
        raise KeyError(f"{collection} record not found: {record_id}")

    async def _all(self, collection: str) -> list[dict]:
        return await asyncio.to_thread(self._load, collection)

    async def _add(self, collection: str, record: BaseModel) -> None:
        await asyncio.to_thread(self._insert, collection, record)

    # ------------------------------------------------------------------
    # Users and parent feedback
    # ------------------------------------------------------------------

    async def find_user(self, user_id: str) -> User | None:
        for item in await self._all(USERS):
            if item["id"] == user_id:
                return User.model_validate(item)
        return None

    async def create_user(
        self,
        birth: date,
        interests: list[str] | None = None,
        name: str | None = None,
        user_id: str | None = None,
    ) -> User:
        user = User(
            id=user_id or _new_id(),
            name=name,
            birth=birth,
            interests=interests or [],
        )
        await self._add(USERS, user)
        return user

    async def list_parent_feedback(self, user_id: str) -> list[ParentFeedback]:
        """Return all feedback for ``user_id``, newest first."""
        entries = [
            ParentFeedback.model_validate(item)
            for item in await self._all(PARENT_FEEDBACKS)
            if item["user_id"] == user_id
        ]
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries

    async def create_parent_feedback(
        self, user_id: str, feedback: str, created_at: datetime | None = None
    ) -> ParentFeedback:
        entry = ParentFeedback(
            id=_new_id(),
            user_id=user_id,
            feedback=feedback,
            created_at=created_at or datetime.now(),
        )
        await self._add(PARENT_FEEDBACKS, entry)
        return entry

    # ------------------------------------------------------------------
    # Problems and solve histories
    # ------------------------------------------------------------------

    async def create_problem(
        self,
        problem_id: str,
        user_id: str,
        question: str,
        answer: Any = None,
        image_path: str | None = None,
        whole_text: str | None = None,
    ) -> Problem:
        """Store a problem under the id the AI server assigned.

        Raises:
            DuplicateRecordError: if a problem with that id already exists.
        """
        problem = Problem(
            id=problem_id,
            user_id=user_id,
            question=question,
            answer=answer,
            image_path=image_path,
            whole_text=whole_text,
        )
        await self._add(PROBLEMS, problem)
        return problem

    async def find_problem(self, problem_id: str, user_id: str) -> Problem | None:
        """Find a problem only if it belongs to ``user_id``."""
        for item in await self._all(PROBLEMS):
            if item["id"] == problem_id and item["user_id"] == user_id:
                return Problem.model_validate(item)
        return None

    async def list_solve_histories(self, user_id: str) -> list[SolveHistory]:
        """Return the user's solve histories in creation order."""
        return [
            SolveHistory.model_validate(item)
            for item in await self._all(SOLVE_HISTORIES)
            if item["user_id"] == user_id
        ]

    async def create_solve_history(
        self,
        user_id: str,
        problem_id: str,
        is_correct: bool,
        feedback: str | None = None,
        voice_path: str | None = None,
    ) -> SolveHistory:
        history = SolveHistory(
            id=_new_id(),
            user_id=user_id,
            problem_id=problem_id,
            is_correct=is_correct,
            feedback=feedback,
            voice_path=voice_path,
        )
        await self._add(SOLVE_HISTORIES, history)
        return history

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------

    async def list_user_achievements(self, user_id: str) -> list[UserAchievement]:
        """Return the user's achievements, highest level first."""
        achievements = {
            item["id"]: Achievement.model_validate(item)
            for item in await self._all(ACHIEVEMENTS)
        }
        links = []
        for item in await self._all(USER_ACHIEVEMENTS):
            if item["user_id"] != user_id:
                continue
            link = UserAchievement.model_validate(item)
            link.achievement = achievements.get(link.achievement_id)
            if link.achievement is not None:
                links.append(link)
        links.sort(key=lambda link: link.achievement.level, reverse=True)
        return links

    async def find_latest_user_achievement(
        self, user_id: str, title: str | None = None
    ) -> UserAchievement | None:
        """Return the user's achievement with the greatest level.

        Args:
            user_id: Owner of the achievement.
            title: Only consider achievements with this title.
        """
        for link in await self.list_user_achievements(user_id):
            if title is None or link.achievement.title == title:
                return link
        return None

    async def create_achievement(
        self, title: str, description: str, level: float
    ) -> Achievement:
        achievement = Achievement(
            id=_new_id(), title=title, description=description, level=level
        )
        await self._add(ACHIEVEMENTS, achievement)
        return achievement

    async def update_achievement(self, achievement_id: str, **fields: Any) -> Achievement:
        """Overwrite ``fields`` on an achievement.

        Raises:
            KeyError: if the achievement does not exist.
        """

        def mutate(item: dict) -> bool:
            item.update(fields)
            item["updated_at"] = datetime.now().isoformat()
            return True

        item = await asyncio.to_thread(self._modify, ACHIEVEMENTS, achievement_id, mutate)
        return Achievement.model_validate(item)

    async def update_achievement_if_higher(
        self, achievement_id: str, level: float, **fields: Any
    ) -> Achievement | None:
        """Raise an achievement's level, atomically.

        The comparison and the write happen under one lock, so a
        concurrent lower value can never overwrite a higher one.

        Returns:
            The updated achievement, or None if the stored level was
            already ``>= level``.

        Raises:
            KeyError: if the achievement does not exist.
        """

        def mutate(item: dict) -> bool:
            if level <= item["level"]:
                return False
            item.update(fields)
            item["level"] = level
            item["updated_at"] = datetime.now().isoformat()
            return True

        item = await asyncio.to_thread(self._modify, ACHIEVEMENTS, achievement_id, mutate)
        if item is None:
            return None
        return Achievement.model_validate(item)

    async def create_user_achievement(
        self, user_id: str, achievement_id: str
    ) -> UserAchievement:
        link = UserAchievement(id=_new_id(), user_id=user_id, achievement_id=achievement_id)
        await self._add(USER_ACHIEVEMENTS, link)
        return link
