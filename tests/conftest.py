"""Shared fixtures."""

from datetime import date

import pytest

from chat_practice.storage.store import JsonStore


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "store")


@pytest.fixture
async def user(store):
    return await store.create_user(
        birth=date(2020, 5, 1),
        interests=["dinosaurs", "space"],
        name="Minji",
        user_id="user-1",
    )
