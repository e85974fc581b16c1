"""
Pytest configuration and fixtures for Modsentry tests.
"""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from modsentry.database.database import Database  # noqa: E402
from modsentry.datatypes.enforcement_config import EnforcementConfig  # noqa: E402
from modsentry.datatypes.moderation_datatypes import MessageEvent  # noqa: E402


@pytest_asyncio.fixture
async def database(tmp_path: Path):
    db = Database(tmp_path / "modsentry-test.db")
    assert await db.initialize()
    yield db
    await db.shutdown()


@pytest.fixture()
def make_event():
    def _make(**overrides) -> MessageEvent:
        fields = dict(
            server_id="100",
            server_name="Test Server",
            channel_id="200",
            channel_name="general",
            message_id="300",
            user_id="400",
            username="spammer#0001",
            user_avatar_url="https://cdn.example/avatar.png",
            text="BUY CRYPTO NOW CLICK HERE",
            is_self=False,
        )
        fields.update(overrides)
        return MessageEvent(**fields)

    return _make


@pytest.fixture()
def make_config():
    def _make(**overrides) -> EnforcementConfig:
        fields = dict(server_id="100", server_name="Test Server")
        fields.update(overrides)
        return EnforcementConfig(**fields)

    return _make
