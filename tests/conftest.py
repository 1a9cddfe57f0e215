import sys
from pathlib import Path

import pytest
from sqlalchemy.pool import NullPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from eventify import database  # noqa: E402
from eventify.realtime import ChangeFeed, ReactionBroadcaster  # noqa: E402
from eventify.services.storage import LocalDocumentStorage  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite file with every table created."""

    engine = database._build_engine(f"sqlite+aiosqlite:///{tmp_path / 'eventify.db'}", poolclass=NullPool)
    await database.init_models(engine)
    try:
        yield database.build_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def reactions():
    return ReactionBroadcaster()


@pytest.fixture
def storage(tmp_path):
    return LocalDocumentStorage(str(tmp_path / "documents"))
