"""
Shared fixtures: every test gets its own SQLite file under tmp_path.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from juicebar_pos.core.errors import ExternalChannelError
from juicebar_pos.db.database import build_engine, build_session_factory, create_schema
from juicebar_pos.db.store import RecordStore, get_store
from juicebar_pos.engine.channels import NotificationChannel, get_channel
from juicebar_pos.engine.seed import ensure_seeded


class RecordingChannel(NotificationChannel):
    """Captures outbound messages; fails every send when fail=True."""
    name = "recording"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    async def send(self, destination: str, message: str) -> None:
        if self.fail:
            raise ExternalChannelError("gateway down")
        self.sent.append((destination, message))


async def stock_levels(store: RecordStore) -> dict[str, float]:
    async with store.transaction() as uow:
        return {item.id: item.qty for item in await uow.inventory.get_all()}


async def sale_count(store: RecordStore) -> int:
    async with store.transaction() as uow:
        return len(await uow.sales.get_all())


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'pos.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def store(db_engine):
    return RecordStore(build_session_factory(db_engine))


@pytest_asyncio.fixture
async def seeded_store(store):
    await ensure_seeded(store)
    return store


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest_asyncio.fixture
async def client(seeded_store, channel):
    from juicebar_pos.main import app

    app.dependency_overrides[get_store] = lambda: seeded_store
    app.dependency_overrides[get_channel] = lambda: channel
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
