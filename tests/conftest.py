import os
import tempfile
from datetime import date

# настройки читаются при импорте core.config, поэтому окружение задаём заранее
_TMP_DIR = tempfile.mkdtemp(prefix="tandem-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/app.db"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DEBUG"] = "false"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.security import hash_password
from models import Base, Profile, User
from services.notifier import Notifier
from services.presence import PresenceRegistry

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


class FakeConnection:
    """Соединение-заглушка: запоминает всё, что в него отправили."""

    def __init__(self, name: str, fail: bool = False):
        self.id = name
        self.fail = fail
        self.events = []

    async def send_event(self, event, payload):
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.events.append((event, payload))

    def of(self, event):
        return [payload for name, payload in self.events if name == event]


@pytest_asyncio.fixture
async def engine(tmp_path):
    # файл вместо :memory:, у каждой сессии своё соединение
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def registry():
    return PresenceRegistry()


@pytest.fixture
def notifier(registry):
    return Notifier(registry)


@pytest.fixture
def make_user(session_factory):
    async def _make(username: str, with_profile: bool = True, name: str | None = None) -> User:
        async with session_factory() as session:
            user = User(username=username, email=f"{username}@example.com", password_hash=PASSWORD_HASH)
            session.add(user)
            await session.commit()
            if with_profile:
                session.add(Profile(
                    user_id=user.id,
                    name=name or username.capitalize(),
                    bio="Hello there",
                    profile_picture=f"https://cdn.example.com/{username}.jpg",
                    gender="female",
                    interests=["hiking"],
                    date_of_birth=date(1995, 5, 17),
                ))
                await session.commit()
            await session.refresh(user)
            return user

    return _make
