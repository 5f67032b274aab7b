"""Unit test configuration.

In-memory SQLite database, repositories and services wired to fakes.
"""

from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from api.services.background import BackgroundTasks
from api.services.platform_service import PlatformConnectionService
from api.services.post_service import PostService
from api.services.scheduler_service import SchedulerService
from postpilot.content.repository import (
    PlatformConnectionRepository,
    PostRepository,
    UserRepository,
)
from postpilot.db.models import (
    PlatformConnectionUpsert,
    PostCreate,
    SocialPlatform,
    UserCreate,
    utcnow,
)


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def post_repo(session):
    return PostRepository(session)


@pytest.fixture
def connection_repo(session):
    return PlatformConnectionRepository(session)


@pytest.fixture
def user_repo(session):
    return UserRepository(session)


@pytest.fixture
def user(user_repo):
    return user_repo.create(
        UserCreate(external_id="ext-ada", email="ada@example.com", display_name="Ada")
    )


@pytest.fixture
def other_user(user_repo):
    return user_repo.create(UserCreate(external_id="ext-bob", email="bob@example.com"))


@pytest.fixture
def make_post(post_repo, user):
    """Create a draft post for the default user."""

    def _make(content="Original post content", platforms=("linkedin",), user_id=None):
        return post_repo.create(
            PostCreate(
                user_id=user_id or user.id,
                original_content=content,
                platforms=list(platforms),
            )
        )

    return _make


@pytest.fixture
def connect(connection_repo, user):
    """Mark a platform connected for the default user."""

    def _connect(platform, user_id=None):
        return connection_repo.upsert(
            user_id or user.id,
            SocialPlatform(platform),
            PlatformConnectionUpsert(
                access_token=f"{platform}-access",
                refresh_token=f"{platform}-secret",
                profile_id=f"{platform}-profile",
                profile_name="Ada Example",
            ),
        )

    return _connect


@pytest.fixture
def future():
    return utcnow() + timedelta(hours=2)


@pytest_asyncio.fixture
async def background():
    """Background runner; leftover tasks are awaited on teardown."""
    tasks = BackgroundTasks()
    yield tasks
    await tasks.drain()


@pytest.fixture
def post_service(post_repo, connection_repo, fake_enhancer, platform_clients, webhook):
    return PostService(
        posts=post_repo,
        connections=connection_repo,
        enhancer=fake_enhancer,
        platform_clients=platform_clients,
        webhook=webhook,
    )


@pytest.fixture
def scheduler(post_repo, connection_repo, webhook, background):
    return SchedulerService(
        posts=post_repo,
        connections=connection_repo,
        webhook=webhook,
        background=background,
    )


@pytest.fixture
def platform_service(connection_repo, user_repo, platform_clients):
    return PlatformConnectionService(
        connections=connection_repo,
        users=user_repo,
        platform_clients=platform_clients,
    )
