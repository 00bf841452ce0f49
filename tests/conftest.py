from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from factory_portal.auth.caller_context import CallerContext
from factory_portal.auth.jwt import create_access_token
from factory_portal.core.config import get_config
from factory_portal.core.exceptions import NotFoundError
from factory_portal.database.change_feed import FEED_KEY, ChangeFeed, feed_for, install_change_capture
from factory_portal.database.models import Base
from factory_portal.services.run_service import RunService
from factory_portal.services.user_directory import MAX_PAGE_SIZE, UserPage, UserRecord
from factory_portal.triggers.base import TriggerDeps

install_change_capture()

DEFAULT_STAGES = [
    {"label": "Wood Selection", "client_status_label": "Preparing"},
    {"label": "Body Shaping", "client_status_label": "In build"},
    {"label": "Finishing", "client_status_label": "Finishing touches"},
]

DEFAULT_GUITARS = [
    {
        "order_number": "ORD-1001",
        "model": "Hype GTR",
        "finish": "Interstellar",
        "client_uid": "client-1",
        "customer_name": "Alex Client",
        "customer_email": "alex@example.com",
    },
]


class FakeDirectory:
    """In-memory directory paginated by offset tokens."""

    def __init__(self, users=()):
        self.users = sorted(users, key=lambda user: user.uid)
        self.list_calls = 0

    def list_users(self, max_results: int = MAX_PAGE_SIZE, page_token: str | None = None) -> UserPage:
        self.list_calls += 1
        start = int(page_token or 0)
        end = start + max_results
        next_token = str(end) if end < len(self.users) else None
        return UserPage(users=self.users[start:end], page_token=next_token)

    def get_user(self, uid: str) -> UserRecord:
        for user in self.users:
            if user.uid == uid:
                return user
        raise NotFoundError(f"User not found: {uid}")


@dataclass
class FakeMailer:
    enabled: bool = True
    sent: list[dict] = field(default_factory=list)

    def send_email(self, to_email: str, subject: str, html: str, text: str | None = None) -> bool:
        self.sent.append({"to": to_email, "subject": subject, "html": html, "text": text})
        return True


@dataclass
class SeededRun:
    run_id: str
    stage_ids: list[str]
    guitar_ids: list[str]

    @property
    def guitar_id(self) -> str:
        return self.guitar_ids[0]


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'portal_test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine, info={FEED_KEY: ChangeFeed()})
    yield factory
    engine.dispose()


@pytest.fixture
def feed(session_factory) -> ChangeFeed:
    return feed_for(session_factory)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin() -> CallerContext:
    return CallerContext(user_id="admin-1", role="admin", display_name="Ada Admin")


@pytest.fixture
def staff() -> CallerContext:
    return CallerContext(user_id="staff-1", role="staff", display_name="Sam Staff")


@pytest.fixture
def client_caller() -> CallerContext:
    return CallerContext(user_id="client-1", role="client", display_name="Alex Client")


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory(
        [
            UserRecord(uid="admin-1", email="ada@example.com", display_name="Ada Admin", role="admin"),
            UserRecord(uid="staff-1", email="sam@example.com", display_name="Sam Staff", role="staff"),
            UserRecord(uid="factory-1", email="floor@example.com", role="factory"),
            UserRecord(uid="client-1", email="client1@example.com", display_name="Alex Client", role="client"),
        ]
    )


@pytest.fixture
def make_directory():
    return FakeDirectory


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def seed_run(session_factory, admin):
    def _seed(name: str = "Run 7", stages=None, guitars=None) -> SeededRun:
        with session_factory() as session:
            service = RunService(db=session)
            run = service.create_run(name, admin, stages=stages or DEFAULT_STAGES)
            run_id = run.id
            stage_ids = [stage.id for stage in sorted(run.stages, key=lambda item: item.order)]
            guitar_ids = [
                service.create_guitar(run_id, context=admin, **fields).id
                for fields in (DEFAULT_GUITARS if guitars is None else guitars)
            ]
        return SeededRun(run_id=run_id, stage_ids=stage_ids, guitar_ids=guitar_ids)

    return _seed


@pytest.fixture
def trigger_deps(session_factory, directory, mailer):
    deps = TriggerDeps.build(session_factory, directory=directory, mailer=mailer)
    yield deps
    deps.close()


@pytest.fixture
def auth_header():
    def _header(uid: str = "staff-1", role: str | None = "staff", name: str | None = "Sam Staff") -> str:
        token = create_access_token(uid, role, get_config().JWT_SECRET, display_name=name)
        return f"Bearer {token}"

    return _header
