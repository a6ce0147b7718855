"""Pytest configuration and shared fixtures for the court scheduling tests.

Provides common fixtures for:
- An in-memory SQLite database shared by the test and the API under test
- Demo users for each role (client, lawyer, court scheduler)
- Filed cases, queued schedule requests and scheduled hearings
- A FastAPI TestClient and bearer-token headers
"""

import os

# Settings are read at import time; point them at an in-memory database.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["CONFLICT_CHECK_MODE"] = "overlap"
os.environ["CONFLICT_SCOPE_INCLUDES_COURTROOM"] = "true"

from datetime import datetime, timedelta
from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from court_scheduling.api.v1.deps import create_access_token
from court_scheduling.db import models  # noqa: F401
from court_scheduling.db.database import Base, get_db
from court_scheduling.db.models import (
    Case,
    CaseStatus,
    CourtFiling,
    CourtFilingStatus,
    ScheduleRequest,
    User,
    UserRole,
)
from court_scheduling.main import app
from court_scheduling.services.notification_service import notification_publisher
from court_scheduling.services.scheduler_service import scheduler_service


# Test markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line(
        "markers", "integration: Integration tests for multi-component workflows"
    )


@pytest.fixture
def engine():
    """Fresh in-memory database per test; StaticPool keeps one connection alive."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def api_client(session_factory) -> TestClient:
    """TestClient whose get_db dependency yields sessions on the test database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def isolated_notifications():
    """Subscribers registered by a test never leak into the next."""
    before = list(notification_publisher._subscribers)
    yield
    notification_publisher._subscribers[:] = before


# ============================================================================
# Users
# ============================================================================

def _user(db: Session, name: str, email: str, role: UserRole) -> User:
    user = User(name=name, email=email, role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def client_user(db) -> User:
    return _user(db, "Nimal Perera", "nimal@example.com", UserRole.client)


@pytest.fixture
def other_client(db) -> User:
    return _user(db, "Sunil Fernando", "sunil@example.com", UserRole.client)


@pytest.fixture
def lawyer(db) -> User:
    return _user(db, "Kamala Wijesinghe", "kamala@example.com", UserRole.lawyer)


@pytest.fixture
def other_lawyer(db) -> User:
    return _user(db, "Ruwan Silva", "ruwan@example.com", UserRole.lawyer)


@pytest.fixture
def scheduler(db) -> User:
    return _user(db, "Registrar Colombo", "registrar@example.com", UserRole.court_scheduler)


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}


@pytest.fixture
def headers_for() -> Callable[[User], Dict[str, str]]:
    return auth_headers


# ============================================================================
# Cases and requests
# ============================================================================

@pytest.fixture
def make_filed_case(db, client_user, lawyer) -> Callable[..., Case]:
    """Factory for filed cases with an accepted court filing."""
    counter = {"n": 0}

    def _make(
        case_number: str = None,
        district: str = "Colombo",
        case_type: str = "civil",
        client: User = None,
        assigned_lawyer: User = None,
        with_filing: bool = True,
    ) -> Case:
        counter["n"] += 1
        client = client or client_user
        assigned_lawyer = assigned_lawyer or lawyer
        case = Case(
            case_number=case_number or f"CL2025-{counter['n'] + 100:04d}",
            case_type=case_type,
            district=district,
            plaintiff_name=client.name,
            defendant_name=f"Defendant {counter['n']}",
            client_id=client.id,
            current_lawyer_id=assigned_lawyer.id,
            status=CaseStatus.filed,
        )
        db.add(case)
        db.flush()
        if with_filing:
            db.add(CourtFiling(
                case_id=case.id,
                lawyer_id=assigned_lawyer.id,
                court_name=f"District Court of {district}",
                district=district,
                status=CourtFilingStatus.filed,
                filed_at=datetime.utcnow() - timedelta(days=2),
            ))
        db.commit()
        db.refresh(case)
        return case

    return _make


@pytest.fixture
def queue_case(db, lawyer, make_filed_case) -> Callable[..., ScheduleRequest]:
    """Factory: filed case queued for scheduling by its lawyer."""

    def _queue(**case_kwargs) -> ScheduleRequest:
        case = make_filed_case(**case_kwargs)
        by = case_kwargs.get("assigned_lawyer") or lawyer
        return scheduler_service.request_scheduling(db, case.id, by, message="Please schedule")

    return _queue


@pytest.fixture
def scheduled_case(db, queue_case, scheduler):
    """CL2025-0001 heard in Court-1, Colombo on 2025-03-10 09:00-10:00."""
    request = queue_case(case_number="CL2025-0001")
    entry = scheduler_service.schedule_case(
        db,
        request.id,
        hearing_date="2025-03-10",
        start_time="09:00",
        end_time="10:00",
        scheduler=scheduler,
        courtroom="Court-1",
    )
    case = db.query(Case).filter(Case.id == entry.case_id).first()
    return case, entry
