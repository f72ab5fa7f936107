"""
Pytest configuration and fixtures: a fresh in-memory database per test,
a TestClient wired to it and one authenticated user per role
"""

import os

# Set SECRET_KEY before clinic.config is imported
os.environ.setdefault("SECRET_KEY", "test_secret_key_for_clinic_tests")

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic import models_inventory, models_invoice  # noqa: F401
from clinic.database import Base, get_db
from clinic.domain.appointments.repository import AppointmentRepository
from clinic.main import create_app
from clinic.models import Patient, User, UserRole
from clinic.security_utils import create_access_token, hash_password

TEST_PASSWORD = "password123"


@pytest.fixture(scope="session")
def password_hash():
    """bcrypt is slow; hash the shared test password once"""
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def session_factory():
    """Fresh in-memory schema with chairs 1..3 seeded"""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = factory()
    AppointmentRepository.ensure_chairs(session, 3)
    session.close()

    yield factory

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def users(db, password_hash):
    """One active user per role, keyed by role"""
    created = {}
    for role in UserRole:
        user = User(
            email=f"{role.value.lower()}@dentalclinic.com",
            password_hash=password_hash,
            first_name=role.value.title(),
            last_name="User",
            role=role,
        )
        db.add(user)
        created[role] = user
    db.commit()
    for user in created.values():
        db.refresh(user)
    return created


@pytest.fixture
def doctor(users):
    return users[UserRole.DOCTOR]


@pytest.fixture
def admin(users):
    return users[UserRole.ADMIN]


@pytest.fixture
def patient(db):
    patient = Patient(
        first_name="Asha",
        last_name="Rao",
        date_of_birth=date(1990, 5, 17),
        gender="F",
        phone="9876543210",
        email="asha.rao@gmail.com",
        address="12 MG Road",
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


def token_for(user: User) -> str:
    return create_access_token({"user_id": user.id, "email": user.email, "role": user.role.value})


@pytest.fixture
def auth_headers(users):
    """Authorization headers keyed by role"""
    return {role: {"Authorization": f"Bearer {token_for(user)}"} for role, user in users.items()}


@pytest.fixture
def headers(auth_headers):
    """Receptionist headers, the default caller for most endpoints"""
    return auth_headers[UserRole.RECEPTIONIST]


@pytest.fixture
def client(session_factory):
    """TestClient whose requests use the test database"""
    app = create_app(use_lifespan=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
