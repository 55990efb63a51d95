import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from langnotes.db import Base, get_db
from langnotes.guard import KNOWN_ROLES
from langnotes.main import app
from langnotes.models import Language, Note, Role, User, UserRole
from langnotes.routers import auth
from langnotes.routers.languages import get_rng
from langnotes.routers.roles import ensure_known_roles

# Minimum bcrypt cost keeps signup-heavy tests fast
auth.pwd_context.update(bcrypt__rounds=4)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    db = factory()
    ensure_known_roles(db, KNOWN_ROLES)
    db.close()
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rng] = lambda: random.Random(1234)
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def signup(client):
    counter = {"n": 0}

    def _signup(email=None, password="secret123"):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        r = client.post("/auth/signup", json={"email": email, "password": password})
        assert r.status_code == 201, r.text
        body = r.json()
        return {"id": body["userId"], "token": body["accessToken"], "headers": auth_headers(body["accessToken"])}

    return _signup


@pytest.fixture
def grant_role(session_factory):
    def _grant(user_id, role_name):
        session = session_factory()
        try:
            role = session.execute(select(Role).where(Role.name == role_name)).scalar_one()
            session.add(UserRole(user_id=user_id, role_id=role.id))
            session.commit()
        finally:
            session.close()

    return _grant


@pytest.fixture
def make_language(db):
    """Create an owner, a language and notes straight in the database."""

    def _make(intensities=(), owner_id=None, translations=None):
        if owner_id is None:
            owner = User(email=f"owner{random.random()}@example.com", password_hash="x")
            db.add(owner)
            db.flush()
            owner_id = owner.id
        language = Language(owner_id=owner_id, name="Japanese", description="kana and kanji")
        db.add(language)
        db.flush()
        for i, intensity in enumerate(intensities):
            answer = translations[i] if translations else f"answer-{i}"
            db.add(Note(language_id=language.id, name=f"prompt-{i}", translation=answer, intensity=intensity))
        db.commit()
        return language

    return _make
