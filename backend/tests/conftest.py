import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.base import Base
from app.db.init_db import seed_system
from app.db.session import enable_sqlite_savepoints, get_db
from app.main import app

ADMIN_PASSWORD = "admin-pass-1"
USER_PASSWORD = "user-pass-1"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = factory()
    try:
        seed_system(db)
    finally:
        db.close()
    return factory


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
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, password, username=None, email=None):
    body = {"password": password}
    if username is not None:
        body["username"] = username
    if email is not None:
        body["email"] = email
    r = client.post("/api/login", json=body)
    assert r.status_code == 200, r.text
    token = r.cookies[settings.SESSION_COOKIE_NAME]
    # every test call states its caller explicitly
    client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}


def change_password(client, headers, old, new):
    r = client.put("/api/me/password", json={"old_password": old, "new_password": new}, headers=headers)
    assert r.status_code == 200, r.text


@pytest.fixture
def admin(client):
    headers = login(client, settings.ADMIN_INITIAL_PASSWORD, username=settings.ADMIN_USERNAME)
    change_password(client, headers, settings.ADMIN_INITIAL_PASSWORD, ADMIN_PASSWORD)
    return login(client, ADMIN_PASSWORD, username=settings.ADMIN_USERNAME)


@pytest.fixture
def make_user(client, admin):
    """Create a user through the admin and return ``(user_id, headers)`` past the forced change."""

    def _make(username):
        r = client.post("/api/users", json={"username": username, "password": "initial"}, headers=admin)
        assert r.status_code == 200, r.text
        headers = login(client, "initial", username=username)
        change_password(client, headers, "initial", USER_PASSWORD)
        return r.json()["id"], login(client, USER_PASSWORD, username=username)

    return _make


@pytest.fixture
def make_team(client, admin):
    def _make(name, leader_id=None, member_ids=()):
        r = client.post("/api/teams", json={"name": name}, headers=admin)
        assert r.status_code == 200, r.text
        team_id = r.json()["id"]
        ids = list(member_ids)
        if leader_id is not None and leader_id not in ids:
            ids.append(leader_id)
        for user_id in ids:
            r = client.post(f"/api/teams/{team_id}/users", json={"user_id": user_id}, headers=admin)
            assert r.status_code == 200, r.text
        if leader_id is not None:
            r = client.patch(
                f"/api/teams/{team_id}",
                json=[{"op": "replace", "path": "/leader", "value": {"id": leader_id}}],
                headers=admin,
            )
            assert r.status_code == 200, r.text
        return team_id

    return _make
