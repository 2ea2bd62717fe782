import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from database import get_db, init_db, make_engine
from core.room_manager import RoomManager
from main import app

ALICE = "user-alice"
BOB = "user-bob"
CAROL = "user-carol"


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
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
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def started_room(db):
    """Alice (X) created the room, Bob (O) joined: IN_PROGRESS, version 0"""
    room = RoomManager.create_room(db, ALICE)
    RoomManager.join_room(db, room.code, BOB)
    return {"id": room.id, "code": room.code}


def headers(user_id):
    return {"X-User-Id": user_id}
