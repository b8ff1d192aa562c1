import os

# Keep app.main from creating ./wedding.db and from talking to a real SMTP server.
os.environ["ENABLE_CREATE_ALL"] = "0"
os.environ.pop("SMTP_HOST", None)

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app import models  # noqa: E402,F401
from app.core.security import create_access_token  # noqa: E402
from app.crud.user import create_user  # noqa: E402
from app.crud.wedding import create_wedding  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import make_engine  # noqa: E402
from app.services.audit import ensure_audit_table  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    db = factory()
    try:
        ensure_audit_table(db)
    finally:
        db.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    def _make(email, name=None, password="secret123"):
        return create_user(db, email=email, name=name or email.split("@")[0], password=password)

    return _make


@pytest.fixture
def owner(make_user):
    return make_user("olivia@wed.io", "Olivia")


@pytest.fixture
def wedding(db, owner):
    return create_wedding(db, owner_id=owner.id, name="Olivia & Sam", venue="Lake House")


@pytest.fixture
def notifier():
    """Records dispatched invitations instead of sending them."""
    sent = []

    def _dispatch(**kwargs):
        sent.append(kwargs)

    _dispatch.sent = sent
    return _dispatch


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from app.core.auth import get_db
    from app.main import app

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.email)}"}

    return _headers
