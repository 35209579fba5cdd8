# tests/conftest.py
import pytest

import db
from models.user import User


@pytest.fixture(autouse=True)
def database(tmp_path):
    """Fresh SQLite file per test."""
    db.configure_engine(f"sqlite:///{tmp_path / 'strivio-test.db'}")
    db.init_db()
    yield db.engine
    db.engine.dispose()


@pytest.fixture
def users(database):
    """Four seeded users keyed u1..u4; values are their ids."""
    with db.transaction("seed_users") as s:
        rows = [User(email=f"u{i}@strivio.test", name=f"User {i}") for i in range(1, 5)]
        s.add_all(rows)
        s.flush()
        ids = {f"u{i}": u.id for i, u in enumerate(rows, start=1)}
    return ids
