import os
import tempfile
from pathlib import Path
from types import SimpleNamespace

# Point the app at a throwaway database before any `roster` module reads settings.
_DB_DIR = Path(tempfile.mkdtemp(prefix="roster-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ["ENV"] = "dev"
os.environ.setdefault("JWT_SECRET", "roster-test-secret-0123456789abcdef")

import pytest
from sqlmodel import SQLModel, Session

from roster.database import engine
from roster import models
from roster.services import AuthService


@pytest.fixture(autouse=True)
def reset_db():
    """Give every test a fresh set of empty tables."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def roster(session):
    """Two classes with two sections each and five students.

    "anna" matches Anna (name), Hanna (name) and Dániel (email).
    """
    c1 = models.SchoolClass(name="Class 1")
    c2 = models.SchoolClass(name="Class 2")
    session.add_all([c1, c2])
    session.commit()
    s1a = models.Section(name="A", class_id=c1.id)
    s1b = models.Section(name="B", class_id=c1.id)
    s2a = models.Section(name="A", class_id=c2.id)
    s2b = models.Section(name="B", class_id=c2.id)
    session.add_all([s1a, s1b, s2a, s2b])
    session.commit()
    rows = [
        ("anna", "Anna Kovács", "anna@example.com", c1, s1a),
        ("bence", "Bence Nagy", "bence@example.com", c1, s1b),
        ("hanna", "Hanna Tóth", "hanna.toth@example.com", c2, s2a),
        ("daniel", "Dániel Szabó", "annabel.fan@example.com", c2, s2b),
        ("eszter", "Eszter Varga", "eszter@example.com", c2, s2a),
    ]
    students = {}
    for key, name, email, c, s in rows:
        st = models.Student(name=name, email=email, class_id=c.id, section_id=s.id)
        session.add(st)
        students[key] = st
    session.commit()
    return SimpleNamespace(
        c1=c1.id, c2=c2.id,
        s1a=s1a.id, s1b=s1b.id, s2a=s2a.id, s2b=s2b.id,
        **{key: st.id for key, st in students.items()},
    )


@pytest.fixture
def auth_headers(session):
    auth = AuthService(session)
    user = auth.ensure_user("Teacher", "teacher@example.com")
    return {"Authorization": f"Bearer {auth.issue_token(user)}"}
