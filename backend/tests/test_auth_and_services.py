from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from roster.main import app
from roster import models
from roster.auth import decode_token
from roster.config import Settings
from roster.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from roster.schemas import ClassIn, StudentIn
from roster.services import AuthService, ClassService, StudentService

client = TestClient(app)


def test_expired_token_is_rejected(session):
    auth = AuthService(session)
    user = auth.ensure_user("Old", "old@example.com")
    token = auth.issue_token(user, expires_in=timedelta(seconds=-10))
    with pytest.raises(AuthenticationError):
        decode_token(token)
    r = client.get("/user", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "token expired"


def test_token_for_deleted_user_is_rejected(session):
    auth = AuthService(session)
    user = auth.ensure_user("Gone", "gone@example.com")
    token = auth.issue_token(user)
    session.delete(user)
    session.commit()
    r = client.get("/user", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "user not found"


def test_ensure_user_is_idempotent(session):
    auth = AuthService(session)
    first = auth.ensure_user("A", "a@example.com")
    second = auth.ensure_user("B", "a@example.com")
    assert first.id == second.id


def test_deleted_student_lookup_raises_not_found(session, roster):
    svc = StudentService(session)
    svc.delete(roster.bence)
    with pytest.raises(NotFoundError):
        svc.get(roster.bence)
    assert roster.bence not in [st.id for st in svc.list().items]


def test_invalid_references_write_nothing(session, roster):
    svc = StudentService(session)
    data = StudentIn(name="Ghost", email="ghost@example.com", class_id=999, section_id=999)
    with pytest.raises(ValidationError) as exc:
        svc.create(data)
    assert set(exc.value.errors) == {"class_id", "section_id"}
    assert svc.list().total == 5


def test_update_rejects_bad_reference_and_keeps_row(session, roster):
    svc = StudentService(session)
    data = StudentIn(name="Changed", email="changed@example.com", class_id=roster.c1, section_id=roster.s2a)
    with pytest.raises(ValidationError):
        svc.update(roster.anna, data)
    session.expire_all()
    assert svc.get(roster.anna).name == "Anna Kovács"


def test_update_bumps_updated_at(session, roster):
    svc = StudentService(session)
    before = svc.get(roster.anna).updated_at
    svc.update(roster.anna, StudentIn(name="Anna K", email="anna@example.com", class_id=roster.c1, section_id=roster.s1a))
    assert svc.get(roster.anna).updated_at >= before


def test_class_delete_is_restricted_until_empty(session, roster):
    svc = ClassService(session)
    with pytest.raises(ConflictError):
        svc.delete(roster.c2)
    empty = svc.create(ClassIn(name="Empty"))
    svc.delete(empty.id)
    with pytest.raises(NotFoundError):
        svc.get(empty.id)


def test_store_enforces_foreign_keys(session, roster):
    from sqlalchemy.exc import IntegrityError
    session.add(models.Section(name="Orphan", class_id=999))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_settings_reject_default_secret_outside_dev(monkeypatch):
    monkeypatch.setenv("ENV", "prod")
    monkeypatch.setenv("JWT_SECRET", "change_me_for_prod")
    monkeypatch.delenv("ALLOW_INSECURE_JWT", raising=False)
    with pytest.raises(RuntimeError):
        Settings()


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("PAGE_SIZE", raising=False)
    monkeypatch.delenv("JWT_ALGORITHM", raising=False)
    s = Settings()
    assert s.PAGE_SIZE == 5
    assert s.JWT_ALGORITHM == "HS256"


def test_insert_with_vanished_reference_is_conflict(session, roster):
    from roster.repositories import StudentRepository, UserRepository
    repo = StudentRepository(session)
    with pytest.raises(ConflictError):
        repo.create(models.Student(name="Late", email="late@example.com", class_id=999, section_id=roster.s1a))
    # the session was rolled back and is still usable
    assert len(repo.list()) == 5
    UserRepository(session).create(models.User(name="One", email="same@example.com"))
    with pytest.raises(ConflictError):
        UserRepository(session).create(models.User(name="Two", email="same@example.com"))


def test_save_with_vanished_reference_is_conflict(session, roster):
    from roster.repositories import StudentRepository
    repo = StudentRepository(session)
    st = repo.get(roster.anna)
    st.section_id = 999
    with pytest.raises(ConflictError):
        repo.save(st)
    session.expire_all()
    assert repo.get(roster.anna).section_id == roster.s1a


def test_student_schema_keeps_email_spelling():
    data = StudentIn(name="Anna", email="Anna.K@Example.COM", class_id=1, section_id=1)
    assert data.email == "Anna.K@Example.COM"
