"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories.
Services are intentionally thin: they validate references, enforce the
delete policy and persist aggregates via repositories. They raise the
exceptions from `roster.errors`; the HTTP layer turns those into
responses.

Delete policy is restrict: a class with sections or students, or a
section with students, cannot be deleted until its dependants are moved
or removed.
"""

from datetime import datetime, timedelta, timezone
import json
import logging
from typing import Dict, List, Optional

import jwt
from sqlmodel import Session

from . import models, repositories
from .config import settings
from .errors import ConflictError, NotFoundError, ValidationError
from .schemas import ClassFilters, ClassIn, SectionFilters, SectionIn, StudentFilters, StudentIn
from .utils.pagination import Page

logger = logging.getLogger("roster.services")


def _log(event: str, **fields) -> None:
    logger.info("%s %s", event, json.dumps(fields, ensure_ascii=True, default=str))


class AuthService:
    """Bearer token issuance for API callers."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def ensure_user(self, name: str, email: str) -> models.User:
        """Return the user with `email`, creating it on first use."""
        existing = self.user_repo.get_by_email(email)
        if existing:
            return existing
        user = self.user_repo.create(models.User(name=name, email=email))
        _log("user_created", user_id=user.id)
        return user

    def issue_token(self, user: models.User, expires_in: Optional[timedelta] = None) -> str:
        """Return a signed JWT carrying `user_id` for `user`."""
        expire = datetime.now(timezone.utc) + (expires_in or timedelta(hours=settings.JWT_EXPIRE_HOURS))
        payload = {"user_id": user.id, "email": user.email, "exp": int(expire.timestamp())}
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


class ClassService:
    """List, create, rename and delete classes."""
    def __init__(self, session: Session):
        self.session = session
        self.class_repo = repositories.ClassRepository(session)

    def list(self, filters: Optional[ClassFilters] = None, with_sections: bool = False) -> List[models.SchoolClass]:
        return self.class_repo.list(filters, with_sections=with_sections)

    def get(self, class_id: int) -> models.SchoolClass:
        c = self.class_repo.get(class_id)
        if not c:
            raise NotFoundError("class", class_id)
        return c

    def create(self, data: ClassIn) -> models.SchoolClass:
        c = self.class_repo.create(models.SchoolClass(name=data.name))
        _log("class_created", class_id=c.id)
        return c

    def update(self, class_id: int, data: ClassIn) -> models.SchoolClass:
        c = self.get(class_id)
        c.name = data.name
        c = self.class_repo.save(c)
        _log("class_updated", class_id=c.id)
        return c

    def delete(self, class_id: int) -> None:
        """Delete a class that nothing references any more."""
        c = self.get(class_id)
        if self.class_repo.has_sections(class_id):
            raise ConflictError(f"class {class_id} still has sections")
        if self.class_repo.has_students(class_id):
            raise ConflictError(f"class {class_id} still has students")
        self.class_repo.delete(c)
        _log("class_deleted", class_id=class_id)


class SectionService:
    """List, create, update and delete sections."""
    def __init__(self, session: Session):
        self.session = session
        self.section_repo = repositories.SectionRepository(session)
        self.class_repo = repositories.ClassRepository(session)

    def list(self, filters: Optional[SectionFilters] = None) -> List[models.Section]:
        return self.section_repo.list(filters)

    def get(self, section_id: int) -> models.Section:
        s = self.section_repo.get(section_id)
        if not s:
            raise NotFoundError("section", section_id)
        return s

    def create(self, data: SectionIn) -> models.Section:
        self._check_class(data.class_id)
        s = self.section_repo.create(models.Section(name=data.name, class_id=data.class_id))
        _log("section_created", section_id=s.id, class_id=s.class_id)
        return s

    def update(self, section_id: int, data: SectionIn) -> models.Section:
        s = self.get(section_id)
        self._check_class(data.class_id)
        if data.class_id != s.class_id and self.section_repo.has_students(section_id):
            raise ValidationError.for_field(
                "class_id", "a section with students cannot be moved to another class"
            )
        s.name = data.name
        s.class_id = data.class_id
        s = self.section_repo.save(s)
        _log("section_updated", section_id=s.id, class_id=s.class_id)
        return s

    def delete(self, section_id: int) -> None:
        s = self.get(section_id)
        if self.section_repo.has_students(section_id):
            raise ConflictError(f"section {section_id} still has students")
        self.section_repo.delete(s)
        _log("section_deleted", section_id=section_id)

    def _check_class(self, class_id: int) -> None:
        if not self.class_repo.get(class_id):
            raise ValidationError.for_field("class_id", "the selected class does not exist")


class StudentService:
    """Filtered listing and full-record create/update/delete of students."""
    def __init__(self, session: Session):
        self.session = session
        self.student_repo = repositories.StudentRepository(session)
        self.class_repo = repositories.ClassRepository(session)
        self.section_repo = repositories.SectionRepository(session)

    def list(self, filters: Optional[StudentFilters] = None, page: int = 1, per_page: Optional[int] = None) -> Page:
        """Return one page of students matching `filters`."""
        return self.student_repo.paginate(filters, page=page, per_page=per_page or settings.PAGE_SIZE)

    def get(self, student_id: int) -> models.Student:
        st = self.student_repo.get(student_id)
        if not st:
            raise NotFoundError("student", student_id)
        return st

    def create(self, data: StudentIn) -> models.Student:
        """Validate references then insert; nothing is written on failure."""
        self._check_references(data.class_id, data.section_id)
        st = self.student_repo.create(models.Student(
            name=data.name,
            email=str(data.email),
            class_id=data.class_id,
            section_id=data.section_id,
        ))
        _log("student_created", student_id=st.id)
        return st

    def update(self, student_id: int, data: StudentIn) -> models.Student:
        """Overwrite every field of the student with `data`.

        There is no version check: two concurrent updates both succeed
        and the last one written wins.
        """
        st = self.get(student_id)
        self._check_references(data.class_id, data.section_id)
        st.name = data.name
        st.email = str(data.email)
        st.class_id = data.class_id
        st.section_id = data.section_id
        st = self.student_repo.save(st)
        _log("student_updated", student_id=st.id)
        return st

    def delete(self, student_id: int) -> None:
        st = self.get(student_id)
        self.student_repo.delete(st)
        _log("student_deleted", student_id=student_id)

    def _check_references(self, class_id: int, section_id: int) -> None:
        errors: Dict[str, List[str]] = {}
        school_class = self.class_repo.get(class_id)
        if not school_class:
            errors["class_id"] = ["the selected class does not exist"]
        section = self.section_repo.get(section_id)
        if not section:
            errors["section_id"] = ["the selected section does not exist"]
        elif school_class and section.class_id != school_class.id:
            errors["section_id"] = ["the selected section does not belong to the selected class"]
        if errors:
            raise ValidationError(errors)

