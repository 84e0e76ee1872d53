"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
classes, sections, students). Repositories return SQLModel objects and
perform commits/refreshes where appropriate. List queries go through
the scopes in `roster.scopes`.
"""

from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select
from . import models, scopes
from .errors import ConflictError
from .schemas import ClassFilters, SectionFilters, StudentFilters
from .utils.pagination import Page, paginate


class _Repository:
    """Shared write helpers; subclasses set `model`."""
    model = None

    def __init__(self, session: Session):
        self.session = session

    def get(self, entity_id: int):
        """Fetch a row by primary key or `None`."""
        return self.session.get(self.model, entity_id)

    def _commit(self, message: str) -> None:
        """Commit, turning a store-level constraint refusal into a conflict."""
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError(message) from exc

    def create(self, obj):
        """Persist a new row and return the managed instance."""
        self.session.add(obj)
        self._commit("row violates a store constraint (missing reference or duplicate)")
        self.session.refresh(obj)
        return obj

    def save(self, obj):
        """Write back a full overwrite of an existing row."""
        if hasattr(obj, "updated_at"):
            obj.updated_at = models.utcnow()
        self.session.add(obj)
        self._commit("row violates a store constraint (missing reference or duplicate)")
        self.session.refresh(obj)
        return obj

    def delete(self, obj) -> None:
        self.session.delete(obj)
        self._commit("row is still referenced and cannot be deleted")


class UserRepository(_Repository):
    """CRUD operations for `User` objects."""
    model = models.User

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a `User` by email or `None` if not found."""
        stmt = select(models.User).where(models.User.email == email)
        return self.session.exec(stmt).first()


class ClassRepository(_Repository):
    """CRUD operations for `SchoolClass` records."""
    model = models.SchoolClass

    def list(self, filters: Optional[ClassFilters] = None, with_sections: bool = False) -> List[models.SchoolClass]:
        """Return classes matching `filters`, ordered by id."""
        stmt = scopes.search_classes(select(models.SchoolClass), filters).order_by(models.SchoolClass.id)
        if with_sections:
            stmt = stmt.options(selectinload(models.SchoolClass.sections))
        return self.session.exec(stmt).all()

    def has_sections(self, class_id: int) -> bool:
        stmt = select(models.Section.id).where(models.Section.class_id == class_id)
        return self.session.exec(stmt).first() is not None

    def has_students(self, class_id: int) -> bool:
        stmt = select(models.Student.id).where(models.Student.class_id == class_id)
        return self.session.exec(stmt).first() is not None


class SectionRepository(_Repository):
    """CRUD operations for `Section` records."""
    model = models.Section

    def list(self, filters: Optional[SectionFilters] = None) -> List[models.Section]:
        """Return sections matching `filters` with their class loaded."""
        stmt = (
            scopes.search_sections(select(models.Section), filters)
            .options(selectinload(models.Section.school_class))
            .order_by(models.Section.id)
        )
        return self.session.exec(stmt).all()

    def has_students(self, section_id: int) -> bool:
        stmt = select(models.Student.id).where(models.Student.section_id == section_id)
        return self.session.exec(stmt).first() is not None


class StudentRepository(_Repository):
    """CRUD operations and the filtered listing for `Student` records."""
    model = models.Student

    def query(self, filters: Optional[StudentFilters] = None):
        """Build the scoped, ordered statement behind the student list."""
        return (
            scopes.search_students(select(models.Student), filters)
            .options(
                selectinload(models.Student.school_class),
                selectinload(models.Student.section),
            )
            .order_by(models.Student.id)
        )

    def list(self, filters: Optional[StudentFilters] = None) -> List[models.Student]:
        return self.session.exec(self.query(filters)).all()

    def paginate(self, filters: Optional[StudentFilters] = None, page: int = 1, per_page: int = 5) -> Page:
        """Return one page of the filtered student list."""
        return paginate(self.session, self.query(filters), page=page, per_page=per_page)
