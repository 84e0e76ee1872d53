"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table and uses relationships where appropriate.
Foreign keys are declared `ON DELETE RESTRICT`: a class or section that
is still referenced cannot be removed.
"""

from typing import Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone
from typing import List


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """An API caller identified by bearer token."""
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    created_at: datetime = Field(default_factory=utcnow)


class SchoolClass(SQLModel, table=True):
    """A school class (e.g. "9.A"); owns many sections and students."""
    __tablename__ = "classes"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    sections: List['Section'] = Relationship(back_populates='school_class', sa_relationship_kwargs={'passive_deletes': 'all'})
    students: List['Student'] = Relationship(back_populates='school_class', sa_relationship_kwargs={'passive_deletes': 'all'})


class Section(SQLModel, table=True):
    """A section belonging to exactly one `SchoolClass`."""
    __tablename__ = "sections"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    class_id: int = Field(foreign_key='classes.id', index=True, ondelete='RESTRICT')
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    school_class: Optional[SchoolClass] = Relationship(back_populates='sections')
    students: List['Student'] = Relationship(back_populates='section', sa_relationship_kwargs={'passive_deletes': 'all'})


class Student(SQLModel, table=True):
    """A student enrolled in a class and one of its sections.

    `class_id` and `section_id` are nullable at the storage level; the
    request schemas require both on create and update.
    """
    __tablename__ = "students"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    email: str = Field(index=True)
    class_id: Optional[int] = Field(default=None, foreign_key='classes.id', index=True, ondelete='RESTRICT')
    section_id: Optional[int] = Field(default=None, foreign_key='sections.id', index=True, ondelete='RESTRICT')
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    school_class: Optional[SchoolClass] = Relationship(back_populates='students')
    section: Optional[Section] = Relationship(back_populates='students')
