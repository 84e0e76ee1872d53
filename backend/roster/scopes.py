"""Search/filter scopes for entity queries.

A scope turns optional request parameters into a list of predicates and
folds that list into a `select()` statement. A parameter that is absent
contributes no predicate at all, so the unfiltered statement is returned
untouched and counting or pagination over it behaves exactly like an
unscoped query. `Select` objects are immutable; every function here
returns a new statement and never changes the one it was given.
"""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel.sql.expression import Select

from . import models
from .schemas import ClassFilters, SectionFilters, StudentFilters

Predicate = ColumnElement[bool]


def contains(column, term: str) -> Predicate:
    """`column LIKE '%term%'` with `%` and `_` in the term matched literally."""
    return column.contains(term, autoescape=True)


def student_predicates(filters: StudentFilters) -> List[Predicate]:
    predicates: List[Predicate] = []
    if filters.search:
        # name/email is one OR group so it ANDs cleanly with the id filters
        predicates.append(or_(
            contains(models.Student.name, filters.search),
            contains(models.Student.email, filters.search),
        ))
    if filters.class_id is not None:
        predicates.append(models.Student.class_id == filters.class_id)
    if filters.section_id is not None:
        predicates.append(models.Student.section_id == filters.section_id)
    return predicates


def class_predicates(filters: ClassFilters) -> List[Predicate]:
    predicates: List[Predicate] = []
    if filters.search:
        predicates.append(contains(models.SchoolClass.name, filters.search))
    return predicates


def section_predicates(filters: SectionFilters) -> List[Predicate]:
    predicates: List[Predicate] = []
    if filters.class_id is not None:
        predicates.append(models.Section.class_id == filters.class_id)
    return predicates


def apply_predicates(stmt: Select, predicates: List[Predicate]) -> Select:
    """AND all predicates onto `stmt`; an empty list returns `stmt` as is."""
    if not predicates:
        return stmt
    return stmt.where(*predicates)


def search_students(stmt: Select, filters: Optional[StudentFilters] = None) -> Select:
    return apply_predicates(stmt, student_predicates(filters or StudentFilters()))


def search_classes(stmt: Select, filters: Optional[ClassFilters] = None) -> Select:
    return apply_predicates(stmt, class_predicates(filters or ClassFilters()))


def search_sections(stmt: Select, filters: Optional[SectionFilters] = None) -> Select:
    return apply_predicates(stmt, section_predicates(filters or SectionFilters()))
