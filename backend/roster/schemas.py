"""Pydantic request schemas used by the API.

Schemas keep API input shapes stable and provide validation for
controller handlers and tests. Filter schemas normalise query strings:
values are trimmed and blank values become `None`, so the search scopes
only ever see a real term or nothing at all.
"""

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field
from typing import Annotated, Optional

# largest value a SQLite INTEGER primary key can hold
MAX_ID = 2 ** 63 - 1


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    return value


def _check_email(value: str) -> str:
    """Reject invalid addresses but keep the submitted spelling as is."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc))
    return value


Id = Annotated[int, Field(ge=1, le=MAX_ID)]
SearchTerm = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
EntityId = Annotated[Optional[Id], BeforeValidator(_blank_to_none)]
Email = Annotated[str, Field(max_length=255), AfterValidator(_check_email)]


class StudentFilters(BaseModel):
    """Optional list parameters for `GET /students`."""
    search: SearchTerm = None
    class_id: EntityId = None
    section_id: EntityId = None


class ClassFilters(BaseModel):
    """Optional list parameters for `GET /classes`."""
    search: SearchTerm = None


class SectionFilters(BaseModel):
    """Optional list parameters for `GET /sections`."""
    class_id: EntityId = None


class StudentIn(BaseModel):
    """Full student record used by create and update (PUT and PATCH alike)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: Email
    class_id: Id
    section_id: Id


class ClassIn(BaseModel):
    """Payload for creating or renaming a class."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)


class SectionIn(BaseModel):
    """Payload for creating or updating a section."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    class_id: Id
