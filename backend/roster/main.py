"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the student roster backend.
Controllers are intentionally thin: they parse request parameters,
delegate to services, project the results through `roster.resources`
and return JSON or a redirect back to the list page.

Endpoints implemented:
- GET /students, GET /students/create, POST /students
- GET /students/{id}, GET /students/{id}/edit
- PUT|PATCH /students/{id}, DELETE /students/{id}
- GET|POST /classes, PUT|DELETE /classes/{id}
- GET|POST /sections, PUT|DELETE /sections/{id}
- GET /user
- GET /health
"""

from fastapi import FastAPI, Depends, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.middleware.cors import CORSMiddleware
import pydantic
from sqlmodel import Session
from typing import Annotated, Dict, List, Optional
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import models, resources, services
from .auth import get_current_user
from .config import settings
from .errors import AuthenticationError, RosterError, ValidationError
from .schemas import MAX_ID, ClassFilters, ClassIn, SectionFilters, SectionIn, StudentFilters, StudentIn

app = FastAPI(title="Student Roster API")
logger = logging.getLogger("roster.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

STUDENTS_URL = "/students"
CLASSES_URL = "/classes"
SECTIONS_URL = "/sections"

# ids outside the store's INTEGER range are rejected before any query runs
PathId = Annotated[int, Path(ge=1, le=MAX_ID)]

# Wide-open CORS keeps a locally served frontend working without extra config in dev.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    record = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        "client": request.client.host if request.client else "unknown",
    }
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        record["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception("request_failed %s", json.dumps(record, ensure_ascii=True))
        raise
    response.headers["X-Request-ID"] = req_id
    record["status_code"] = response.status_code
    record["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info("request_done %s", json.dumps(record, ensure_ascii=True))
    return response


def _field_errors(errors) -> Dict[str, List[str]]:
    """Group pydantic error entries by the field they refer to."""
    out: Dict[str, List[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = loc[-1] if loc else "__root__"
        out.setdefault(field, []).append(err.get("msg", "invalid value"))
    return out


@app.exception_handler(RosterError)
async def roster_error_handler(request: Request, exc: RosterError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    if exc.status_code >= 500:
        logger.error("roster_error %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    err = ValidationError(_field_errors(exc.errors()))
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


def _parse_filters(model, **params):
    try:
        return model.model_validate(params)
    except pydantic.ValidationError as exc:
        raise ValidationError(_field_errors(exc.errors()))


def student_filters(
    search: Optional[str] = None,
    class_id: Optional[str] = None,
    section_id: Optional[str] = None,
) -> StudentFilters:
    """Query parameters for the student list; blank values mean "not given"."""
    return _parse_filters(StudentFilters, search=search, class_id=class_id, section_id=section_id)


def class_filters(search: Optional[str] = None) -> ClassFilters:
    return _parse_filters(ClassFilters, search=search)


def section_filters(class_id: Optional[str] = None) -> SectionFilters:
    return _parse_filters(SectionFilters, class_id=class_id)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


@app.get(STUDENTS_URL)
def list_students(
    request: Request,
    page: Annotated[int, Query(le=MAX_ID // settings.PAGE_SIZE)] = 1,
    filters: StudentFilters = Depends(student_filters),
    db: Session = Depends(get_session),
):
    """Paginated, filtered student list plus the lookups the list page needs.

    `search` is echoed back (empty string when not given) so the page
    can keep its search box filled in.
    """
    student_page = services.StudentService(db).list(filters, page=page)
    return {
        'students': resources.paginated(
            student_page,
            resources.student_resource,
            lambda n: str(request.url.include_query_params(page=n)),
        ),
        'classes': resources.collection(resources.class_resource, services.ClassService(db).list()),
        'sections': resources.collection(resources.section_resource, services.SectionService(db).list()),
        'search': filters.search or '',
    }


@app.get(STUDENTS_URL + '/create')
def create_student_form(db: Session = Depends(get_session)):
    """Form context for creating a student: the list of classes."""
    return {'classes': resources.collection(resources.class_resource, services.ClassService(db).list())}


@app.post(STUDENTS_URL)
def store_student(payload: StudentIn, db: Session = Depends(get_session)):
    """Create a student and redirect to the list."""
    services.StudentService(db).create(payload)
    return _redirect(STUDENTS_URL)


@app.get(STUDENTS_URL + '/{student_id}')
def show_student(student_id: PathId, db: Session = Depends(get_session)):
    st = services.StudentService(db).get(student_id)
    return {'student': resources.student_resource(st)}


@app.get(STUDENTS_URL + '/{student_id}/edit')
def edit_student_form(student_id: PathId, db: Session = Depends(get_session)):
    """Form context for editing a student: the student and all classes."""
    st = services.StudentService(db).get(student_id)
    return {
        'student': resources.student_resource(st),
        'classes': resources.collection(resources.class_resource, services.ClassService(db).list()),
    }


@app.api_route(STUDENTS_URL + '/{student_id}', methods=['PUT', 'PATCH'])
def update_student(student_id: PathId, payload: StudentIn, db: Session = Depends(get_session)):
    """Overwrite the full student record. PATCH takes the same full body as PUT."""
    services.StudentService(db).update(student_id, payload)
    return _redirect(STUDENTS_URL)


@app.delete(STUDENTS_URL + '/{student_id}')
def destroy_student(student_id: PathId, db: Session = Depends(get_session)):
    services.StudentService(db).delete(student_id)
    return _redirect(STUDENTS_URL)


@app.get(CLASSES_URL)
def list_classes(
    filters: ClassFilters = Depends(class_filters),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """List classes (optionally filtered by `search`) with their sections."""
    classes = services.ClassService(db).list(filters, with_sections=True)
    return resources.collection(resources.class_resource, classes, with_sections=True)


@app.post(CLASSES_URL)
def store_class(payload: ClassIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.ClassService(db).create(payload)
    return _redirect(CLASSES_URL)


@app.put(CLASSES_URL + '/{class_id}')
def update_class(class_id: PathId, payload: ClassIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.ClassService(db).update(class_id, payload)
    return _redirect(CLASSES_URL)


@app.delete(CLASSES_URL + '/{class_id}')
def destroy_class(class_id: PathId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Delete a class; refused with 409 while sections or students reference it."""
    services.ClassService(db).delete(class_id)
    return _redirect(CLASSES_URL)


@app.get(SECTIONS_URL)
def list_sections(filters: SectionFilters = Depends(section_filters), db: Session = Depends(get_session)):
    """List sections (optionally for one `class_id`) with their class embedded."""
    sections = services.SectionService(db).list(filters)
    return resources.collection(resources.section_resource, sections, with_class=True)


@app.post(SECTIONS_URL)
def store_section(payload: SectionIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.SectionService(db).create(payload)
    return _redirect(SECTIONS_URL)


@app.put(SECTIONS_URL + '/{section_id}')
def update_section(section_id: PathId, payload: SectionIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.SectionService(db).update(section_id, payload)
    return _redirect(SECTIONS_URL)


@app.delete(SECTIONS_URL + '/{section_id}')
def destroy_section(section_id: PathId, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Delete a section; refused with 409 while students reference it."""
    services.SectionService(db).delete(section_id)
    return _redirect(SECTIONS_URL)


@app.get('/user')
def current_user(user: models.User = Depends(get_current_user)):
    """Return the identity behind the bearer token."""
    return resources.user_resource(user)


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
