"""Resource projections: stored entities to external JSON shapes.

Every projection is written out by hand and returns a fixed set of keys.
Timestamps and other storage columns are never included, so adding a
column to a table does not change what the API emits.
"""

from typing import Callable, Iterable, List, Optional

from . import models
from .utils.pagination import Page


def class_ref(c: Optional[models.SchoolClass]) -> Optional[dict]:
    """Minimal `{id, name}` reference used when a class is embedded."""
    if c is None:
        return None
    return {'id': c.id, 'name': c.name}


def section_ref(s: Optional[models.Section]) -> Optional[dict]:
    if s is None:
        return None
    return {'id': s.id, 'name': s.name}


def class_resource(c: models.SchoolClass, with_sections: bool = False) -> dict:
    out = {'id': c.id, 'name': c.name}
    if with_sections:
        out['sections'] = [section_ref(s) for s in sorted(c.sections, key=lambda s: s.id)]
    return out


def section_resource(s: models.Section, with_class: bool = False) -> dict:
    out = {'id': s.id, 'name': s.name, 'class_id': s.class_id}
    if with_class:
        out['class'] = class_ref(s.school_class)
    return out


def student_resource(st: models.Student) -> dict:
    """Project a student with its class and section embedded as references.

    The raw foreign keys are kept alongside the embedded references so
    edit forms can bind to them directly.
    """
    return {
        'id': st.id,
        'name': st.name,
        'email': st.email,
        'class_id': st.class_id,
        'section_id': st.section_id,
        'class': class_ref(st.school_class),
        'section': section_ref(st.section),
    }


def user_resource(u: models.User) -> dict:
    return {'id': u.id, 'name': u.name, 'email': u.email}


def collection(projector: Callable[..., dict], items: Iterable, **options) -> List[dict]:
    """Project every item in order; duplicates are kept."""
    return [projector(item, **options) for item in items]


def paginated(page: Page, projector: Callable[..., dict], url_for_page: Callable[[int], str], **options) -> dict:
    """Wrap one `Page` as `{data, meta, links}`.

    `url_for_page` builds the absolute link for a page number so the
    projection stays independent of the request object.
    """
    last = page.last_page
    return {
        'data': collection(projector, page.items, **options),
        'meta': {
            'current_page': page.page,
            'last_page': last,
            'per_page': page.per_page,
            'total': page.total,
            'from': page.first_item,
            'to': page.last_item,
        },
        'links': {
            'first': url_for_page(1),
            'last': url_for_page(last),
            'prev': url_for_page(page.page - 1) if page.page > 1 else None,
            'next': url_for_page(page.page + 1) if page.page < last else None,
        },
    }
