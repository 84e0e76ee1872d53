"""Offset pagination over SQLModel select statements."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlmodel import Session, func, select


@dataclass
class Page:
    """One page of results plus the numbers needed to render a pager."""
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 5

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def first_item(self) -> Optional[int]:
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + 1

    @property
    def last_item(self) -> Optional[int]:
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + len(self.items)


def count(session: Session, stmt: Any) -> int:
    """Count rows matched by `stmt`, ignoring its ordering."""
    subq = stmt.order_by(None).subquery()
    return session.exec(select(func.count()).select_from(subq)).one()


def paginate(session: Session, stmt: Any, page: int = 1, per_page: int = 5) -> Page:
    """Return page `page` of `stmt`.

    Pages below 1 are clamped to 1. A page past the end yields no items
    but still reports the full total.
    """
    if per_page < 1:
        raise ValueError("per_page must be >= 1")
    page = max(1, page)
    total = count(session, stmt)
    items = session.exec(stmt.offset((page - 1) * per_page).limit(per_page)).all()
    return Page(items=list(items), total=total, page=page, per_page=per_page)
