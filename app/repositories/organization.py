"""Repositories for organisation entities."""

from __future__ import annotations

import datetime as dt
import uuid

from app.models import Announcement, Document, DocumentCategory, Employee
from app.models.scopes import Scope, published

from .base import SoftDeleteRepository, TenantRepository


class EmployeeRepository(SoftDeleteRepository[Employee]):
    model = Employee

    def find_by_number(self, employee_number: str) -> Employee | None:
        matches = self.list(employee_number=employee_number, limit=1)
        return matches[0] if matches else None

    def direct_reports(self, supervisor_id: uuid.UUID) -> list[Employee]:
        return self.list(supervisor_id=supervisor_id, order_by=Employee.last_name)


class AnnouncementRepository(TenantRepository[Announcement]):
    model = Announcement

    def published(self, now: dt.datetime | None = None, *scopes: Scope) -> list[Announcement]:
        """Announcements visible at ``now``, pinned ones first, newest first."""

        return self.list(
            published(Announcement, now),
            *scopes,
            order_by=(Announcement.is_pinned.desc(), Announcement.published_at.desc()),
        )


class DocumentCategoryRepository(TenantRepository[DocumentCategory]):
    model = DocumentCategory

    def active(self) -> list[DocumentCategory]:
        return self.list(is_active=True, order_by=DocumentCategory.name)


class DocumentRepository(TenantRepository[Document]):
    model = Document

    def for_employee(self, employee_id: uuid.UUID) -> list[Document]:
        return self.list(employee_id=employee_id, order_by=Document.title)

    def in_category(self, category_id: uuid.UUID) -> list[Document]:
        return self.list(category_id=category_id, order_by=Document.title)


__all__ = [
    "AnnouncementRepository",
    "DocumentCategoryRepository",
    "DocumentRepository",
    "EmployeeRepository",
]
