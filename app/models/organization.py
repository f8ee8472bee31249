"""Organisation entities: employees, announcements and the document library."""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .enums import EmploymentStatus
from .mixins import PublicationWindow, SoftDeletes, TimestampMixin
from .tenancy import TenantModel
from .types import DateOnly, EnumCodec, FixedDecimal, StrictBoolean


class Employee(SoftDeletes, TimestampMixin, TenantModel):
    """An employee's 201 file.

    Attributes:
        user_id: Platform user linked to this employee, when they have a login.
        employee_number: Tenant-unique staff number.
        supervisor_id: Direct supervisor, another employee of the same tenant.
        basic_salary: Monthly basic pay, two decimal places.
    """

    __tablename__ = "employees"
    __table_args__ = (
        Index("ix_employees_tenant_number", "tenant_id", "employee_number", unique=True),
    )

    user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    employee_number: Mapped[str] = mapped_column(String(length=64), nullable=False)
    first_name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(length=320), nullable=True)
    date_of_birth: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    hire_date: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    employment_status: Mapped[EmploymentStatus] = mapped_column(
        EnumCodec(EmploymentStatus),
        nullable=False,
        default=EmploymentStatus.PROBATIONARY,
    )
    basic_salary: Mapped[Decimal | None] = mapped_column(FixedDecimal(), nullable=True)
    supervisor_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="SET NULL"),
        nullable=True,
    )

    supervisor: Mapped[Optional["Employee"]] = relationship(
        remote_side="Employee.id",
        back_populates="direct_reports",
    )
    direct_reports: Mapped[List["Employee"]] = relationship(back_populates="supervisor")
    documents: Mapped[List["Document"]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Announcement(PublicationWindow, TimestampMixin, TenantModel):
    """Company-wide notice shown only inside its publication window."""

    __tablename__ = "announcements"

    title: Mapped[str] = mapped_column(String(length=255), nullable=False)
    body: Mapped[str] = mapped_column(Text(), nullable=False, default="")
    is_pinned: Mapped[bool] = mapped_column(StrictBoolean(), nullable=False, default=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)


class DocumentCategory(TimestampMixin, TenantModel):
    __tablename__ = "document_categories"
    __table_args__ = (
        Index("ix_document_categories_tenant_name", "tenant_id", "name", unique=True),
    )

    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)
    is_active: Mapped[bool] = mapped_column(StrictBoolean(), nullable=False, default=True)

    documents: Mapped[List["Document"]] = relationship(
        back_populates="category",
        order_by="Document.title",
    )


class Document(TimestampMixin, TenantModel):
    """Metadata for an uploaded file; the bytes live in external storage."""

    __tablename__ = "documents"

    category_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("document_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    employee_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(length=255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(length=1024), nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(length=128), nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer(), nullable=True)
    is_confidential: Mapped[bool] = mapped_column(
        StrictBoolean(), nullable=False, default=False
    )
    expires_on: Mapped[dt.date | None] = mapped_column(DateOnly(), nullable=True)
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    category: Mapped[DocumentCategory | None] = relationship(back_populates="documents")
    employee: Mapped[Employee | None] = relationship(back_populates="documents")


__all__ = ["Announcement", "Document", "DocumentCategory", "Employee"]
