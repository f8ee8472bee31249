"""Named, composable query scopes.

A :class:`Scope` is plain data: a tuple of WHERE criteria plus an optional
soft-delete visibility. Scopes combine with ``&`` (or :func:`apply_scopes`)
by conjunction, so the result does not depend on the order they were
written in. Scopes only ever *narrow* a statement; the tenant predicate is
attached later by the session and cannot be reached from here.
"""

from __future__ import annotations

import datetime as dt
import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy import ColumnElement, Select, or_

from .types import utcnow

__all__ = [
    "SOFT_DELETE_VISIBILITY",
    "Scope",
    "TrashedVisibility",
    "apply_scopes",
    "only_deleted",
    "published",
    "where",
    "with_deleted",
]

SOFT_DELETE_VISIBILITY = "soft_delete_visibility"

StatementT = TypeVar("StatementT", bound=Select[Any])


class TrashedVisibility(str, enum.Enum):
    """How soft-deleted rows are treated by a query."""

    EXCLUDE = "exclude"
    INCLUDE = "include"
    ONLY = "only"


def _merge_visibility(
    left: TrashedVisibility | None, right: TrashedVisibility | None
) -> TrashedVisibility | None:
    if left is None or left == right:
        return right
    if right is None:
        return left
    raise ValueError(f"Conflicting soft-delete scopes: {left.value} and {right.value}")


@dataclass(frozen=True, eq=False)
class Scope:
    """A reusable predicate applied at query-build time."""

    name: str
    criteria: tuple[ColumnElement[bool], ...] = ()
    visibility: TrashedVisibility | None = None

    def __and__(self, other: "Scope") -> "Scope":
        return Scope(
            name=f"{self.name}&{other.name}",
            criteria=self.criteria + other.criteria,
            visibility=_merge_visibility(self.visibility, other.visibility),
        )

    def apply(self, statement: StatementT) -> StatementT:
        if self.criteria:
            statement = statement.where(*self.criteria)
        if self.visibility is not None:
            statement = statement.execution_options(
                **{SOFT_DELETE_VISIBILITY: self.visibility}
            )
        return statement


def apply_scopes(statement: StatementT, scopes: Iterable[Scope]) -> StatementT:
    """AND every scope in ``scopes`` onto ``statement``."""

    combined: Scope | None = None
    for scope in scopes:
        combined = scope if combined is None else combined & scope
    if combined is None:
        return statement
    return combined.apply(statement)


def where(name: str, *criteria: ColumnElement[bool]) -> Scope:
    """Wrap ad-hoc criteria in a named scope."""

    return Scope(name=name, criteria=tuple(criteria))


def published(model: Any, now: dt.datetime | None = None) -> Scope:
    """Rows whose publication window contains ``now``.

    ``now`` is captured once when the scope is built and bound as a literal,
    so every row of the query is judged against the same instant.
    """

    moment = now if now is not None else utcnow()
    return Scope(
        name="published",
        criteria=(
            model.published_at.is_not(None),
            model.published_at <= moment,
            or_(model.expires_at.is_(None), model.expires_at >= moment),
        ),
    )


def with_deleted() -> Scope:
    """Include soft-deleted rows alongside live ones."""

    return Scope(name="with_deleted", visibility=TrashedVisibility.INCLUDE)


def only_deleted() -> Scope:
    """Restrict the query to soft-deleted rows."""

    return Scope(name="only_deleted", visibility=TrashedVisibility.ONLY)
