"""Column types converting stored primitives to domain values.

Each type is attached to a column once, at class-definition time, so the
conversion applied to a field never depends on the value being read. On
dialects without a faithful native representation (SQLite) the values are
stored as canonical strings and parsed here, which keeps decoding strict:
anything that does not map onto the domain type raises
:class:`~app.core.errors.DecodeError` instead of being coerced.
"""

from __future__ import annotations

import datetime as dt
import enum
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, TypeVar

from sqlalchemy import Boolean, Date, DateTime, Numeric, SmallInteger, String
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

from app.core.errors import DecodeError

__all__ = [
    "DateOnly",
    "EnumCodec",
    "FixedDecimal",
    "StrictBoolean",
    "UTCDateTime",
    "utcnow",
]

EnumT = TypeVar("EnumT", bound=enum.Enum)


def utcnow() -> dt.datetime:
    """Return the current UTC timestamp with timezone awareness."""

    return dt.datetime.now(dt.timezone.utc)


def _stores_text(dialect: Dialect) -> bool:
    return dialect.name == "sqlite"


class FixedDecimal(TypeDecorator[Decimal]):
    """Fixed-point decimal quantized to ``scale`` digits with half-up rounding.

    Floats are converted through ``str`` so ``12.345`` is treated as the
    decimal literal it reads as, not its binary approximation.
    """

    impl = Numeric
    cache_ok = True

    def __init__(self, precision: int = 12, scale: int = 2) -> None:
        super().__init__(precision=precision, scale=scale, asdecimal=True)
        self.precision = precision
        self.scale = scale
        self._quantum = Decimal(1).scaleb(-scale)

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if _stores_text(dialect):
            return dialect.type_descriptor(String(self.precision + 2))
        return dialect.type_descriptor(Numeric(self.precision, self.scale, asdecimal=True))

    def quantize(self, value: Decimal) -> Decimal:
        return value.quantize(self._quantum, rounding=ROUND_HALF_UP)

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        if isinstance(value, bool):
            raise ValueError(f"Expected a decimal amount, got {value!r}")
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Expected a decimal amount, got {value!r}") from exc
        if not amount.is_finite():
            raise ValueError(f"Expected a finite decimal amount, got {value!r}")
        amount = self.quantize(amount)
        return str(amount) if _stores_text(dialect) else amount

    def process_result_value(self, value: Any, dialect: Dialect) -> Decimal | None:
        if value is None:
            return None
        try:
            amount = Decimal(str(value))
        except InvalidOperation as exc:
            raise DecodeError("decimal", value) from exc
        if not amount.is_finite():
            raise DecodeError("decimal", value, "not a finite number")
        return self.quantize(amount)


class UTCDateTime(TypeDecorator[dt.datetime]):
    """Timezone-aware timestamp normalised to UTC.

    Naive datetimes are taken to be UTC already.
    """

    impl = DateTime
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(timezone=True)

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if _stores_text(dialect):
            return dialect.type_descriptor(String(32))
        return dialect.type_descriptor(DateTime(timezone=True))

    @staticmethod
    def _as_utc(value: dt.datetime) -> dt.datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value.astimezone(dt.timezone.utc)

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        if not isinstance(value, dt.datetime):
            raise ValueError(f"Expected a datetime, got {value!r}")
        value = self._as_utc(value)
        if _stores_text(dialect):
            return value.isoformat(timespec="microseconds")
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> dt.datetime | None:
        if value is None:
            return None
        if isinstance(value, str):
            try:
                value = dt.datetime.fromisoformat(value)
            except ValueError as exc:
                raise DecodeError("timestamp", value) from exc
        if not isinstance(value, dt.datetime):
            raise DecodeError("timestamp", value)
        return self._as_utc(value)


class DateOnly(TypeDecorator[dt.date]):
    """Calendar date; time-of-day information never survives a write."""

    impl = Date
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if _stores_text(dialect):
            return dialect.type_descriptor(String(10))
        return dialect.type_descriptor(Date())

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        if isinstance(value, dt.datetime):
            value = value.date()
        elif isinstance(value, str):
            value = dt.date.fromisoformat(value)
        elif not isinstance(value, dt.date):
            raise ValueError(f"Expected a date, got {value!r}")
        return value.isoformat() if _stores_text(dialect) else value

    def process_result_value(self, value: Any, dialect: Dialect) -> dt.date | None:
        if value is None:
            return None
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, dt.date):
            return value
        if isinstance(value, str):
            try:
                return dt.date.fromisoformat(value)
            except ValueError as exc:
                raise DecodeError("date", value) from exc
        raise DecodeError("date", value)


class StrictBoolean(TypeDecorator[bool]):
    """Boolean that only accepts ``True``/``False`` (or ``1``/``0`` from storage)."""

    impl = Boolean
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.supports_native_boolean:
            return dialect.type_descriptor(Boolean())
        return dialect.type_descriptor(SmallInteger())

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        if not isinstance(value, bool):
            raise ValueError(f"Expected True or False, got {value!r}")
        return value if dialect.supports_native_boolean else int(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> bool | None:
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise DecodeError("boolean", value)


class EnumCodec(TypeDecorator[EnumT]):
    """Stores an :class:`enum.Enum` member by value in a string column."""

    impl = String
    cache_ok = True

    def __init__(self, enum_class: type[EnumT], length: int = 32) -> None:
        super().__init__(length=length)
        self.enum_class = enum_class
        self.length = length

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        if isinstance(value, self.enum_class):
            return value.value
        try:
            return self.enum_class(value).value
        except ValueError as exc:
            raise ValueError(
                f"{value!r} is not a valid {self.enum_class.__name__}"
            ) from exc

    def process_result_value(self, value: Any, dialect: Dialect) -> EnumT | None:
        if value is None:
            return None
        try:
            return self.enum_class(value)
        except ValueError as exc:
            raise DecodeError(self.enum_class.__name__, value) from exc
