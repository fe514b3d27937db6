"""Database models of the shop and the JSON binding rules they follow."""

from __future__ import annotations

import enum
import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Mapping, Optional

from sqlalchemy import BigInteger, DateTime, Float, Integer, Text, event
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_INT_TYPE = BigInteger().with_variant(Integer(), "sqlite")
_INT_RANGE = (-(2**63), 2**63 - 1)
_UINT_RANGE = (0, 2**64 - 1)

_TIME_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))$"
)


class BindError(ValueError):
    """Raised when a JSON document does not fit a model."""


class _Kind(enum.Enum):
    UINT = "uint"
    INT = "int"
    STRING = "string"
    FLOAT = "float64"
    TIME = "time"


_ZERO = {
    _Kind.UINT: 0,
    _Kind.INT: 0,
    _Kind.STRING: "",
    _Kind.FLOAT: 0.0,
    _Kind.TIME: ZERO_TIME,
}


@dataclass(frozen=True)
class _FieldSpec:
    attr: str
    json: str
    kind: _Kind
    optional: bool
    primary_key: bool


class _UTCDateTime(TypeDecorator):
    """Stores aware datetimes as naive UTC and hands them back as aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _field(json_name: str, kind: _Kind, *, optional: bool = False,
           primary_key: bool = False, unique: bool = False):
    column_type = {
        _Kind.UINT: _INT_TYPE,
        _Kind.INT: _INT_TYPE,
        _Kind.STRING: Text(),
        _Kind.FLOAT: Float(),
        _Kind.TIME: _UTCDateTime(),
    }[kind]
    info = {"json": json_name, "kind": kind, "optional": optional}
    if primary_key:
        return mapped_column(column_type, primary_key=True, autoincrement=True, info=info)
    return mapped_column(
        column_type,
        nullable=optional,
        unique=unique,
        default=None if optional else _ZERO[kind],
        info=info,
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S").rjust(19, "0")
    if value.year < 1000:
        text = f"{value.year:04d}" + value.strftime("-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_time(text: str) -> datetime:
    match = _TIME_RE.match(text)
    if match is None:
        raise ValueError(f"invalid time {text!r}")
    year, month, day, hour, minute, second = (int(g) for g in match.group(1, 2, 3, 4, 5, 6))
    fraction = match.group(7) or ""
    microsecond = int((fraction + "000000")[:6])
    if match.group(8):
        tz = timezone.utc
    else:
        off_h, off_m = int(match.group(10)), int(match.group(11))
        if off_h > 23 or off_m > 59:
            raise ValueError(f"invalid time zone offset in {text!r}")
        delta = timedelta(hours=off_h, minutes=off_m)
        tz = timezone(-delta if match.group(9) == "-" else delta)
    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)


class Base(DeclarativeBase):
    """Declarative base of every shop model."""

    def to_dict(self) -> dict[str, Any]:
        """Return the record as the JSON object the API sends."""
        result: dict[str, Any] = {}
        for spec in _fields(type(self)):
            value = getattr(self, spec.attr)
            if value is None:
                result[spec.json] = None if spec.optional else _encode_zero(spec)
            elif spec.kind is _Kind.TIME:
                result[spec.json] = _format_time(value)
            elif spec.kind is _Kind.FLOAT:
                result[spec.json] = float(value)
            else:
                result[spec.json] = value
        return result


def _encode_zero(spec: _FieldSpec) -> Any:
    zero = _ZERO[spec.kind]
    return _format_time(zero) if spec.kind is _Kind.TIME else zero


@lru_cache(maxsize=None)
def _fields(model: type) -> tuple[_FieldSpec, ...]:
    return tuple(
        _FieldSpec(
            attr=column.key,
            json=column.info["json"],
            kind=column.info["kind"],
            optional=column.info["optional"],
            primary_key=column.primary_key,
        )
        for column in model.__table__.columns
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[Optional[int]] = _field("id", _Kind.UINT, primary_key=True)
    name: Mapped[str] = _field("name", _Kind.STRING)
    email: Mapped[str] = _field("email", _Kind.STRING, unique=True)
    password: Mapped[str] = _field("password", _Kind.STRING)
    phone: Mapped[str] = _field("phone", _Kind.STRING)
    address: Mapped[str] = _field("address", _Kind.STRING)
    created_at: Mapped[datetime] = _field("CreatedAt", _Kind.TIME)
    updated_at: Mapped[datetime] = _field("UpdatedAt", _Kind.TIME)


class Product(Base):
    __tablename__ = "products"

    id: Mapped[Optional[int]] = _field("id", _Kind.UINT, primary_key=True)
    name: Mapped[str] = _field("name", _Kind.STRING)
    description: Mapped[str] = _field("description", _Kind.STRING)
    price: Mapped[int] = _field("price", _Kind.INT)
    image_url: Mapped[str] = _field("image_url", _Kind.STRING)
    category_id: Mapped[int] = _field("CategoryID", _Kind.UINT)
    created_at: Mapped[datetime] = _field("CreatedAt", _Kind.TIME)
    updated_at: Mapped[datetime] = _field("UpdatedAt", _Kind.TIME)


class Cart(Base):
    __tablename__ = "carts"

    id: Mapped[Optional[int]] = _field("id", _Kind.UINT, primary_key=True)
    user_id: Mapped[int] = _field("UserID", _Kind.UINT)
    product_id: Mapped[int] = _field("ProductID", _Kind.UINT)
    quantity: Mapped[str] = _field("quantity", _Kind.STRING)
    size: Mapped[str] = _field("size", _Kind.STRING)
    color: Mapped[str] = _field("color", _Kind.STRING)
    created_at: Mapped[datetime] = _field("CreatedAt", _Kind.TIME)
    updated_at: Mapped[datetime] = _field("UpdatedAt", _Kind.TIME)


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[Optional[int]] = _field("id", _Kind.UINT, primary_key=True)
    name: Mapped[str] = _field("name", _Kind.STRING)
    description: Mapped[str] = _field("description", _Kind.STRING)
    created_at: Mapped[datetime] = _field("CreatedAt", _Kind.TIME)
    updated_at: Mapped[datetime] = _field("UpdatedAt", _Kind.TIME)


class Inventory(Base):
    __tablename__ = "inventories"

    id: Mapped[Optional[int]] = _field("id", _Kind.UINT, primary_key=True)
    product_id: Mapped[int] = _field("ProductID", _Kind.UINT)
    quantity: Mapped[int] = _field("quantity", _Kind.INT)
    size: Mapped[str] = _field("size", _Kind.STRING)
    color: Mapped[str] = _field("color", _Kind.STRING)
    updated_at: Mapped[datetime] = _field("UpdatedAt", _Kind.TIME)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[Optional[int]] = _field("id", _Kind.UINT, primary_key=True)
    user_id: Mapped[int] = _field("UserID", _Kind.UINT)
    order_status: Mapped[str] = _field("order_status", _Kind.STRING)
    total_amount: Mapped[float] = _field("total_amount", _Kind.FLOAT)
    shipping_address: Mapped[str] = _field("shipping_address", _Kind.STRING)
    created_at: Mapped[datetime] = _field("CreatedAt", _Kind.TIME)
    updated_at: Mapped[datetime] = _field("UpdatedAt", _Kind.TIME)


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[Optional[int]] = _field("id", _Kind.UINT, primary_key=True)
    order_id: Mapped[int] = _field("OrderID", _Kind.UINT)
    product_id: Mapped[int] = _field("ProductID", _Kind.UINT)
    quantity: Mapped[int] = _field("quantity", _Kind.INT)
    size: Mapped[str] = _field("size", _Kind.STRING)
    color: Mapped[str] = _field("color", _Kind.STRING)
    price_at_order: Mapped[float] = _field("price_at_order", _Kind.FLOAT)


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[Optional[int]] = _field("id", _Kind.UINT, primary_key=True)
    order_id: Mapped[int] = _field("OrderID", _Kind.UINT)
    payment_method: Mapped[str] = _field("payment_method", _Kind.STRING)
    payment_status: Mapped[str] = _field("payment_status", _Kind.STRING)
    transaction_id: Mapped[str] = _field("transaction_id", _Kind.STRING)
    paid_at: Mapped[datetime] = _field("paid_at", _Kind.TIME)


class Promocode(Base):
    __tablename__ = "promocodes"

    id: Mapped[Optional[int]] = _field("id", _Kind.UINT, primary_key=True)
    code: Mapped[str] = _field("code", _Kind.STRING, unique=True)
    discount_percent: Mapped[Optional[int]] = _field("discount_percent", _Kind.INT, optional=True)
    discount_amount: Mapped[Optional[float]] = _field("discount_amount", _Kind.FLOAT, optional=True)
    valid_from: Mapped[datetime] = _field("valid_from", _Kind.TIME)
    valid_until: Mapped[datetime] = _field("valid_until", _Kind.TIME)
    usage_limit: Mapped[int] = _field("usage_limit", _Kind.INT)
    times_used: Mapped[int] = _field("times_used", _Kind.INT)


def _is_unset_time(value: Optional[datetime]) -> bool:
    return value is None or _as_utc(value) == ZERO_TIME


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


@event.listens_for(Base, "before_insert", propagate=True)
def _stamp_on_insert(mapper, connection, target) -> None:
    now = _now()
    for attr in ("created_at", "updated_at"):
        if attr in mapper.attrs and _is_unset_time(getattr(target, attr)):
            setattr(target, attr, now)


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return f"number {value}"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _decode(model: type, spec: _FieldSpec, raw: Any) -> Any:
    def fail() -> BindError:
        return BindError(
            f"cannot unmarshal {_json_type(raw)} into field "
            f"{model.__name__}.{spec.json} of type {spec.kind.value}"
        )

    kind = spec.kind
    if kind in (_Kind.UINT, _Kind.INT):
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise fail()
        low, high = _UINT_RANGE if kind is _Kind.UINT else _INT_RANGE
        if not low <= raw <= high:
            raise fail()
        return raw
    if kind is _Kind.FLOAT:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise fail()
        try:
            number = float(raw)
        except OverflowError:
            raise fail() from None
        if not math.isfinite(number):
            raise fail()
        return number
    if kind is _Kind.STRING:
        if not isinstance(raw, str):
            raise fail()
        return raw
    if not isinstance(raw, str):
        raise fail()
    try:
        return _parse_time(raw)
    except ValueError as exc:
        raise BindError(f"cannot parse {raw!r} as time for {model.__name__}.{spec.json}: {exc}") from None


def _match(specs: tuple[_FieldSpec, ...], key: str) -> Optional[_FieldSpec]:
    for spec in specs:
        if spec.json == key:
            return spec
    folded = key.casefold()
    for spec in specs:
        if spec.json.casefold() == folded:
            return spec
    return None


def _zero_values(model: type) -> dict[str, Any]:
    return {
        spec.attr: None if spec.primary_key or spec.optional else _ZERO[spec.kind]
        for spec in _fields(model)
    }


def from_json(model: type, data: Any):
    """Build an unsaved ``model`` instance from a parsed JSON document.

    Keys match field names exactly or, failing that, without regard to case;
    unknown keys are ignored, ``null`` leaves a field at its zero value, and a
    value of the wrong type raises :class:`BindError`.
    """
    values = _zero_values(model)
    if data is None:
        return model(**values)
    if not isinstance(data, Mapping):
        raise BindError(f"cannot unmarshal {_json_type(data)} into {model.__name__}")
    specs = _fields(model)
    for key, raw in data.items():
        spec = _match(specs, str(key))
        if spec is None:
            continue
        if raw is None:
            if spec.optional:
                values[spec.attr] = None
            continue
        values[spec.attr] = _decode(model, spec, raw)
    for spec in specs:
        if spec.primary_key and values[spec.attr] == 0:
            values[spec.attr] = None
    return model(**values)


def _is_zero(spec: _FieldSpec, value: Any) -> bool:
    if value is None:
        return True
    if spec.optional:
        return False
    if spec.kind is _Kind.TIME:
        return _as_utc(value) == ZERO_TIME
    return value == _ZERO[spec.kind]


def apply_updates(instance, data: Any):
    """Copy the non-zero fields of ``data`` onto ``instance`` and return it.

    The primary key is never changed; ``updated_at`` is refreshed unless the
    document supplies it.
    """
    model = type(instance)
    update = from_json(model, data)
    touched_updated_at = False
    for spec in _fields(model):
        if spec.primary_key:
            continue
        value = getattr(update, spec.attr)
        if _is_zero(spec, value):
            continue
        setattr(instance, spec.attr, value)
        if spec.attr == "updated_at":
            touched_updated_at = True
    if not touched_updated_at and any(spec.attr == "updated_at" for spec in _fields(model)):
        instance.updated_at = _now()
    return instance