"""Generic create/read/update/delete operations and the HTTP routes over them."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from flask import Blueprint, jsonify, request
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from womens_shop.db import Database
from womens_shop.models import BindError, apply_updates, from_json

_ID_RE = re.compile(r"-?\d+")
_ATOI_RE = re.compile(r"[+-]?\d+")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1


class ApiError(Exception):
    """An error that the API reports with an HTTP status and a message."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


def _parse_id(record_id: Any) -> Optional[int]:
    if isinstance(record_id, bool):
        return None
    if isinstance(record_id, int):
        return record_id
    text = str(record_id).strip()
    if not _ID_RE.fullmatch(text):
        return None
    return int(text)


def _atoi(text: str) -> Optional[int]:
    """Parse a signed 64-bit decimal integer, or return None."""
    if not _ATOI_RE.fullmatch(text):
        return None
    value = int(text)
    return value if _INT64_MIN <= value <= _INT64_MAX else None


def _find_by_atoi(session, model, record_id: str):
    """Return the record whose id parses strictly from ``record_id``, or None."""
    key = _atoi(record_id)
    if key is None:
        return None
    try:
        return session.get(model, key)
    except (SQLAlchemyError, OverflowError):
        return None


def _lookup(session, model, record_id: Any, label: str):
    key = _parse_id(record_id)
    if key is None:
        raise ApiError(404, f"{label} not found")
    try:
        instance = session.get(model, key)
    except (SQLAlchemyError, OverflowError):
        instance = None
    if instance is None:
        raise ApiError(404, f"{label} not found")
    return instance


def list_records(database: Database, model) -> list[dict[str, Any]]:
    """Return every record of ``model`` as JSON objects."""
    try:
        with database.session() as session:
            records = session.scalars(select(model)).all()
            return [record.to_dict() for record in records]
    except SQLAlchemyError as exc:
        raise ApiError(400, str(exc)) from exc


def create_record(database: Database, model, data: Any) -> dict[str, Any]:
    """Bind ``data`` to a new ``model`` record, store it and return it."""
    try:
        record = from_json(model, data)
    except BindError as exc:
        raise ApiError(400, str(exc)) from exc
    try:
        with database.session() as session:
            session.add(record)
            session.flush()
    except (SQLAlchemyError, OverflowError) as exc:
        raise ApiError(500, str(exc)) from exc
    return record.to_dict()


def get_record(database: Database, model, record_id: Any, label: str) -> dict[str, Any]:
    """Return the record with ``record_id``; a missing one is a 404."""
    with database.session() as session:
        return _lookup(session, model, record_id, label).to_dict()


def update_record(database: Database, model, record_id: Any, data: Any,
                  label: str) -> dict[str, Any]:
    """Copy the non-zero fields of ``data`` onto a stored record and return it."""
    try:
        with database.session() as session:
            record = _lookup(session, model, record_id, label)
            try:
                apply_updates(record, data)
            except BindError as exc:
                raise ApiError(400, str(exc)) from exc
            session.flush()
            result = record.to_dict()
    except (SQLAlchemyError, OverflowError) as exc:
        raise ApiError(500, str(exc)) from exc
    return result


def delete_record(database: Database, model, record_id: Any, label: str) -> dict[str, str]:
    """Delete a stored record and return the confirmation message."""
    try:
        with database.session() as session:
            record = _lookup(session, model, record_id, label)
            session.delete(record)
            session.flush()
    except SQLAlchemyError as exc:
        raise ApiError(500, str(exc)) from exc
    return {"message": f"{label} deleted successfully"}


def _read_body() -> Any:
    """Decode the request body as JSON; an empty body is a ValueError("EOF")."""
    raw = request.get_data(cache=False)
    if not raw.strip():
        raise ValueError("EOF")
    return json.loads(raw)


def _request_json() -> Any:
    try:
        return _read_body()
    except ValueError as exc:
        raise ApiError(400, str(exc)) from exc


def _render_api_error(error: ApiError):
    return jsonify({"Error": error.message}), error.status


def _api_blueprint(name: str) -> Blueprint:
    """Create a blueprint that renders ApiError as a JSON error body."""
    blueprint = Blueprint(name, __name__)
    blueprint.register_error_handler(ApiError, _render_api_error)
    return blueprint


def _add_create_route(blueprint: Blueprint, database: Database, model) -> None:
    @blueprint.post("/")
    def create():
        return jsonify(create_record(database, model, _request_json())), 200


def _add_lenient_write_routes(blueprint: Blueprint, database: Database, model,
                              missing: str, deleted: str) -> None:
    """Add update and delete routes that ignore storage errors once a record is found."""

    @blueprint.put("/<record_id>")
    def update(record_id: str):
        result = None
        try:
            with database.session() as session:
                record = _find_by_atoi(session, model, record_id)
                if record is None:
                    raise ApiError(404, missing)
                try:
                    apply_updates(record, _read_body())
                except ValueError:
                    raise ApiError(400, "JSON error") from None
                result = record.to_dict()
        except (SQLAlchemyError, OverflowError):
            if result is None:
                raise
        return jsonify(result), 200

    @blueprint.delete("/<record_id>")
    def delete(record_id: str):
        try:
            with database.session() as session:
                record = _find_by_atoi(session, model, record_id)
                if record is None:
                    raise ApiError(404, missing)
                session.delete(record)
        except SQLAlchemyError:
            pass
        return jsonify({"message": deleted}), 200


def make_crud_blueprint(name: str, model, label: str, database: Database) -> Blueprint:
    """Build a blueprint serving list, create, read, update and delete for ``model``."""
    blueprint = _api_blueprint(name)

    @blueprint.get("/")
    def index():
        return jsonify(list_records(database, model)), 200

    _add_create_route(blueprint, database, model)

    @blueprint.get("/<record_id>")
    def show(record_id: str):
        return jsonify(get_record(database, model, record_id, label)), 200

    @blueprint.put("/<record_id>")
    def update(record_id: str):
        with database.session() as session:
            _lookup(session, model, record_id, label)
        data = _request_json()
        return jsonify(update_record(database, model, record_id, data, label)), 200

    @blueprint.delete("/<record_id>")
    def delete(record_id: str):
        return jsonify(delete_record(database, model, record_id, label)), 200

    return blueprint