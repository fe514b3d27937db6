"""HTTP routes for users."""

from __future__ import annotations

from flask import Blueprint, jsonify

from womens_shop.crud import (
    ApiError,
    _add_create_route,
    _add_lenient_write_routes,
    _api_blueprint,
    _find_by_atoi,
    list_records,
)
from womens_shop.db import Database
from womens_shop.models import User


def make_users_blueprint(database: Database) -> Blueprint:
    """Build the blueprint serving the user routes."""
    blueprint = _api_blueprint("users")

    @blueprint.get("/")
    def index():
        return jsonify(list_records(database, User)), 200

    _add_create_route(blueprint, database, User)

    @blueprint.get("/<record_id>")
    def show(record_id: str):
        with database.session() as session:
            record = _find_by_atoi(session, User, record_id)
            if record is None:
                raise ApiError(404, "There is no such id")
            user = record.to_dict()
        return jsonify({"This user": user}), 200

    _add_lenient_write_routes(blueprint, database, User,
                              missing="User not found",
                              deleted="User deleted successfully!!!")
    return blueprint