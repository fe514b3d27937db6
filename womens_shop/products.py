"""HTTP routes for products."""

from __future__ import annotations

from flask import Blueprint, jsonify
from sqlalchemy.exc import SQLAlchemyError

from womens_shop.crud import (
    ApiError,
    _add_create_route,
    _add_lenient_write_routes,
    _api_blueprint,
    _atoi,
    list_records,
)
from womens_shop.db import Database
from womens_shop.models import Product

RECORD_NOT_FOUND = "record not found"
NO_SUCH_ID = "There is no such id"


def make_products_blueprint(database: Database) -> Blueprint:
    """Build the blueprint serving the product routes."""
    blueprint = _api_blueprint("products")

    @blueprint.get("/")
    def index():
        try:
            products = list_records(database, Product)
        except ApiError as exc:
            raise ApiError(500, exc.message) from exc
        return jsonify(products), 200

    _add_create_route(blueprint, database, Product)

    @blueprint.get("/<record_id>")
    def show(record_id: str):
        key = _atoi(record_id)
        if key is None:
            raise ApiError(400, "Id not found")
        try:
            with database.session() as session:
                found = session.get(Product, key) is not None
        except (SQLAlchemyError, OverflowError) as exc:
            raise ApiError(500, str(exc)) from exc
        if not found:
            raise ApiError(500, RECORD_NOT_FOUND)
        return jsonify({"error": "Not found"}), 404

    _add_lenient_write_routes(blueprint, database, Product,
                              missing=NO_SUCH_ID,
                              deleted="Product deleted successfully")
    return blueprint