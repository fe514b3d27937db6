"""Application assembly and the command that serves it."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from flask import Flask

from womens_shop.crud import make_crud_blueprint
from womens_shop.db import Database, init_db
from womens_shop.models import Cart, Category, Inventory, Order, OrderItem, Payment, Promocode
from womens_shop.products import make_products_blueprint
from womens_shop.users import make_users_blueprint

DEFAULT_PORT = 8888

_RESOURCES = (
    ("carts", "/carts", Cart, "Cart"),
    ("categories", "/categories/categories", Category, "Category"),
    ("inventories", "/inventories", Inventory, "Inventory record"),
    ("orders", "/orders", Order, "Order"),
    ("order_items", "/ordersItems", OrderItem, "OrderItem"),
    ("payments", "/payments", Payment, "Payment"),
    ("promocodes", "/promocodes", Promocode, "Promocode"),
)


def create_app(database: Database) -> Flask:
    """Build the web application serving every shop resource."""
    app = Flask(__name__)
    app.json.sort_keys = False
    app.register_blueprint(make_users_blueprint(database), url_prefix="/users")
    app.register_blueprint(make_products_blueprint(database), url_prefix="/products")
    for name, prefix, model, label in _RESOURCES:
        app.register_blueprint(make_crud_blueprint(name, model, label, database), url_prefix=prefix)
    return app


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Connect to the database and serve the shop API."""
    parser = argparse.ArgumentParser(prog="womens-shop", description="Serve the shop API.")
    parser.add_argument("--database-url", default=None, help="database URL to connect to")
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)
    try:
        database = init_db(args.database_url)
    except RuntimeError as exc:
        print(exc, file=sys.stderr)
        return 1
    print("Hello World")
    app = create_app(database)
    app.run(host=args.host, port=args.port)
    return 0