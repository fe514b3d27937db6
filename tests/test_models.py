from datetime import datetime, timedelta, timezone

import pytest

from womens_shop.models import (
    ZERO_TIME,
    BindError,
    Cart,
    Category,
    Inventory,
    Order,
    Payment,
    Product,
    Promocode,
    User,
    apply_updates,
    from_json,
)


def test_cart_keys_follow_field_names():
    cart = from_json(Cart, {})
    assert list(cart.to_dict()) == [
        "id", "UserID", "ProductID", "quantity", "size", "color", "CreatedAt", "UpdatedAt",
    ]


def test_product_keys_follow_field_names():
    product = from_json(Product, {})
    assert list(product.to_dict()) == [
        "id", "name", "description", "price", "image_url", "CategoryID", "CreatedAt", "UpdatedAt",
    ]


def test_zero_instance_serialises_zero_values():
    data = from_json(Inventory, {}).to_dict()
    assert data == {
        "id": 0,
        "ProductID": 0,
        "quantity": 0,
        "size": "",
        "color": "",
        "UpdatedAt": "0001-01-01T00:00:00Z",
    }


def test_none_document_gives_zero_instance():
    assert from_json(Cart, None).to_dict() == from_json(Cart, {}).to_dict()


def test_keys_match_without_case():
    cart = from_json(Cart, {"userid": 7, "QUANTITY": "3", "Color": "red"})
    assert (cart.user_id, cart.quantity, cart.color) == (7, "3", "red")


def test_last_matching_key_wins():
    cart = from_json(Cart, {"UserID": 1, "userID": 2})
    assert cart.user_id == 2


def test_unknown_keys_are_ignored():
    category = from_json(Category, {"nope": 1, "name": "Dresses"})
    assert category.name == "Dresses"
    assert category.description == ""


def test_user_fields_bind():
    password = "password"
    user = from_json(User, {"name": "Ann", "email": "ann@example.com", "password": password})
    data = user.to_dict()
    assert data["email"] == "ann@example.com"
    assert data["password"] == password
    assert data["id"] == 0


def test_zero_id_stays_unassigned():
    cart = from_json(Cart, {"id": 0})
    assert cart.id is None
    assert from_json(Cart, {"id": 5}).id == 5


@pytest.mark.parametrize(
    "model, data",
    [
        (Inventory, {"quantity": "5"}),
        (Inventory, {"quantity": 1.5}),
        (Inventory, {"quantity": True}),
        (Inventory, {"quantity": 2**63}),
        (Cart, {"UserID": -1}),
        (Cart, {"UserID": 2**64}),
        (Cart, {"quantity": 3}),
        (Order, {"total_amount": "9.99"}),
        (Order, {"total_amount": float("nan")}),
        (Payment, {"paid_at": "yesterday"}),
        (Payment, {"paid_at": "2024-01-02T03:04:05"}),
        (Payment, {"paid_at": "2024-13-02T03:04:05Z"}),
        (Payment, {"paid_at": 12}),
    ],
)
def test_wrong_types_raise(model, data):
    with pytest.raises(BindError):
        from_json(model, data)


@pytest.mark.parametrize("document", [[1, 2], "text", 3])
def test_non_object_document_raises(document):
    with pytest.raises(BindError):
        from_json(Cart, document)


def test_null_leaves_zero_value():
    inventory = from_json(Inventory, {"quantity": None, "size": None})
    assert inventory.quantity == 0
    assert inventory.size == ""


def test_optional_fields_keep_null_and_zero():
    empty = from_json(Promocode, {"code": "SPRING"})
    assert empty.discount_percent is None
    assert empty.to_dict()["discount_amount"] is None
    zero = from_json(Promocode, {"code": "SPRING", "discount_percent": 0})
    assert zero.discount_percent == 0


def test_float_field_accepts_integer():
    order = from_json(Order, {"total_amount": 10})
    assert order.total_amount == 10.0
    assert isinstance(order.to_dict()["total_amount"], float)


def test_time_with_z_suffix():
    payment = from_json(Payment, {"paid_at": "2024-05-01T10:20:30Z"})
    assert payment.paid_at == datetime(2024, 5, 1, 10, 20, 30, tzinfo=timezone.utc)


def test_time_with_offset():
    payment = from_json(Payment, {"paid_at": "2024-05-01T12:20:30+02:00"})
    expected = datetime(2024, 5, 1, 12, 20, 30, tzinfo=timezone(timedelta(hours=2)))
    assert payment.paid_at == expected


def test_time_fraction_is_trimmed_on_output():
    payment = from_json(Payment, {"paid_at": "2024-05-01T10:20:30.500Z"})
    assert payment.to_dict()["paid_at"] == "2024-05-01T10:20:30.5Z"


def test_round_trip_is_stable():
    source = {
        "id": 3,
        "code": "SUMMER",
        "discount_percent": 15,
        "discount_amount": 2.5,
        "valid_from": "2024-06-01T00:00:00.123456Z",
        "valid_until": "2024-08-31T23:59:59+03:00",
        "usage_limit": 100,
        "times_used": 4,
    }
    once = from_json(Promocode, source).to_dict()
    twice = from_json(Promocode, once).to_dict()
    assert once == twice
    assert once["code"] == "SUMMER"
    assert once["valid_until"] == "2024-08-31T23:59:59+03:00"


def test_zero_time_constant_serialises():
    payment = from_json(Payment, {})
    assert payment.paid_at == ZERO_TIME


def test_apply_updates_copies_only_non_zero_fields():
    cart = from_json(Cart, {"id": 1, "UserID": 2, "quantity": "1", "color": "blue"})
    before = datetime.now(timezone.utc)
    result = apply_updates(cart, {"color": "red", "quantity": "", "UserID": 0})
    assert result is cart
    assert cart.color == "red"
    assert cart.quantity == "1"
    assert cart.user_id == 2
    assert cart.updated_at >= before


def test_apply_updates_keeps_primary_key():
    cart = from_json(Cart, {"id": 1})
    apply_updates(cart, {"id": 99, "size": "M"})
    assert cart.id == 1
    assert cart.size == "M"


def test_apply_updates_honours_set_pointer_zero():
    promo = from_json(Promocode, {"code": "X", "discount_percent": 5})
    apply_updates(promo, {"discount_percent": None})
    assert promo.discount_percent == 5
    apply_updates(promo, {"discount_percent": 0})
    assert promo.discount_percent == 0


def test_apply_updates_rejects_bad_document_without_changes():
    inventory = from_json(Inventory, {"quantity": 4, "size": "S"})
    with pytest.raises(BindError):
        apply_updates(inventory, {"size": "L", "quantity": "many"})
    assert (inventory.quantity, inventory.size) == (4, "S")


def test_apply_updates_on_model_without_timestamps():
    from womens_shop.models import OrderItem

    item = from_json(OrderItem, {"quantity": 2, "price_at_order": 9.5})
    apply_updates(item, {"price_at_order": 7})
    assert item.price_at_order == 7.0
    assert item.quantity == 2