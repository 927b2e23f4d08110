"""Unit tests for the in-memory cart engine."""

from __future__ import annotations

import pytest

from storefront.models.product import Variant
from storefront.services.cart.engine import CartEngine, cart_line_id


@pytest.fixture()
def product_a(product_factory):
    return product_factory("A", price=10.0)


@pytest.fixture()
def shirt(product_factory):
    return product_factory(
        "shirt",
        price=25.0,
        variants=[
            Variant(id="red-m", color="Red", size="M", stock=4),
            Variant(id="blue-m", color="Blue", size="M", stock=0),
        ],
    )


def test_line_id_is_product_id_without_variant():
    assert cart_line_id("p1") == "p1"
    assert cart_line_id("p1", None) == "p1"
    assert cart_line_id("p1", "v9") == "p1-v9"


def test_worked_example_merge_and_remove(product_a):
    cart = CartEngine()

    cart.add_item(product_a, None, 2)
    assert cart.get_subtotal() == 20
    assert cart.get_item_count() == 2

    cart.add_item(product_a, None, 3)
    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 5
    assert cart.get_subtotal() == 50

    cart.update_quantity(cart.lines[0].id, 0)
    assert cart.lines == []
    assert cart.get_subtotal() == 0


def test_repeated_adds_sum_quantities(product_a):
    cart = CartEngine()
    quantities = [1, 4, 2, 7]
    for quantity in quantities:
        cart.add_item(product_a, quantity=quantity)

    assert cart.get_line("A").quantity == sum(quantities)


def test_variants_produce_distinct_lines(shirt):
    cart = CartEngine()
    cart.add_item(shirt, shirt.variants[0])
    cart.add_item(shirt, shirt.variants[1], 2)

    assert [line.id for line in cart.lines] == ["shirt-red-m", "shirt-blue-m"]
    assert cart.lines[0].variant.color == "Red"
    assert cart.lines[1].variant.size == "M"


def test_adding_does_not_check_stock(shirt):
    cart = CartEngine()
    cart.add_item(shirt, shirt.variants[1], 50)

    assert cart.get_line("shirt-blue-m").quantity == 50


def test_new_line_snapshots_product_fields(product_factory):
    product = product_factory("snap", price=12.5)
    cart = CartEngine()
    cart.add_item(product)

    product.price = 99.0
    product.title = "Renamed"

    line = cart.get_line("snap")
    assert line.price == 12.5
    assert line.title == "Product snap"
    assert line.image == "https://images.example.com/snap.jpg"
    assert line.slug == "slug-snap"
    assert line.variant is None


def test_add_with_non_positive_quantity_is_ignored(product_a):
    cart = CartEngine()
    cart.add_item(product_a, quantity=0)
    cart.add_item(product_a, quantity=-3)

    assert cart.lines == []
    assert cart.version == 0


@pytest.mark.parametrize("quantity", [0, -1, -10])
def test_update_to_non_positive_removes_line(product_a, quantity):
    cart = CartEngine()
    cart.add_item(product_a, quantity=3)
    cart.update_quantity("A", quantity)

    assert cart.get_line("A") is None


def test_update_sets_absolute_quantity_and_keeps_order(product_factory):
    first = product_factory("first", price=1.0)
    second = product_factory("second", price=2.0)
    cart = CartEngine()
    cart.add_item(first)
    cart.add_item(second)

    cart.update_quantity("first", 9)

    assert [line.id for line in cart.lines] == ["first", "second"]
    assert cart.get_line("first").quantity == 9


def test_unknown_ids_are_no_ops(product_a):
    cart = CartEngine()
    cart.add_item(product_a)
    version = cart.version

    cart.remove_item("missing")
    cart.update_quantity("missing", 4)

    assert cart.get_item_count() == 1
    assert cart.version == version


def test_clear_empties_cart(product_a, shirt):
    cart = CartEngine()
    cart.add_item(product_a)
    cart.add_item(shirt, shirt.variants[0])
    cart.clear()

    assert cart.lines == []
    assert cart.get_item_count() == 0


def test_totals_match_independent_recomputation(product_factory):
    products = [product_factory(f"p{i}", price=price) for i, price in enumerate([19.99, 5.25, 0.1])]
    cart = CartEngine()
    cart.add_item(products[0], quantity=3)
    cart.add_item(products[1], quantity=2)
    cart.add_item(products[2], quantity=7)
    cart.update_quantity("p1", 4)
    cart.remove_item("p2")

    expected_subtotal = sum(line.price * line.quantity for line in cart.lines)
    expected_count = sum(line.quantity for line in cart.lines)
    assert cart.get_subtotal() == pytest.approx(expected_subtotal)
    assert cart.get_item_count() == expected_count == 7


def test_item_count_grows_by_added_quantity(product_a, shirt):
    cart = CartEngine()
    cart.add_item(shirt, shirt.variants[0], 2)
    before = cart.get_item_count()

    cart.add_item(product_a, quantity=6)

    assert cart.get_item_count() == before + 6


def test_listeners_notified_on_each_mutation(product_a):
    cart = CartEngine()
    seen: list[int] = []
    unsubscribe = cart.subscribe(lambda engine: seen.append(engine.version))

    cart.add_item(product_a)
    cart.update_quantity("A", 3)
    cart.remove_item("A")
    unsubscribe()
    cart.clear()

    assert seen == [1, 2, 3]
    assert cart.version == 4


def test_snapshot_round_trip(shirt, product_a):
    cart = CartEngine()
    cart.add_item(shirt, shirt.variants[0], 2)
    cart.add_item(product_a)

    restored = CartEngine.from_snapshot(cart.to_snapshot())

    assert restored.lines == cart.lines
    assert restored.version == cart.version
    assert restored.get_subtotal() == cart.get_subtotal()
