"""Tests for order aggregates, listing and status changes."""

from datetime import datetime

import pytest

from order_service.exceptions import ConflictError, NotFoundError, ValidationError
from order_service.models import Order, OrderItem, OrderStatus, STATUS_TRANSITIONS
from order_service.services.order_reader import OrderReader, fold_order_rows
from order_service.services.order_writer import OrderWriter
from tests.conftest import order_payload


@pytest.fixture()
def reader(db):
    return OrderReader(db)


@pytest.fixture()
def create_order(db):
    writer = OrderWriter(db)

    def _create(**overrides):
        return writer.create(order_payload(**overrides))

    return _create


def add_order(db, code, user_id=1, status="pending", created_at=None, items=()):
    order = Order(
        order_code=code,
        user_id=user_id,
        status=status,
        total_amount=10.0,
        created_at=created_at or datetime(2026, 1, 1, 12, 0),
        updated_at=created_at or datetime(2026, 1, 1, 12, 0),
    )
    db.add(order)
    db.flush()
    for product_id in items:
        db.add(OrderItem(order_id=order.id, product_id=product_id, quantity=1,
                         unit_price=10.0, total_price=10.0))
    db.commit()
    return order.id


class TestFoldOrderRows:
    def _row(self, order_id, item_id, product_id=None):
        return {
            "id": order_id,
            "order_code": f"MM{order_id}",
            "status": "pending",
            "item_id": item_id,
            "product_id": product_id,
            "quantity": 1 if item_id else None,
            "unit_price": 1.0 if item_id else None,
            "total_price": 1.0 if item_id else None,
        }

    def test_groups_rows_per_order(self):
        rows = [self._row(1, 10, 7), self._row(1, 11, 8), self._row(2, 12, 7)]

        orders = fold_order_rows(rows)

        assert [o["id"] for o in orders] == [1, 2]
        assert [i["id"] for i in orders[0]["items"]] == [10, 11]
        assert [i["product_id"] for i in orders[0]["items"]] == [7, 8]
        assert len(orders[1]["items"]) == 1

    def test_order_without_items_has_empty_list(self):
        orders = fold_order_rows([self._row(3, None)])

        assert orders[0]["items"] == []

    def test_items_sorted_by_id(self):
        rows = [self._row(1, 12, 8), self._row(1, 10, 7)]

        items = fold_order_rows(rows)[0]["items"]

        assert [i["id"] for i in items] == [10, 12]

    def test_order_position_follows_first_row(self):
        rows = [self._row(5, 1), self._row(2, 2), self._row(5, 3)]

        assert [o["id"] for o in fold_order_rows(rows)] == [5, 2]

    def test_item_fields_not_on_header(self):
        order = fold_order_rows([self._row(1, 10, 7)])[0]

        assert "item_id" not in order
        assert "product_id" not in order
        assert order["order_code"] == "MM1"

    def test_no_rows(self):
        assert fold_order_rows([]) == []


class TestGetById:
    def test_includes_product_and_user_details(self, reader, create_order):
        created = create_order()

        order = reader.get_by_id(created.id)

        assert order.email == "alice@example.com"
        assert order.user_name == "Alice"
        assert order.phone == "555-0101"
        item = order.items[0]
        assert item.product_name == "Espresso Beans"
        assert item.description == "1kg bag"
        assert item.image_url == "/img/beans.png"
        assert item.category == "coffee"

    def test_missing_order(self, reader):
        with pytest.raises(NotFoundError):
            reader.get_by_id(12345)

    def test_repeated_reads_are_identical(self, reader, create_order):
        created = create_order()

        assert reader.get_by_id(created.id) == reader.get_by_id(created.id)

    def test_order_without_items(self, reader, db):
        order_id = add_order(db, "MMEMPTY")

        assert reader.get_by_id(order_id).items == []

    def test_items_in_insertion_order(self, reader, create_order):
        created = create_order(items=[
            {"productId": 8, "quantity": 1, "unitPrice": 45.5, "totalPrice": 45.5},
            {"productId": 7, "quantity": 3, "unitPrice": 10.0, "totalPrice": 30.0},
        ], totalAmount=75.5)

        order = reader.get_by_id(created.id)

        assert [i.product_id for i in order.items] == [8, 7]


class TestGetByUserId:
    def test_newest_first_with_items(self, reader, db):
        older = add_order(db, "MMOLD", created_at=datetime(2026, 1, 1), items=[7])
        newer = add_order(db, "MMNEW", created_at=datetime(2026, 2, 1), items=[7, 8])
        add_order(db, "MMBOB", user_id=2, items=[8])

        orders = reader.get_by_user_id(1)

        assert [o.id for o in orders] == [newer, older]
        assert [len(o.items) for o in orders] == [2, 1]
        assert orders[0].items[1].product_name == "Grinder"

    def test_user_without_orders(self, reader):
        assert reader.get_by_user_id(2) == []


class TestGetByOrderCode:
    def test_header_only(self, reader, create_order):
        created = create_order()

        order = reader.get_by_order_code(created.order_code)

        assert order.id == created.id
        assert order.status == OrderStatus.PENDING
        assert not hasattr(order, "items")

    def test_unknown_code(self, reader):
        with pytest.raises(NotFoundError):
            reader.get_by_order_code("MM0")


class TestListAll:
    @pytest.fixture()
    def orders(self, db):
        return {
            "early_pending": add_order(db, "MMA", created_at=datetime(2026, 1, 1)),
            "mid_pending": add_order(db, "MMB", created_at=datetime(2026, 1, 15), user_id=2),
            "mid_shipping": add_order(db, "MMC", status="shipping", created_at=datetime(2026, 1, 16)),
            "late_pending": add_order(db, "MMD", created_at=datetime(2026, 2, 1)),
        }

    def test_no_filters_returns_all_newest_first(self, reader, orders):
        result = reader.list_all()

        assert [o.id for o in result] == [
            orders["late_pending"], orders["mid_shipping"],
            orders["mid_pending"], orders["early_pending"],
        ]

    def test_includes_owner_fields(self, reader, orders):
        by_id = {o.id: o for o in reader.list_all()}

        assert by_id[orders["mid_pending"]].email == "bob@example.com"
        assert by_id[orders["mid_pending"]].user_name == "Bob"

    def test_filters_are_combined(self, reader, orders):
        result = reader.list_all(
            status="pending",
            start_date=datetime(2026, 1, 10),
            end_date=datetime(2026, 1, 31),
        )

        assert [o.id for o in result] == [orders["mid_pending"]]

    def test_status_only(self, reader, orders):
        result = reader.list_all(status="shipping")

        assert [o.id for o in result] == [orders["mid_shipping"]]

    def test_date_bounds_are_inclusive(self, reader, orders):
        result = reader.list_all(start_date=datetime(2026, 1, 15), end_date=datetime(2026, 1, 16))

        assert {o.id for o in result} == {orders["mid_pending"], orders["mid_shipping"]}

    def test_created_order_matches_its_own_timestamp(self, reader, create_order):
        order = create_order()

        result = reader.list_all(start_date=order.created_at, end_date=order.created_at)

        assert [o.id for o in result] == [order.id]

    def test_created_order_within_surrounding_range(self, reader, create_order):
        order = create_order()
        created_at = order.created_at.replace(tzinfo=None)

        result = reader.list_all(
            start_date=created_at.replace(microsecond=0),
            end_date=created_at.replace(microsecond=999999),
        )

        assert [o.id for o in result] == [order.id]

    def test_start_date_only(self, reader, orders):
        result = reader.list_all(start_date=datetime(2026, 1, 16))

        assert {o.id for o in result} == {orders["mid_shipping"], orders["late_pending"]}

    def test_invalid_status_filter(self, reader, orders):
        with pytest.raises(ValidationError):
            reader.list_all(status="lost")


class TestUpdateStatus:
    def test_any_status_may_follow_any_other(self, reader, db):
        order_id = add_order(db, "MMX", status="delivered")

        order = reader.update_status(order_id, "pending")

        assert order.status == OrderStatus.PENDING

    def test_sets_status(self, reader, create_order):
        created = create_order()

        order = reader.update_status(created.id, "shipping")

        assert order.status == OrderStatus.SHIPPING
        assert reader.get_by_id(created.id).status == OrderStatus.SHIPPING

    @pytest.mark.parametrize("status", ["lost", "PENDING", "", None])
    def test_invalid_status(self, reader, create_order, status):
        created = create_order()

        with pytest.raises(ValidationError):
            reader.update_status(created.id, status)

        assert reader.get_by_id(created.id).status == OrderStatus.PENDING

    def test_missing_order(self, reader):
        with pytest.raises(NotFoundError):
            reader.update_status(999, "processing")

    def test_transition_table_is_enforced(self, reader, db, monkeypatch):
        monkeypatch.setitem(
            STATUS_TRANSITIONS, OrderStatus.DELIVERED, frozenset({OrderStatus.DELIVERED})
        )
        order_id = add_order(db, "MMDONE", status="delivered")

        with pytest.raises(ConflictError):
            reader.update_status(order_id, "pending")

        assert reader.get_by_id(order_id).status == OrderStatus.DELIVERED


class TestCancel:
    def test_pending_order_is_cancelled(self, reader, create_order):
        created = create_order()

        order = reader.cancel(created.id)

        assert order.status == OrderStatus.CANCELLED
        assert reader.get_by_id(created.id).status == OrderStatus.CANCELLED

    @pytest.mark.parametrize("status", ["processing", "shipping", "delivered", "cancelled"])
    def test_non_pending_order_is_not_cancelled(self, reader, db, status):
        order_id = add_order(db, f"MM-{status}", status=status)

        with pytest.raises(ConflictError):
            reader.cancel(order_id)

        assert reader.get_by_id(order_id).status == OrderStatus(status)

    def test_missing_order(self, reader):
        with pytest.raises(NotFoundError):
            reader.cancel(999)

    def test_items_survive_cancellation(self, reader, create_order):
        created = create_order()

        order = reader.cancel(created.id)

        assert len(order.items) == 1
