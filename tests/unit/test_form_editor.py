"""
Unit Tests for Form Editors
Tests for: edit sessions, line items, draft validation, submit outcomes
"""
import re
from decimal import Decimal

import pytest

from orderdesk.core.exceptions import ValidationError
from orderdesk.schemas.order import Order, OrderStatus
from orderdesk.services.form_editor import (
    EditMode,
    ItemField,
    OrderField,
    OrderFormEditor,
    UserField,
    UserFormEditor,
    parse_price,
    parse_quantity,
)


def fill_order(editor: OrderFormEditor, *items):
    editor.set_field(OrderField.CUSTOMER_ID, "1")
    editor.set_field(OrderField.CUSTOMER_NAME, "John Doe")
    for index, (name, quantity, price) in enumerate(items):
        if index > 0:
            editor.add_item()
        editor.set_item_field(index, ItemField.PRODUCT_NAME, name)
        editor.set_item_field(index, ItemField.QUANTITY, quantity)
        editor.set_item_field(index, ItemField.PRICE, price)


class TestSessionLifecycle:
    """Test opening, closing and resetting edit sessions"""

    def test_begin_create_starts_with_one_item(self, orders):
        """Test that a new order draft has exactly one empty item row"""
        editor = OrderFormEditor(orders)

        editor.begin_create()

        assert editor.is_open is True
        assert editor.mode is EditMode.CREATE
        assert len(editor.items) == 1
        assert editor.items[0].quantity == "1"

    def test_close_resets_draft(self, orders):
        editor = OrderFormEditor(orders)
        editor.begin_create()
        editor.set_field(OrderField.NOTES, "rush")

        editor.close()

        assert editor.is_open is False
        assert editor.draft.notes == ""

    def test_begin_edit_copies_record(self, orders):
        """Test that editing the draft never mutates the source record"""
        record = Order.model_validate({
            "id": "9", "orderNumber": "ORD-009", "customerId": "1", "customerName": "John Doe",
            "status": "CONFIRMED",
            "items": [{"productId": "PROD-1", "productName": "Widget", "quantity": 2, "price": 5}],
        })
        editor = OrderFormEditor(orders)

        editor.begin_edit(record)
        editor.set_item_field(0, ItemField.PRODUCT_NAME, "Gadget")
        editor.add_item()

        assert editor.mode is EditMode.EDIT
        assert editor.editing_id == "9"
        assert editor.draft.status is OrderStatus.CONFIRMED
        assert record.items[0].product_name == "Widget"
        assert len(record.items) == 1

    def test_begin_edit_without_items_gets_default_row(self, orders):
        record = Order.model_validate({"id": "3", "customerId": "1", "customerName": "A B"})
        editor = OrderFormEditor(orders)

        editor.begin_edit(record)

        assert len(editor.items) == 1


class TestLineItems:
    """Test the at-least-one-item rule"""

    def test_add_and_remove(self, orders):
        editor = OrderFormEditor(orders)
        editor.begin_create()
        editor.add_item()
        editor.set_item_field(1, ItemField.PRODUCT_NAME, "Second")

        assert editor.remove_item(0) is True
        assert [i.product_name for i in editor.items] == ["Second"]

    def test_removing_last_item_is_refused(self, orders):
        """Test that the final row cannot be removed"""
        editor = OrderFormEditor(orders)
        editor.begin_create()

        assert editor.remove_item(0) is False
        assert len(editor.items) == 1

    def test_remove_out_of_range_is_refused(self, orders):
        """Test that invalid positions leave the rows untouched"""
        editor = OrderFormEditor(orders)
        editor.begin_create()
        editor.add_item()
        editor.set_item_field(1, ItemField.PRODUCT_NAME, "Second")

        assert editor.remove_item(5) is False
        assert editor.remove_item(-1) is False
        assert len(editor.items) == 2
        assert editor.items[1].product_name == "Second"

    @pytest.mark.parametrize("index", [3, -1])
    def test_set_field_on_missing_item(self, orders, index):
        editor = OrderFormEditor(orders)
        editor.begin_create()

        with pytest.raises(ValidationError) as exc_info:
            editor.set_item_field(index, ItemField.PRICE, "1.00")

        assert exc_info.value.field == f"items[{index}]"

    def test_renaming_product_drops_product_id(self, orders):
        """Test that an existing product id survives only while the name is unchanged"""
        record = Order.model_validate({
            "id": "4", "customerId": "1", "customerName": "A B",
            "items": [
                {"productId": "PROD-1", "productName": "Widget", "quantity": 1, "price": 1},
                {"productId": "PROD-2", "productName": "Gadget", "quantity": 1, "price": 1},
            ],
        })
        editor = OrderFormEditor(orders)
        editor.begin_edit(record)

        editor.set_item_field(0, ItemField.PRODUCT_NAME, "Widget")
        editor.set_item_field(1, ItemField.PRODUCT_NAME, "Sprocket")

        assert editor.items[0].product_id == "PROD-1"
        assert editor.items[1].product_id is None

    def test_unknown_status_rejected(self, orders):
        editor = OrderFormEditor(orders)
        editor.begin_create()

        with pytest.raises(ValidationError):
            editor.set_field(OrderField.STATUS, "LOST")


class TestParsing:
    """Test strict quantity and price parsing"""

    @pytest.mark.parametrize("value", ["abc", "2.5", "", "0", "-1"])
    def test_bad_quantity(self, value):
        with pytest.raises(ValidationError):
            parse_quantity(value, 0)

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", "-0.01", ""])
    def test_bad_price(self, value):
        with pytest.raises(ValidationError):
            parse_price(value, 0)

    def test_good_values(self):
        assert parse_quantity(" 3 ", 0) == 3
        assert parse_price("19.90", 0) == Decimal("19.90")


class TestOrderSubmit:
    """Test submitting order drafts"""

    @pytest.mark.asyncio
    async def test_invalid_quantity_blocks_request(self, gateway, orders):
        """Test that a parse failure sends nothing and keeps the session open"""
        editor = OrderFormEditor(orders)
        editor.begin_create()
        fill_order(editor, ("Widget", "lots", "1.00"))

        result = await editor.submit()

        assert result is None
        assert "quantity" in editor.error
        assert editor.is_open is True
        assert gateway.count("POST") == 0

    @pytest.mark.asyncio
    async def test_missing_product_name_blocks_request(self, gateway, orders):
        editor = OrderFormEditor(orders)
        editor.begin_create()
        fill_order(editor, ("", "1", "1.00"))

        assert await editor.submit() is None
        assert editor.error == "Item 1: product name is required"
        assert gateway.count("POST") == 0

    @pytest.mark.asyncio
    async def test_create_synthesizes_product_ids(self, gateway, orders):
        """Test that new rows get one shared PROD-<epoch-ms> id per submission"""
        editor = OrderFormEditor(orders)
        editor.begin_create()
        fill_order(editor, ("Widget", "2", "9.99"), ("Gadget", "1", "20"))

        saved = await editor.submit()

        assert saved is not None
        product_ids = [item["productId"] for item in gateway.orders[saved.id]["items"]]
        assert all(re.fullmatch(r"PROD-\d+", pid) for pid in product_ids)
        assert len(set(product_ids)) == 1

    @pytest.mark.asyncio
    async def test_success_closes_session_and_reloads(self, gateway, orders):
        editor = OrderFormEditor(orders)
        editor.begin_create()
        fill_order(editor, ("Widget", "2", "9.99"))

        saved = await editor.submit()

        assert editor.is_open is False
        assert [o.id for o in orders.items] == [saved.id]
        assert saved.status is OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_edit_submits_update(self, gateway, orders):
        """Test that an edit session PUTs to the record and keeps existing product ids"""
        stored = gateway.add_order()
        record = await orders.get(stored["id"])
        editor = OrderFormEditor(orders)
        editor.begin_edit(record)
        editor.set_field(OrderField.STATUS, "SHIPPED")

        saved = await editor.submit()

        assert saved.status is OrderStatus.SHIPPED
        assert gateway.count("PUT") == 1
        assert gateway.orders[stored["id"]]["items"][0]["productId"] == "PROD-1"

    @pytest.mark.asyncio
    async def test_server_failure_keeps_session_open(self, gateway, orders):
        """Test that a rejected save leaves the draft for a retry"""
        gateway.fail("POST", "/api/orders", 400, {"message": "Customer not found"})
        editor = OrderFormEditor(orders)
        editor.begin_create()
        fill_order(editor, ("Widget", "1", "1"))

        result = await editor.submit()

        assert result is None
        assert editor.is_open is True
        assert editor.error == "Failed to save order: Customer not found"
        assert editor.items[0].product_name == "Widget"


class TestUserSubmit:
    """Test submitting user drafts"""

    @pytest.mark.asyncio
    async def test_create_user(self, gateway, users, user_payload):
        editor = UserFormEditor(users)
        editor.begin_create()
        editor.set_field(UserField.USERNAME, user_payload["username"])
        editor.set_field(UserField.EMAIL, user_payload["email"])
        editor.set_field(UserField.FIRST_NAME, user_payload["firstName"])
        editor.set_field(UserField.LAST_NAME, user_payload["lastName"])

        saved = await editor.submit()

        assert saved.username == user_payload["username"]
        assert "phone" not in gateway.users[saved.id]

    @pytest.mark.asyncio
    async def test_invalid_email(self, gateway, users):
        editor = UserFormEditor(users)
        editor.begin_create()
        editor.set_field(UserField.USERNAME, "jdoe")
        editor.set_field(UserField.EMAIL, "not-an-email")

        assert await editor.submit() is None
        assert "not a valid email" in editor.error
        assert gateway.count("POST") == 0
