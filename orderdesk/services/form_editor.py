"""
Form Editors - scoped edit sessions bound to one controller

An editor holds a typed draft of one record. Field values are kept exactly
as entered (strings) and only parsed on submit, so a bad quantity blocks the
whole submission before anything reaches the network.

Usage:
    editor = OrderFormEditor(orders)
    editor.begin_create()
    editor.set_field(OrderField.CUSTOMER_ID, "42")
    editor.set_item_field(0, ItemField.PRODUCT_NAME, "Widget")
    editor.add_item()
    saved = await editor.submit()
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from orderdesk.core.exceptions import ValidationError
from orderdesk.core.logging_config import logger
from orderdesk.schemas.order import Order, OrderCreate, OrderItem, OrderStatus
from orderdesk.schemas.user import User, UserCreate
from orderdesk.services.resource_controller import ResourceController


class EditMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


# ==================== Drafts ====================

class UserField(str, Enum):
    USERNAME = "username"
    EMAIL = "email"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    PHONE = "phone"
    ADDRESS = "address"


@dataclass
class UserDraft:
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    address: str = ""

    @classmethod
    def from_record(cls, user: User) -> "UserDraft":
        return cls(
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone or "",
            address=user.address or "",
        )


class ItemField(str, Enum):
    PRODUCT_NAME = "product_name"
    QUANTITY = "quantity"
    PRICE = "price"


@dataclass
class ItemDraft:
    product_name: str = ""
    quantity: str = "1"
    price: str = "0"
    product_id: Optional[str] = None


class OrderField(str, Enum):
    CUSTOMER_ID = "customer_id"
    CUSTOMER_NAME = "customer_name"
    CUSTOMER_EMAIL = "customer_email"
    SHIPPING_ADDRESS = "shipping_address"
    STATUS = "status"
    NOTES = "notes"


@dataclass
class OrderDraft:
    customer_id: str = ""
    customer_name: str = ""
    customer_email: str = ""
    shipping_address: str = ""
    status: OrderStatus = OrderStatus.PENDING
    notes: str = ""
    items: List[ItemDraft] = field(default_factory=lambda: [ItemDraft()])
    order_number: Optional[str] = None

    @classmethod
    def from_record(cls, order: Order) -> "OrderDraft":
        items = [
            ItemDraft(
                product_name=item.product_name,
                quantity=str(item.quantity),
                price=str(item.price),
                product_id=item.product_id,
            )
            for item in order.items
        ]
        return cls(
            customer_id=order.customer_id,
            customer_name=order.customer_name,
            customer_email=order.customer_email or "",
            shipping_address=order.shipping_address or "",
            status=order.status,
            notes=order.notes or "",
            items=items or [ItemDraft()],
            order_number=order.order_number,
        )


# ==================== Parsing helpers ====================

def _required(value: str, label: str, field_name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{label} is required", field=field_name)
    return value


def _optional(value: str) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def parse_quantity(value: Any, index: int) -> int:
    """Quantity must be a positive whole number"""
    field_name = f"items[{index}].quantity"
    try:
        quantity = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"Item {index + 1}: quantity '{value}' is not a whole number", field=field_name)
    if quantity < 1:
        raise ValidationError(f"Item {index + 1}: quantity must be at least 1", field=field_name)
    return quantity


def parse_price(value: Any, index: int) -> Decimal:
    """Price must be a finite, non-negative decimal"""
    field_name = f"items[{index}].price"
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"Item {index + 1}: price '{value}' is not a number", field=field_name)
    if not price.is_finite():
        raise ValidationError(f"Item {index + 1}: price '{value}' is not a number", field=field_name)
    if price < 0:
        raise ValidationError(f"Item {index + 1}: price cannot be negative", field=field_name)
    return price


def synthesize_product_id() -> str:
    return f"PROD-{int(time.time() * 1000)}"


# ==================== Editors ====================

D = TypeVar("D")
R = TypeVar("R", bound=BaseModel)


class FormEditor(Generic[D, R]):
    """
    One edit session: mode, draft, and submit.

    The draft is a private copy; nothing in the controller's mirror changes
    until submit succeeds and the controller reloads.
    """

    draft_type: Type[D]

    def __init__(self, controller: ResourceController[R]):
        self.controller = controller
        self.mode = EditMode.CREATE
        self.is_open = False
        self.editing_id: Optional[str] = None
        self.draft: D = self.draft_type()
        self.error: Optional[str] = None

    # -------------------- session lifecycle --------------------

    def reset(self) -> None:
        """Back to a fresh CREATE draft"""
        self.mode = EditMode.CREATE
        self.editing_id = None
        self.draft = self.draft_type()
        self.error = None

    def begin_create(self) -> None:
        self.reset()
        self.is_open = True

    def begin_edit(self, record: R) -> None:
        self.reset()
        self.mode = EditMode.EDIT
        self.editing_id = getattr(record, "id")
        self.draft = self._draft_from(record)
        self.is_open = True

    def close(self) -> None:
        self.is_open = False
        self.reset()

    def _draft_from(self, record: R) -> D:
        raise NotImplementedError

    # -------------------- field access --------------------

    def set_field(self, name: Enum, value: Any) -> None:
        setattr(self.draft, name.value, self._coerce(name, value))

    def _coerce(self, name: Enum, value: Any) -> Any:
        return "" if value is None else str(value)

    # -------------------- submit --------------------

    def build_payload(self) -> BaseModel:
        """Validate the draft and build the request payload (no I/O)"""
        raise NotImplementedError

    async def submit(self) -> Optional[R]:
        """
        Validate, then create or update through the controller.

        The session only closes when the controller reports success; on any
        failure it stays open with `error` set so the user can retry.
        """
        try:
            payload = self.build_payload()
        except ValidationError as e:
            self.error = e.message
            logger.info(f"Submission blocked: {e.message}")
            return None

        if self.mode is EditMode.EDIT and self.editing_id is not None:
            record = await self.controller.update(self.editing_id, payload)
        else:
            record = await self.controller.create(payload)

        if record is None:
            self.error = self.controller.error
            return None

        self.close()
        return record


class UserFormEditor(FormEditor[UserDraft, User]):
    draft_type = UserDraft

    def _draft_from(self, record: User) -> UserDraft:
        return UserDraft.from_record(record)

    def set_field(self, name: UserField, value: Any) -> None:
        super().set_field(UserField(name), value)

    def build_payload(self) -> UserCreate:
        draft = self.draft
        email = _required(draft.email, "Email", "email")
        if "@" not in email:
            raise ValidationError(f"'{email}' is not a valid email address", field="email")
        return UserCreate(
            username=_required(draft.username, "Username", "username"),
            email=email,
            first_name=_required(draft.first_name, "First name", "first_name"),
            last_name=_required(draft.last_name, "Last name", "last_name"),
            phone=_optional(draft.phone),
            address=_optional(draft.address),
        )


class OrderFormEditor(FormEditor[OrderDraft, Order]):
    draft_type = OrderDraft

    def _draft_from(self, record: Order) -> OrderDraft:
        return OrderDraft.from_record(record)

    def set_field(self, name: OrderField, value: Any) -> None:
        super().set_field(OrderField(name), value)

    def _coerce(self, name: Enum, value: Any) -> Any:
        if name is OrderField.STATUS:
            try:
                return OrderStatus(value)
            except ValueError:
                raise ValidationError(f"Unknown order status '{value}'", field="status")
        return super()._coerce(name, value)

    # -------------------- line items --------------------

    @property
    def items(self) -> List[ItemDraft]:
        return self.draft.items

    def add_item(self) -> ItemDraft:
        item = ItemDraft()
        self.draft.items.append(item)
        return item

    def _has_item(self, index: int) -> bool:
        return 0 <= index < len(self.draft.items)

    def remove_item(self, index: int) -> bool:
        """Remove one row; refused when it is the last one or out of range"""
        if len(self.draft.items) <= 1 or not self._has_item(index):
            return False
        del self.draft.items[index]
        return True

    def set_item_field(self, index: int, name: ItemField, value: Any) -> None:
        """Set one item field; renaming a product drops its product id"""
        name = ItemField(name)
        if not self._has_item(index):
            raise ValidationError(f"There is no item {index + 1}", field=f"items[{index}]")
        item = self.draft.items[index]
        value = "" if value is None else str(value)
        if name is ItemField.PRODUCT_NAME and value != item.product_name:
            item.product_id = None
        setattr(item, name.value, value)

    # -------------------- payload --------------------

    def build_payload(self) -> OrderCreate:
        draft = self.draft
        customer_id = _required(draft.customer_id, "Customer ID", "customer_id")
        customer_name = _required(draft.customer_name, "Customer name", "customer_name")

        if not draft.items:
            raise ValidationError("An order needs at least one item", field="items")

        product_id = synthesize_product_id()
        items: List[OrderItem] = []
        for index, item in enumerate(draft.items):
            name = _required(item.product_name, f"Item {index + 1}: product name", f"items[{index}].product_name")
            items.append(OrderItem(
                product_id=item.product_id or product_id,
                product_name=name,
                quantity=parse_quantity(item.quantity, index),
                price=parse_price(item.price, index),
            ))

        try:
            return OrderCreate(
                order_number=draft.order_number,
                customer_id=customer_id,
                customer_name=customer_name,
                customer_email=_optional(draft.customer_email),
                shipping_address=_optional(draft.shipping_address),
                status=draft.status,
                notes=_optional(draft.notes),
                items=items,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid order: {e.errors()[0]['msg']}")


__all__ = [
    "EditMode",
    "FormEditor",
    "UserFormEditor",
    "OrderFormEditor",
    "UserDraft",
    "UserField",
    "OrderDraft",
    "OrderField",
    "ItemDraft",
    "ItemField",
    "parse_quantity",
    "parse_price",
    "synthesize_product_id",
]
