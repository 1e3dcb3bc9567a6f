from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel
from typing import Annotated, Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum


# Decimals travel as JSON numbers, the way the order service expects them
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    product_id: Optional[str] = None
    product_name: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    price: Money = Field(..., ge=0)
    subtotal: Optional[Money] = None

    @property
    def line_total(self) -> Decimal:
        """Supplied subtotal, or quantity x price when the server sent none"""
        if self.subtotal is not None:
            return self.subtotal
        return self.price * self.quantity


class OrderBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    order_number: Optional[str] = None
    customer_id: str
    customer_name: str
    customer_email: Optional[str] = None
    shipping_address: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    notes: Optional[str] = None


class OrderCreate(OrderBase):
    """Payload for POST/PUT /api/orders"""
    items: List[OrderItem] = Field(..., min_length=1)


class Order(OrderBase):
    id: str
    items: List[OrderItem] = Field(default_factory=list)
    total_amount: Optional[Money] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def computed_total(self) -> Decimal:
        """Server total when present, otherwise the sum of the line totals"""
        if self.total_amount is not None:
            return self.total_amount
        return sum((item.line_total for item in self.items), Decimal("0"))
