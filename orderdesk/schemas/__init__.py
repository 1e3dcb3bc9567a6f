from orderdesk.schemas.user import User, UserCreate
from orderdesk.schemas.order import Order, OrderCreate, OrderItem, OrderStatus
from orderdesk.schemas.document import (
    DocumentKind,
    DocumentMetadata,
    DocumentSpec,
    GeneratedDocument,
    DOCUMENT_SPECS,
)

__all__ = [
    "User",
    "UserCreate",
    "Order",
    "OrderCreate",
    "OrderItem",
    "OrderStatus",
    "DocumentKind",
    "DocumentMetadata",
    "DocumentSpec",
    "GeneratedDocument",
    "DOCUMENT_SPECS",
]
