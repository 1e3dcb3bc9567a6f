"""
Document payloads - the flat field maps sent to the generation endpoints.

Sample templates need nothing loaded; the live builders turn domain records
into the same field sets. Every value is a string.
"""

import time
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Optional, Sequence

from orderdesk.schemas.document import DocumentKind
from orderdesk.schemas.order import Order
from orderdesk.schemas.user import User
from orderdesk.services.wire_format import encode_field, encode_items, encode_records, format_number


Payload = Dict[str, str]


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


# ==================== Sample templates ====================

def sample_invoice() -> Payload:
    return {
        "invoiceNumber": f"INV-{_epoch_ms()}",
        "customerName": "John Doe",
        "customerEmail": "john.doe@example.com",
        "customerAddress": "123 Main St, City, Country",
        "items": "Product A|2|100.00|200.00;Product B|1|150.00|150.00",
        "totalAmount": "350.00",
    }


def sample_report() -> Payload:
    return {
        "reportTitle": "Monthly Business Report",
        "summary": "This report provides an overview of business performance for the current month.",
        "totalOrders": "125",
        "totalRevenue": "15750.00",
        "activeUsers": "48",
    }


def sample_orders_report() -> Payload:
    return {
        "orders": (
            "ORD-001|John Doe|3|500.00|CONFIRMED|2024-01-20;"
            "ORD-002|Jane Smith|2|350.00|PENDING|2024-01-21"
        ),
        "totalOrders": "2",
        "totalRevenue": "850.00",
    }


def sample_users_report() -> Payload:
    return {
        "users": (
            "john.doe|john@example.com|John|Doe|Active|2024-01-15;"
            "jane.smith|jane@example.com|Jane|Smith|Active|2024-01-18"
        ),
        "totalUsers": "2",
        "activeUsers": "2",
    }


SAMPLE_TEMPLATES: Dict[DocumentKind, Callable[[], Payload]] = {
    DocumentKind.INVOICE: sample_invoice,
    DocumentKind.REPORT: sample_report,
    DocumentKind.ORDERS: sample_orders_report,
    DocumentKind.USERS: sample_users_report,
}


# ==================== Live payloads ====================

def invoice_payload(user: User, order: Order) -> Payload:
    """Invoice for one order, addressed to the user who placed it"""
    return {
        "invoiceNumber": encode_field(order.order_number or order.id, "invoiceNumber"),
        "customerName": user.full_name,
        "customerEmail": user.email,
        "customerAddress": order.shipping_address or user.address or "",
        "items": encode_items(order.items),
        "totalAmount": format_number(order.computed_total),
    }


def orders_report_payload(orders: Sequence[Order]) -> Payload:
    """orderNumber|customer|itemCount|total|status|date per order"""
    revenue = sum((order.computed_total for order in orders), Decimal("0"))
    return {
        "orders": encode_records(
            (
                order.order_number or order.id,
                order.customer_name,
                len(order.items),
                order.computed_total,
                order.status.value,
                _date(order.created_at),
            )
            for order in orders
        ),
        "totalOrders": str(len(orders)),
        "totalRevenue": format_number(revenue),
    }


def users_report_payload(users: Sequence[User]) -> Payload:
    """username|email|first|last|Active/Inactive|date per user"""
    return {
        "users": encode_records(
            (
                user.username,
                user.email,
                user.first_name,
                user.last_name,
                "Active" if user.active else "Inactive",
                _date(user.created_at),
            )
            for user in users
        ),
        "totalUsers": str(len(users)),
        "activeUsers": str(sum(1 for user in users if user.active)),
    }


__all__ = [
    "Payload",
    "SAMPLE_TEMPLATES",
    "sample_invoice",
    "sample_report",
    "sample_orders_report",
    "sample_users_report",
    "invoice_payload",
    "orders_report_payload",
    "users_report_payload",
]
