"""
Delimited wire format used by the document service.

Records are lists of fields joined by '|'; records are joined by ';'.
Example (two invoice items):

    Product A|2|100.00|200.00;Product B|1|150.00|150.00

The format has no escaping, so a value containing either delimiter is
rejected instead of being silently split on the server side.
"""

from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from orderdesk.core.exceptions import ValidationError, WireFormatError
from orderdesk.schemas.order import OrderItem


FIELD_DELIMITER = "|"
RECORD_DELIMITER = ";"

ItemTuple = Tuple[str, int, Decimal, Decimal]


def format_number(value: Any) -> str:
    """Natural decimal string: no exponent, no padding, source precision kept"""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        value = Decimal(repr(value))
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def encode_field(value: Any, name: Optional[str] = None) -> str:
    text = "" if value is None else (value if isinstance(value, str) else format_number(value))
    if FIELD_DELIMITER in text or RECORD_DELIMITER in text:
        raise WireFormatError(text, field=name)
    return text


def encode_record(values: Sequence[Any]) -> str:
    return FIELD_DELIMITER.join(encode_field(value) for value in values)


def encode_records(rows: Iterable[Sequence[Any]]) -> str:
    return RECORD_DELIMITER.join(encode_record(row) for row in rows)


def decode_records(text: str) -> List[List[str]]:
    if not text:
        return []
    return [record.split(FIELD_DELIMITER) for record in text.split(RECORD_DELIMITER)]


def encode_items(items: Sequence[OrderItem]) -> str:
    """productName|quantity|price|subtotal for each item, ';' between items"""
    return encode_records(
        (item.product_name, item.quantity, item.price, item.line_total)
        for item in items
    )


def decode_items(text: str) -> List[ItemTuple]:
    """Inverse of encode_items"""
    items: List[ItemTuple] = []
    for index, fields in enumerate(decode_records(text)):
        if len(fields) != 4:
            raise ValidationError(
                f"Item record {index + 1} has {len(fields)} fields, expected 4",
                field="items"
            )
        name, quantity, price, subtotal = fields
        try:
            items.append((name, int(quantity), Decimal(price), Decimal(subtotal)))
        except (ValueError, ArithmeticError):
            raise ValidationError(f"Item record {index + 1} is malformed: '{FIELD_DELIMITER.join(fields)}'", field="items")
    return items


__all__ = [
    "FIELD_DELIMITER",
    "RECORD_DELIMITER",
    "format_number",
    "encode_field",
    "encode_record",
    "encode_records",
    "decode_records",
    "encode_items",
    "decode_items",
]
