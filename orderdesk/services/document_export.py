"""
Document Export Pipeline

Two request shapes:
1. Sample exports - fixed templates, independent of anything loaded
2. Live exports   - built from domain records (a user's latest order, or the
                    loaded user/order mirrors)

Either way the payload is a flat map of strings, the generation endpoint
answers with opaque bytes, and the bytes are saved through the
DownloadManager. Failures end up in `error`; `success` carries the
confirmation message for the view.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from orderdesk.api_client import OrderDeskAPIClient
from orderdesk.core.exceptions import (
    DocumentGenerationError,
    EmptyResultError,
    OrderDeskError,
    RequestFailedError,
    ValidationError,
    extract_error_message,
)
from orderdesk.core.logging_config import logger, set_resource
from orderdesk.schemas.document import DocumentKind, GeneratedDocument
from orderdesk.schemas.order import Order
from orderdesk.schemas.user import User
from orderdesk.services.document_templates import (
    SAMPLE_TEMPLATES,
    Payload,
    invoice_payload,
    orders_report_payload,
    users_report_payload,
)
from orderdesk.services.downloads import DownloadManager, build_filename
from orderdesk.services.resource_controller import parse_record, parse_records


def _sort_key(order: Order) -> datetime:
    created = order.created_at
    if created is None:
        return datetime.min
    if created.tzinfo is not None:
        created = created.astimezone(timezone.utc).replace(tzinfo=None)
    return created


def select_latest_order(orders: Sequence[Order]) -> Order:
    """
    The order with the greatest createdAt.

    Ties keep the earliest one in fetch order; orders without a timestamp
    sort before every dated one.
    """
    if not orders:
        raise EmptyResultError("No orders found for this user", resource_type="order")
    return max(orders, key=_sort_key)


class DocumentExportPipeline:
    """Builds payloads, calls the generation service and saves the result"""

    def __init__(self, client: OrderDeskAPIClient, downloads: Optional[DownloadManager] = None):
        self.client = client
        self.downloads = downloads or DownloadManager()
        self.loading: bool = False
        self.error: Optional[str] = None
        self.success: Optional[str] = None
        self.last_document: Optional[GeneratedDocument] = None

    def _reset_state(self) -> None:
        self.error = None
        self.success = None

    async def generate(self, kind: DocumentKind, payload: Payload) -> Optional[GeneratedDocument]:
        """POST the payload, save the returned bytes, report the outcome"""
        set_resource("documents")
        self._reset_state()
        self.loading = True
        filename = build_filename(kind)
        try:
            response = await self.client.generate_document(kind, payload)
            if not response.success:
                raise DocumentGenerationError(
                    extract_error_message(response.data, response.status),
                    doc_type=kind.value,
                    status=response.status,
                )
            content = response.data
            if not isinstance(content, (bytes, bytearray)) or not content:
                raise DocumentGenerationError("The document service returned an empty document", doc_type=kind.value)

            document = await self.downloads.save(
                kind, bytes(content), content_type=response.content_type or None, filename=filename
            )
        except DocumentGenerationError as e:
            self.error = f"Failed to generate document: {e.message}"
            logger.warning(self.error, extra={"doc_type": kind.value})
            return None
        except OSError as e:
            self.error = f"Failed to save {filename}: {e.strerror or e}"
            logger.log_error_with_context(e, context="document save", doc_type=kind.value)
            return None
        finally:
            self.loading = False

        self.last_document = document
        self.success = f"{document.filename} generated successfully!"
        return document

    # ==================== Sample exports ====================

    async def export_sample(self, kind: DocumentKind) -> Optional[GeneratedDocument]:
        kind = DocumentKind(kind)
        return await self.generate(kind, SAMPLE_TEMPLATES[kind]())

    # ==================== Live exports ====================

    async def resolve_latest_order(self, user_id: str) -> Tuple[User, Order]:
        """Fetch the user and their orders, pick the latest order"""
        user = parse_record(User, await self.client.get_user(user_id), "user")
        orders = parse_records(Order, await self.client.get_orders_by_customer(user_id), "order")
        return user, select_latest_order(orders)

    def _fail(self, error: OrderDeskError) -> None:
        if isinstance(error, (EmptyResultError, ValidationError)):
            self.error = error.message
        else:
            self.error = f"Failed to generate document: {error.message}"
        logger.info(self.error)

    async def export_user_invoice(self, user_id: str) -> Optional[GeneratedDocument]:
        """Invoice PDF for the most recent order of one user"""
        self._reset_state()
        try:
            user, order = await self.resolve_latest_order(user_id)
            payload = invoice_payload(user, order)
        except (EmptyResultError, RequestFailedError, ValidationError) as e:
            self._fail(e)
            return None
        logger.debug(f"Invoicing order {order.order_number or order.id} for user {user.username}")
        return await self.generate(DocumentKind.INVOICE, payload)

    async def export_orders_report(self, orders: Sequence[Order]) -> Optional[GeneratedDocument]:
        """Spreadsheet of already-loaded orders"""
        self._reset_state()
        try:
            if not orders:
                raise EmptyResultError("No orders loaded to export", resource_type="order")
            payload = orders_report_payload(list(orders))
        except (EmptyResultError, ValidationError) as e:
            self._fail(e)
            return None
        return await self.generate(DocumentKind.ORDERS, payload)

    async def export_users_report(self, users: Sequence[User]) -> Optional[GeneratedDocument]:
        """Spreadsheet of already-loaded users"""
        self._reset_state()
        try:
            if not users:
                raise EmptyResultError("No users loaded to export", resource_type="user")
            payload = users_report_payload(list(users))
        except (EmptyResultError, ValidationError) as e:
            self._fail(e)
            return None
        return await self.generate(DocumentKind.USERS, payload)


__all__ = ["DocumentExportPipeline", "select_latest_order"]
