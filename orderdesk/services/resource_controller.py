"""
Resource Controllers - server-mirrored collections with CRUD

A controller owns the in-memory mirror of one remote collection. The mirror
is only ever replaced wholesale by a successful list(); mutations never patch
it locally; they reload it instead, so what is displayed is always something
the server actually returned.

Failures never escape: they are turned into the `error` attribute, which
views render next to the (unchanged) mirror.

Usage:
    async with OrderDeskAPIClient() as client:
        users = UserController(client, confirm=ask_user)
        await users.list()
        created = await users.create(UserCreate(...))
        if created is None:
            print(users.error)
"""

import inspect
from typing import (
    Any, Awaitable, Callable, Dict, Generic, List, Optional, Type, TypeVar, Union,
)

from pydantic import BaseModel, ValidationError as PydanticValidationError

from orderdesk.api_client import APIResponse, OrderDeskAPIClient
from orderdesk.core.exceptions import RequestFailedError
from orderdesk.core.logging_config import logger, set_resource
from orderdesk.schemas.document import DocumentMetadata
from orderdesk.schemas.order import Order, OrderStatus
from orderdesk.schemas.user import User


T = TypeVar("T", bound=BaseModel)

ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]


def decline(message: str) -> bool:
    """Default confirmation: destructive actions need an explicit yes"""
    return False


def parse_records(model: Type[T], response: APIResponse, label: str) -> List[T]:
    """Turn a collection response into models, or raise RequestFailedError"""
    if not response.success:
        raise RequestFailedError.from_response(response)
    if response.data is None:
        return []
    if not isinstance(response.data, list):
        raise RequestFailedError(f"Unexpected response for {label} list", status=response.status)
    try:
        return [model.model_validate(item) for item in response.data]
    except PydanticValidationError as e:
        raise RequestFailedError(
            f"Invalid {label} data from server: {e.error_count()} validation error(s)",
            status=response.status
        ) from e


def parse_record(model: Type[T], response: APIResponse, label: str) -> T:
    """Turn a single-record response into a model, or raise RequestFailedError"""
    if not response.success:
        raise RequestFailedError.from_response(response)
    if not isinstance(response.data, dict):
        raise RequestFailedError(f"Unexpected response for {label}", status=response.status)
    try:
        return model.model_validate(response.data)
    except PydanticValidationError as e:
        raise RequestFailedError(
            f"Invalid {label} data from server: {e.error_count()} validation error(s)",
            status=response.status
        ) from e


class CollectionMirror(Generic[T]):
    """
    Read side of a controller: the mirror and list()/get().

    Each list() is tagged with a sequence number; a response older than the
    one currently applied is dropped, so a slow reload can never overwrite a
    newer mirror.
    """

    path: str = ""
    label: str = ""
    plural: str = ""
    model: Type[T]

    def __init__(self, client: OrderDeskAPIClient):
        self.client = client
        self.items: List[T] = []
        self.error: Optional[str] = None
        self.loading: bool = False
        self._issued_seq = 0
        self._applied_seq = 0

    def clear_error(self) -> None:
        self.error = None

    def find(self, resource_id: str) -> Optional[T]:
        """Look a record up in the current mirror (no request)"""
        for item in self.items:
            if getattr(item, "id", None) == resource_id:
                return item
        return None

    async def _fetch_collection(self) -> APIResponse:
        return await self.client.list_resource(self.path)

    async def list(self) -> List[T]:
        """Reload the whole collection; on failure keep the previous mirror"""
        self._issued_seq += 1
        seq = self._issued_seq
        set_resource(self.plural)
        self.loading = True
        try:
            response = await self._fetch_collection()
            records = parse_records(self.model, response, self.label)
        except RequestFailedError as e:
            if seq < self._applied_seq:
                return list(self.items)
            self.error = f"Failed to fetch {self.plural}: {e.message}"
            logger.warning(self.error)
            return list(self.items)
        finally:
            if seq == self._issued_seq:
                self.loading = False

        if seq < self._applied_seq:
            logger.debug(f"Discarding stale {self.plural} list (seq {seq} < {self._applied_seq})")
            return list(self.items)

        self._applied_seq = seq
        self.items = records
        self.error = None
        logger.debug(f"Loaded {len(records)} {self.plural}")
        return list(records)

    async def get(self, resource_id: str) -> Optional[T]:
        """Fetch one record without touching the mirror"""
        response = await self.client.get_resource(self.path, resource_id)
        try:
            return parse_record(self.model, response, self.label)
        except RequestFailedError as e:
            self.error = f"Failed to fetch {self.label}: {e.message}"
            logger.warning(self.error)
            return None


class ResourceController(CollectionMirror[T]):
    """Mirror plus create/update/delete, each followed by a full reload"""

    def __init__(self, client: OrderDeskAPIClient, confirm: Optional[ConfirmCallback] = None):
        super().__init__(client)
        self.confirm: ConfirmCallback = confirm or decline

    @staticmethod
    def _payload(draft: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
        if isinstance(draft, BaseModel):
            return draft.model_dump(by_alias=True, exclude_none=True, mode="json")
        return dict(draft)

    async def _mutate(
        self,
        action: str,
        call: Callable[[], Awaitable[APIResponse]],
        resource_id: Optional[str] = None,
    ) -> Optional[T]:
        set_resource(self.plural)
        response = await call()
        if not response.success:
            message = RequestFailedError.from_response(response).message
            self.error = f"Failed to save {self.label}: {message}"
            logger.log_mutation(self.label, action, resource_id, success=False, error=message)
            return None

        try:
            record = parse_record(self.model, response, self.label)
        except RequestFailedError as e:
            record = None
            parse_error = e.message
        else:
            parse_error = None

        logger.log_mutation(self.label, action, resource_id or getattr(record, "id", None))
        await self.list()

        if record is None and resource_id is not None:
            record = self.find(resource_id)
        if record is None:
            self.error = f"Failed to save {self.label}: {parse_error}"
        return record

    async def create(self, draft: Union[BaseModel, Dict[str, Any]]) -> Optional[T]:
        """Submit a new record; returns the server's version or None on failure"""
        payload = self._payload(draft)
        return await self._mutate(
            "create", lambda: self.client.create_resource(self.path, payload)
        )

    async def update(self, resource_id: str, draft: Union[BaseModel, Dict[str, Any]]) -> Optional[T]:
        payload = self._payload(draft)
        return await self._mutate(
            "update",
            lambda: self.client.update_resource(self.path, resource_id, payload),
            resource_id=resource_id,
        )

    async def _confirmed(self, message: str) -> bool:
        answer = self.confirm(message)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    async def delete(self, resource_id: str) -> bool:
        """Delete after explicit confirmation; declining sends nothing"""
        if not await self._confirmed(f"Are you sure you want to delete this {self.label}?"):
            logger.debug(f"Delete of {self.label} {resource_id} not confirmed")
            return False

        set_resource(self.plural)
        response = await self.client.delete_resource(self.path, resource_id)
        if not response.success:
            message = RequestFailedError.from_response(response).message
            self.error = f"Failed to delete {self.label}: {message}"
            logger.log_mutation(self.label, "delete", resource_id, success=False, error=message)
            return False

        logger.log_mutation(self.label, "delete", resource_id)
        await self.list()
        return True


class UserController(ResourceController[User]):
    path = "/api/users"
    label = "user"
    plural = "users"
    model = User

    async def find_by_username(self, username: str) -> Optional[User]:
        response = await self.client.get_user_by_username(username)
        try:
            return parse_record(User, response, self.label)
        except RequestFailedError as e:
            self.error = f"Failed to fetch {self.label}: {e.message}"
            return None


class OrderController(ResourceController[Order]):
    path = "/api/orders"
    label = "order"
    plural = "orders"
    model = Order

    def _records_or_error(self, response: APIResponse) -> List[Order]:
        try:
            return parse_records(Order, response, self.label)
        except RequestFailedError as e:
            self.error = f"Failed to fetch {self.plural}: {e.message}"
            logger.warning(self.error)
            return []

    async def list_by_customer(self, customer_id: str) -> List[Order]:
        """Orders of one customer; the mirror is left alone"""
        return self._records_or_error(await self.client.get_orders_by_customer(customer_id))

    async def list_by_status(self, status: OrderStatus) -> List[Order]:
        return self._records_or_error(await self.client.get_orders_by_status(OrderStatus(status).value))

    async def find_by_number(self, order_number: str) -> Optional[Order]:
        response = await self.client.get_order_by_number(order_number)
        try:
            return parse_record(Order, response, self.label)
        except RequestFailedError as e:
            self.error = f"Failed to fetch {self.label}: {e.message}"
            return None


class DocumentMetadataController(CollectionMirror[DocumentMetadata]):
    """Generation history; documents are created by the export pipeline only"""
    path = "/api/documents"
    label = "document"
    plural = "documents"
    model = DocumentMetadata


__all__ = [
    "ConfirmCallback",
    "CollectionMirror",
    "ResourceController",
    "UserController",
    "OrderController",
    "DocumentMetadataController",
    "decline",
    "parse_record",
    "parse_records",
]
