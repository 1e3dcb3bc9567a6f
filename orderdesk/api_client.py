"""
OrderDesk - Gateway API Client
Thin async wrapper over the user, order and document services.

Every request carries the bearer token. Failures never raise: they come back
as an APIResponse with success=False so callers decide how to surface them.
"""
import time
import httpx
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field

from orderdesk.core.config import settings
from orderdesk.core.logging_config import logger, generate_request_id, set_request_id
from orderdesk.schemas.document import DocumentKind


@dataclass
class APIResponse:
    """API Response wrapper"""
    status: int
    data: Any
    headers: Dict[str, str] = field(default_factory=dict)
    success: bool = False

    @property
    def json(self) -> Any:
        return self.data

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").split(";")[0].strip()


class OrderDeskAPIClient:
    """API Client for the gateway in front of the user/order/document services"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip('/')
        self.token: Optional[str] = token if token is not None else (settings.ACCESS_TOKEN or None)
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self._transport = transport
        self.session: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self.session = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self.session:
            await self.session.aclose()
            self.session = None

    def _get_headers(self, binary: bool = False) -> Dict[str, str]:
        """Get request headers"""
        headers = {"Content-Type": "application/json"}
        headers["Accept"] = "*/*" if binary else "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Any] = None,
        binary: bool = False,
    ) -> APIResponse:
        """Make HTTP request"""
        if self.session is None:
            raise RuntimeError("OrderDeskAPIClient must be used as an async context manager")

        set_request_id(generate_request_id())
        started = time.perf_counter()

        try:
            response = await self.session.request(
                method, endpoint, json=data, headers=self._get_headers(binary)
            )
        except httpx.HTTPError as e:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.log_request(method, endpoint, 0, duration_ms, error=str(e))
            return APIResponse(
                status=0,
                data={"error": str(e) or type(e).__name__},
                headers={},
                success=False
            )

        duration_ms = (time.perf_counter() - started) * 1000
        logger.log_request(method, endpoint, response.status_code, duration_ms)

        success = 200 <= response.status_code < 300
        if binary and success:
            response_data: Any = response.content
        elif not response.content:
            response_data = None
        else:
            try:
                response_data = response.json()
            except ValueError:
                response_data = response.text

        return APIResponse(
            status=response.status_code,
            data=response_data,
            headers=dict(response.headers),
            success=success
        )

    # ==================== Generic collection access ====================
    async def list_resource(self, path: str) -> APIResponse:
        return await self._request("GET", path)

    async def get_resource(self, path: str, resource_id: str) -> APIResponse:
        return await self._request("GET", f"{path}/{resource_id}")

    async def create_resource(self, path: str, payload: Dict[str, Any]) -> APIResponse:
        return await self._request("POST", path, data=payload)

    async def update_resource(self, path: str, resource_id: str, payload: Dict[str, Any]) -> APIResponse:
        return await self._request("PUT", f"{path}/{resource_id}", data=payload)

    async def delete_resource(self, path: str, resource_id: str) -> APIResponse:
        return await self._request("DELETE", f"{path}/{resource_id}")

    # ==================== Users ====================
    async def list_users(self) -> APIResponse:
        """List all users"""
        return await self.list_resource("/api/users")

    async def get_user(self, user_id: str) -> APIResponse:
        """Get user details"""
        return await self.get_resource("/api/users", user_id)

    async def get_user_by_username(self, username: str) -> APIResponse:
        return await self._request("GET", f"/api/users/username/{username}")

    # ==================== Orders ====================
    async def list_orders(self) -> APIResponse:
        """List all orders"""
        return await self.list_resource("/api/orders")

    async def get_order(self, order_id: str) -> APIResponse:
        return await self.get_resource("/api/orders", order_id)

    async def get_orders_by_customer(self, customer_id: str) -> APIResponse:
        """List every order placed by one customer"""
        return await self._request("GET", f"/api/orders/customer/{customer_id}")

    async def get_order_by_number(self, order_number: str) -> APIResponse:
        return await self._request("GET", f"/api/orders/number/{order_number}")

    async def get_orders_by_status(self, status: str) -> APIResponse:
        return await self._request("GET", f"/api/orders/status/{status}")

    # ==================== Documents ====================
    async def list_documents(self) -> APIResponse:
        """List generation records kept by the document service"""
        return await self.list_resource("/api/documents")

    async def get_document(self, document_id: str) -> APIResponse:
        return await self.get_resource("/api/documents", document_id)

    async def generate_document(self, kind: DocumentKind, fields: Dict[str, str]) -> APIResponse:
        """
        Ask the document service to render a document.

        On success `data` holds the raw bytes and `content_type` the
        document kind reported by the server.
        """
        return await self._request("POST", kind.endpoint, data=fields, binary=True)


__all__ = ["APIResponse", "OrderDeskAPIClient"]
