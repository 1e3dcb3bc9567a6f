"""
Fake Gateway for Testing
In-memory user, order and document services behind one FastAPI app, served to
the client through httpx.ASGITransport so no network is involved.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from orderdesk.schemas.document import DOCUMENT_SPECS, DocumentKind


FAKE_PDF = b"%PDF-1.4\n% fake invoice\n%%EOF\n"
FAKE_XLSX = b"PK\x03\x04fake-spreadsheet"


class FakeGateway:
    """In-memory backend with request recording and failure injection"""

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.requests: List[Tuple[str, str]] = []
        self.generated: List[Tuple[str, Dict[str, Any]]] = []
        self.failures: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.empty_documents = False
        self._next_id = 1
        self._clock = datetime(2024, 1, 15, 9, 0, 0)
        self.app = self._build_app()

    # ==================== test controls ====================

    def fail(self, method: str, path: str, status: int = 500, body: Any = None) -> None:
        """Make METHOD path (exact match) answer with status and body"""
        self.failures[(method.upper(), path)] = (status, body)

    def clear_failures(self) -> None:
        self.failures.clear()

    def count(self, method: str, prefix: str = "") -> int:
        return sum(1 for m, p in self.requests if m == method and p.startswith(prefix))

    def _new_id(self) -> str:
        value = str(self._next_id)
        self._next_id += 1
        return value

    def _tick(self) -> str:
        self._clock += timedelta(minutes=1)
        return self._clock.isoformat()

    def add_user(self, **fields: Any) -> Dict[str, Any]:
        user = {
            "id": self._new_id(),
            "username": "jdoe",
            "email": "jdoe@example.com",
            "firstName": "John",
            "lastName": "Doe",
            "active": True,
            "createdAt": self._tick(),
        }
        user.update(fields)
        self.users[user["id"]] = user
        return user

    def add_order(self, **fields: Any) -> Dict[str, Any]:
        order = {
            "id": self._new_id(),
            "customerId": "1",
            "customerName": "John Doe",
            "status": "PENDING",
            "items": [{"productId": "PROD-1", "productName": "Widget", "quantity": 1, "price": 10.0}],
            "createdAt": self._tick(),
        }
        order.update(fields)
        order.setdefault("orderNumber", f"ORD-{order['id']:0>3}")
        self._price(order)
        self.orders[order["id"]] = order
        return order

    @staticmethod
    def _price(order: Dict[str, Any]) -> None:
        total = Decimal("0")
        for item in order.get("items", []):
            subtotal = Decimal(str(item["price"])) * item["quantity"]
            item["subtotal"] = float(subtotal)
            total += subtotal
        order["totalAmount"] = float(total)

    # ==================== app ====================

    def _build_app(self) -> FastAPI:
        app = FastAPI(title="Fake OrderDesk Gateway")
        gateway = self

        @app.middleware("http")
        async def record_and_inject(request: Request, call_next):
            gateway.requests.append((request.method, request.url.path))
            failure = gateway.failures.get((request.method, request.url.path))
            if failure is not None:
                status, body = failure
                if isinstance(body, (bytes, str)):
                    return Response(content=body, status_code=status)
                return JSONResponse(body, status_code=status)
            return await call_next(request)

        def not_found(label: str) -> JSONResponse:
            return JSONResponse({"message": f"{label} not found"}, status_code=404)

        # ---------- users ----------

        @app.get("/api/users")
        async def list_users():
            return list(gateway.users.values())

        @app.post("/api/users", status_code=201)
        async def create_user(request: Request):
            body = await request.json()
            if any(u["username"] == body.get("username") for u in gateway.users.values()):
                return JSONResponse({"message": "Username already exists"}, status_code=409)
            return gateway.add_user(**body)

        @app.get("/api/users/username/{username}")
        async def user_by_username(username: str):
            for user in gateway.users.values():
                if user["username"] == username:
                    return user
            return not_found("User")

        @app.get("/api/users/{user_id}")
        async def get_user(user_id: str):
            user = gateway.users.get(user_id)
            return user if user else not_found("User")

        @app.put("/api/users/{user_id}")
        async def update_user(user_id: str, request: Request):
            if user_id not in gateway.users:
                return not_found("User")
            gateway.users[user_id].update(await request.json())
            gateway.users[user_id]["updatedAt"] = gateway._tick()
            return gateway.users[user_id]

        @app.delete("/api/users/{user_id}")
        async def delete_user(user_id: str):
            if gateway.users.pop(user_id, None) is None:
                return not_found("User")
            return Response(status_code=204)

        # ---------- orders ----------

        @app.get("/api/orders")
        async def list_orders():
            return list(gateway.orders.values())

        @app.post("/api/orders", status_code=201)
        async def create_order(request: Request):
            return gateway.add_order(**(await request.json()))

        @app.get("/api/orders/customer/{customer_id}")
        async def orders_by_customer(customer_id: str):
            return [o for o in gateway.orders.values() if o["customerId"] == customer_id]

        @app.get("/api/orders/number/{order_number}")
        async def order_by_number(order_number: str):
            for order in gateway.orders.values():
                if order["orderNumber"] == order_number:
                    return order
            return not_found("Order")

        @app.get("/api/orders/status/{status}")
        async def orders_by_status(status: str):
            return [o for o in gateway.orders.values() if o["status"] == status]

        @app.get("/api/orders/{order_id}")
        async def get_order(order_id: str):
            order = gateway.orders.get(order_id)
            return order if order else not_found("Order")

        @app.put("/api/orders/{order_id}")
        async def update_order(order_id: str, request: Request):
            if order_id not in gateway.orders:
                return not_found("Order")
            order = gateway.orders[order_id]
            order.update(await request.json())
            order["updatedAt"] = gateway._tick()
            gateway._price(order)
            return order

        @app.delete("/api/orders/{order_id}")
        async def delete_order(order_id: str):
            if gateway.orders.pop(order_id, None) is None:
                return not_found("Order")
            return Response(status_code=204)

        # ---------- documents ----------

        @app.get("/api/documents")
        async def list_documents():
            return list(gateway.documents.values())

        @app.get("/api/documents/{document_id}")
        async def get_document(document_id: str):
            document = gateway.documents.get(document_id)
            return document if document else not_found("Document")

        def register_generator(kind: DocumentKind):
            spec = DOCUMENT_SPECS[kind]

            async def generate(request: Request):
                fields = await request.json()
                gateway.generated.append((kind.value, fields))
                document_id = gateway._new_id()
                gateway.documents[document_id] = {
                    "id": document_id,
                    "documentName": f"{spec.filename_prefix}{spec.extension}",
                    "documentType": "PDF" if kind.is_pdf else "EXCEL",
                    "templateType": kind.value.upper(),
                    "generatedBy": "system",
                    "createdAt": gateway._tick(),
                }
                if gateway.empty_documents:
                    return Response(content=b"", media_type=spec.content_type)
                content = FAKE_PDF if kind.is_pdf else FAKE_XLSX
                return Response(content=content, media_type=spec.content_type)

            app.add_api_route(spec.endpoint, generate, methods=["POST"])

        for kind in DocumentKind:
            register_generator(kind)

        return app


__all__ = ["FakeGateway", "FAKE_PDF", "FAKE_XLSX"]
