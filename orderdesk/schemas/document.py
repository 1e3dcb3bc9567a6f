from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, Any, NamedTuple
from datetime import datetime
from pathlib import Path
from enum import Enum


PDF_CONTENT_TYPE = "application/pdf"
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class DocumentSpec(NamedTuple):
    endpoint: str
    filename_prefix: str
    extension: str
    content_type: str


class DocumentKind(str, Enum):
    INVOICE = "invoice"
    REPORT = "report"
    ORDERS = "orders"
    USERS = "users"

    @property
    def spec(self) -> DocumentSpec:
        return DOCUMENT_SPECS[self]

    @property
    def endpoint(self) -> str:
        return self.spec.endpoint

    @property
    def is_pdf(self) -> bool:
        return self.spec.content_type == PDF_CONTENT_TYPE


DOCUMENT_SPECS: Dict[DocumentKind, DocumentSpec] = {
    DocumentKind.INVOICE: DocumentSpec(
        "/api/documents/generate/pdf/invoice", "invoice", ".pdf", PDF_CONTENT_TYPE
    ),
    DocumentKind.REPORT: DocumentSpec(
        "/api/documents/generate/pdf/report", "report", ".pdf", PDF_CONTENT_TYPE
    ),
    DocumentKind.ORDERS: DocumentSpec(
        "/api/documents/generate/excel/orders", "orders", ".xlsx", XLSX_CONTENT_TYPE
    ),
    DocumentKind.USERS: DocumentSpec(
        "/api/documents/generate/excel/users", "users", ".xlsx", XLSX_CONTENT_TYPE
    ),
}


class GeneratedDocument(BaseModel):
    """A generated artifact that has been saved locally"""
    kind: DocumentKind
    filename: str
    content_type: str
    size_bytes: int
    path: Path


class DocumentMetadata(BaseModel):
    """Generation record kept by the document service (read only)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    document_name: Optional[str] = None
    document_type: Optional[str] = None  # PDF, EXCEL
    template_type: Optional[str] = None  # INVOICE, REPORT, ORDER_REPORT, USER_REPORT
    generated_by: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
