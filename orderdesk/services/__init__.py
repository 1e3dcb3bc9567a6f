from orderdesk.services.resource_controller import (
    CollectionMirror,
    DocumentMetadataController,
    OrderController,
    ResourceController,
    UserController,
)
from orderdesk.services.form_editor import (
    EditMode,
    ItemField,
    OrderField,
    OrderFormEditor,
    UserField,
    UserFormEditor,
)
from orderdesk.services.document_export import DocumentExportPipeline, select_latest_order
from orderdesk.services.downloads import DownloadManager

__all__ = [
    "CollectionMirror",
    "DocumentMetadataController",
    "OrderController",
    "ResourceController",
    "UserController",
    "EditMode",
    "ItemField",
    "OrderField",
    "OrderFormEditor",
    "UserField",
    "UserFormEditor",
    "DocumentExportPipeline",
    "select_latest_order",
    "DownloadManager",
]
