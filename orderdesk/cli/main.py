#!/usr/bin/env python3
"""
OrderDesk CLI - Main Entry Point

Usage:
    orderdesk users list
    orderdesk users create --username jdoe --email jdoe@example.com --first-name John --last-name Doe
    orderdesk orders create --customer-id 1 --customer-name "John Doe" --item "Widget:2:9.99"
    orderdesk documents sample invoice
    orderdesk documents invoice --user-id 1
    orderdesk status
"""

import argparse
import asyncio
import sys
from typing import List, Optional, Tuple

import httpx
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from orderdesk import __version__
from orderdesk.api_client import OrderDeskAPIClient
from orderdesk.core.config import settings
from orderdesk.core.exceptions import ValidationError
from orderdesk.cli.views import (
    render_documents,
    render_error,
    render_orders,
    render_saved_document,
    render_success,
    render_users,
)
from orderdesk.schemas.document import DocumentKind
from orderdesk.schemas.order import OrderStatus
from orderdesk.services.document_export import DocumentExportPipeline
from orderdesk.services.downloads import DownloadManager
from orderdesk.services.form_editor import (
    ItemField,
    OrderField,
    OrderFormEditor,
    UserField,
    UserFormEditor,
)
from orderdesk.services.resource_controller import (
    DocumentMetadataController,
    OrderController,
    UserController,
)


USER_OPTIONS = {
    "username": UserField.USERNAME,
    "email": UserField.EMAIL,
    "first_name": UserField.FIRST_NAME,
    "last_name": UserField.LAST_NAME,
    "phone": UserField.PHONE,
    "address": UserField.ADDRESS,
}

ORDER_OPTIONS = {
    "customer_id": OrderField.CUSTOMER_ID,
    "customer_name": OrderField.CUSTOMER_NAME,
    "customer_email": OrderField.CUSTOMER_EMAIL,
    "shipping_address": OrderField.SHIPPING_ADDRESS,
    "status": OrderField.STATUS,
    "notes": OrderField.NOTES,
}


def _add_user_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--username", help="Login name")
    parser.add_argument("--email", help="Email address")
    parser.add_argument("--first-name", dest="first_name", help="First name")
    parser.add_argument("--last-name", dest="last_name", help="Last name")
    parser.add_argument("--phone", help="Phone number")
    parser.add_argument("--address", help="Postal address")


def _add_order_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--customer-id", dest="customer_id", help="Customer (user) ID")
    parser.add_argument("--customer-name", dest="customer_name", help="Customer display name")
    parser.add_argument("--customer-email", dest="customer_email", help="Customer email")
    parser.add_argument("--shipping-address", dest="shipping_address", help="Shipping address")
    parser.add_argument(
        "--status",
        choices=[s.value for s in OrderStatus],
        help="Order status"
    )
    parser.add_argument("--notes", help="Free-form notes")
    parser.add_argument(
        "--item",
        dest="items",
        action="append",
        metavar="NAME:QTY:PRICE",
        help="Line item, repeat for several items (e.g. --item 'Widget:2:9.99')"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="orderdesk",
        description="OrderDesk - manage users and orders, export invoices and reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  orderdesk users list                                   List all users
  orderdesk orders list --customer 42                    Orders of one customer
  orderdesk orders create --customer-id 42 --customer-name "John Doe" \\
      --item "Product A:2:100.00" --item "Product B:1:150.00"
  orderdesk orders delete 7                              Delete (asks first)
  orderdesk documents sample orders                      Sample orders spreadsheet
  orderdesk documents invoice --user-id 42               Invoice for latest order

Configuration:
  ORDERDESK_API_BASE_URL    Gateway URL (default http://localhost:8080)
  ORDERDESK_ACCESS_TOKEN    Bearer token obtained from the identity provider
  ORDERDESK_DOWNLOAD_DIR    Where generated documents are saved
""",
    )

    parser.add_argument("--version", "-V", action="version", version=f"orderdesk {__version__}")
    parser.add_argument(
        "--server-url",
        default=None,
        help=f"Gateway URL (default: {settings.API_BASE_URL})"
    )
    parser.add_argument("--token", default=None, help="Bearer access token")
    parser.add_argument(
        "--download-dir",
        default=None,
        help=f"Directory for generated documents (default: {settings.DOWNLOAD_DIR})"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # users
    users = subparsers.add_parser("users", help="Manage users")
    users_sub = users.add_subparsers(dest="action", required=True)
    users_sub.add_parser("list", help="List users")
    user_create = users_sub.add_parser("create", help="Create a user")
    _add_user_fields(user_create)
    user_update = users_sub.add_parser("update", help="Update a user")
    user_update.add_argument("id", help="User ID")
    _add_user_fields(user_update)
    user_delete = users_sub.add_parser("delete", help="Delete a user")
    user_delete.add_argument("id", help="User ID")
    user_delete.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")

    # orders
    orders = subparsers.add_parser("orders", help="Manage orders")
    orders_sub = orders.add_subparsers(dest="action", required=True)
    order_list = orders_sub.add_parser("list", help="List orders")
    order_list.add_argument("--customer", help="Only orders of this customer ID")
    order_list.add_argument("--status", choices=[s.value for s in OrderStatus], help="Only orders in this status")
    order_create = orders_sub.add_parser("create", help="Create an order")
    _add_order_fields(order_create)
    order_update = orders_sub.add_parser("update", help="Update an order")
    order_update.add_argument("id", help="Order ID")
    _add_order_fields(order_update)
    order_delete = orders_sub.add_parser("delete", help="Delete an order")
    order_delete.add_argument("id", help="Order ID")
    order_delete.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")

    # documents
    documents = subparsers.add_parser("documents", help="Generate and list documents")
    documents_sub = documents.add_subparsers(dest="action", required=True)
    sample = documents_sub.add_parser("sample", help="Generate a document from sample data")
    sample.add_argument("kind", choices=[k.value for k in DocumentKind])
    invoice = documents_sub.add_parser("invoice", help="Invoice PDF for a user's latest order")
    invoice.add_argument("--user-id", dest="user_id", required=True, help="User ID")
    report = documents_sub.add_parser("report", help="Spreadsheet of the current users or orders")
    report.add_argument("kind", choices=[DocumentKind.ORDERS.value, DocumentKind.USERS.value])
    documents_sub.add_parser("list", help="List previously generated documents")

    # status
    subparsers.add_parser("status", help="Show configuration")

    return parser


def parse_item(spec: str) -> Tuple[str, str, str]:
    """'name:qty:price' -> (name, qty, price); the name may itself contain ':'"""
    parts = spec.rsplit(":", 2)
    if len(parts) != 3:
        raise ValidationError(f"Item '{spec}' must look like NAME:QTY:PRICE", field="items")
    return parts[0], parts[1], parts[2]


def _fill_order_items(editor: OrderFormEditor, specs: Optional[List[str]]) -> None:
    if not specs:
        return
    parsed = [parse_item(spec) for spec in specs]
    while len(editor.items) > 1:
        editor.remove_item(len(editor.items) - 1)
    for index, (name, quantity, price) in enumerate(parsed):
        if index > 0:
            editor.add_item()
        editor.set_item_field(index, ItemField.PRODUCT_NAME, name)
        editor.set_item_field(index, ItemField.QUANTITY, quantity)
        editor.set_item_field(index, ItemField.PRICE, price)


def _confirm_with(console: Console, assume_yes: bool):
    if assume_yes:
        return lambda message: True
    return lambda message: Confirm.ask(message, console=console, default=False)


def show_status(console: Console) -> int:
    table = Table(title="OrderDesk configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Version", __version__)
    table.add_row("Environment", settings.ENVIRONMENT)
    table.add_row("Gateway", settings.API_BASE_URL)
    table.add_row("Access token", "[green]set[/green]" if settings.ACCESS_TOKEN else "[yellow]not set[/yellow]")
    table.add_row(
        "Request timeout",
        f"{settings.REQUEST_TIMEOUT:g}s" if settings.REQUEST_TIMEOUT else "none"
    )
    table.add_row("Identity provider", f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}")
    table.add_row("Client ID", settings.KEYCLOAK_CLIENT_ID)
    table.add_row("Download directory", settings.DOWNLOAD_DIR)
    table.add_row("Log file", settings.LOG_FILE or "[dim]disabled[/dim]")
    console.print(table)
    return 0


async def run_users(args, client: OrderDeskAPIClient, console: Console) -> int:
    controller = UserController(client, confirm=_confirm_with(console, getattr(args, "yes", False)))

    if args.action == "list":
        users = await controller.list()
        if controller.error:
            render_error(console, controller.error)
            return 1
        render_users(console, users)
        return 0

    if args.action == "delete":
        deleted = await controller.delete(args.id)
        if controller.error:
            render_error(console, controller.error)
            return 1
        if not deleted:
            console.print("[dim]Cancelled[/dim]")
            return 0
        render_success(console, f"User {args.id} deleted")
        render_users(console, controller.items)
        return 0

    editor = UserFormEditor(controller)
    if args.action == "update":
        record = await controller.get(args.id)
        if record is None:
            render_error(console, controller.error)
            return 1
        editor.begin_edit(record)
    else:
        editor.begin_create()

    for option, user_field in USER_OPTIONS.items():
        value = getattr(args, option)
        if value is not None:
            editor.set_field(user_field, value)

    saved = await editor.submit()
    if saved is None:
        render_error(console, editor.error)
        return 1
    render_success(console, f"User {saved.username} saved")
    render_users(console, controller.items)
    return 0


async def run_orders(args, client: OrderDeskAPIClient, console: Console) -> int:
    controller = OrderController(client, confirm=_confirm_with(console, getattr(args, "yes", False)))

    if args.action == "list":
        if args.customer:
            orders = await controller.list_by_customer(args.customer)
        elif args.status:
            orders = await controller.list_by_status(OrderStatus(args.status))
        else:
            orders = await controller.list()
        if controller.error:
            render_error(console, controller.error)
            return 1
        render_orders(console, orders)
        return 0

    if args.action == "delete":
        deleted = await controller.delete(args.id)
        if controller.error:
            render_error(console, controller.error)
            return 1
        if not deleted:
            console.print("[dim]Cancelled[/dim]")
            return 0
        render_success(console, f"Order {args.id} deleted")
        render_orders(console, controller.items)
        return 0

    editor = OrderFormEditor(controller)
    if args.action == "update":
        record = await controller.get(args.id)
        if record is None:
            render_error(console, controller.error)
            return 1
        editor.begin_edit(record)
    else:
        editor.begin_create()

    try:
        for option, order_field in ORDER_OPTIONS.items():
            value = getattr(args, option)
            if value is not None:
                editor.set_field(order_field, value)
        _fill_order_items(editor, args.items)
    except ValidationError as e:
        render_error(console, e.message)
        return 1

    saved = await editor.submit()
    if saved is None:
        render_error(console, editor.error)
        return 1
    render_success(console, f"Order {saved.order_number or saved.id} saved")
    render_orders(console, controller.items)
    return 0


async def run_documents(args, client: OrderDeskAPIClient, console: Console) -> int:
    if args.action == "list":
        documents = DocumentMetadataController(client)
        records = await documents.list()
        if documents.error:
            render_error(console, documents.error)
            return 1
        render_documents(console, records)
        return 0

    pipeline = DocumentExportPipeline(client, DownloadManager(download_dir=args.download_dir))

    if args.action == "sample":
        document = await pipeline.export_sample(DocumentKind(args.kind))
    elif args.action == "invoice":
        document = await pipeline.export_user_invoice(args.user_id)
    else:
        kind = DocumentKind(args.kind)
        if kind is DocumentKind.ORDERS:
            mirror = OrderController(client)
            await mirror.list()
            if mirror.error:
                render_error(console, mirror.error)
                return 1
            document = await pipeline.export_orders_report(mirror.items)
        else:
            mirror = UserController(client)
            await mirror.list()
            if mirror.error:
                render_error(console, mirror.error)
                return 1
            document = await pipeline.export_users_report(mirror.items)

    if document is None:
        render_error(console, pipeline.error)
        return 1
    render_success(console, pipeline.success)
    render_saved_document(console, document)
    return 0


COMMANDS = {
    "users": run_users,
    "orders": run_orders,
    "documents": run_documents,
}


async def run_command(
    args: argparse.Namespace,
    console: Console,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Run one parsed command against the gateway, return the exit code"""
    handler = COMMANDS[args.command]
    async with OrderDeskAPIClient(base_url=args.server_url, token=args.token, transport=transport) as client:
        return await handler(args, client, console)


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    console = Console()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "status":
        sys.exit(show_status(console))

    try:
        exit_code = asyncio.run(run_command(args, console))
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted[/dim]")
        sys.exit(130)
    except RuntimeError as e:
        render_error(console, str(e))
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
