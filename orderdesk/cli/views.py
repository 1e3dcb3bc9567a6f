"""
Terminal views - rich tables rendered from controller mirrors
"""

from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from orderdesk.schemas.document import DocumentMetadata, GeneratedDocument
from orderdesk.schemas.order import Order, OrderStatus
from orderdesk.schemas.user import User


STATUS_STYLES = {
    OrderStatus.DELIVERED: "green",
    OrderStatus.CANCELLED: "red",
}


def render_error(console: Console, message: Optional[str]) -> None:
    if message:
        console.print(f"[red]✗ {escape(message)}[/red]")


def render_success(console: Console, message: Optional[str]) -> None:
    if message:
        console.print(f"[green]✓ {escape(message)}[/green]")


def render_users(console: Console, users: Sequence[User]) -> None:
    table = Table(title="Users", show_lines=False)
    table.add_column("ID", style="dim")
    table.add_column("Username", style="cyan")
    table.add_column("Email")
    table.add_column("Name")
    table.add_column("Phone")
    table.add_column("Status")

    for user in users:
        table.add_row(
            escape(user.id),
            escape(user.username),
            escape(user.email),
            escape(user.full_name),
            escape(user.phone or "N/A"),
            "[green]Active[/green]" if user.active else "[dim]Inactive[/dim]",
        )

    if not users:
        console.print("[dim]No users found[/dim]")
        return
    console.print(table)


def render_orders(console: Console, orders: Sequence[Order]) -> None:
    table = Table(title="Orders")
    table.add_column("ID", style="dim")
    table.add_column("Order Number", style="cyan")
    table.add_column("Customer")
    table.add_column("Items", justify="right")
    table.add_column("Total Amount", justify="right")
    table.add_column("Status")
    table.add_column("Created")

    for order in orders:
        style = STATUS_STYLES.get(order.status, "yellow")
        table.add_row(
            escape(order.id),
            escape(order.order_number or "-"),
            escape(order.customer_name),
            str(len(order.items)),
            f"${order.computed_total:.2f}",
            f"[{style}]{order.status.value}[/{style}]",
            order.created_at.strftime("%Y-%m-%d %H:%M") if order.created_at else "-",
        )

    if not orders:
        console.print("[dim]No orders found[/dim]")
        return
    console.print(table)


def render_documents(console: Console, documents: Sequence[DocumentMetadata]) -> None:
    table = Table(title="Generated Documents")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Template")
    table.add_column("Generated By")
    table.add_column("Created")

    for doc in documents:
        table.add_row(
            escape(doc.id),
            escape(doc.document_name or "-"),
            escape(doc.document_type or "-"),
            escape(doc.template_type or "-"),
            escape(doc.generated_by or "-"),
            doc.created_at.strftime("%Y-%m-%d %H:%M") if doc.created_at else "-",
        )

    if not documents:
        console.print("[dim]No documents generated yet[/dim]")
        return
    console.print(table)


def render_saved_document(console: Console, document: GeneratedDocument) -> None:
    console.print(Panel(
        f"[bold]{escape(document.filename)}[/bold]\n"
        f"Type: {escape(document.content_type)}\n"
        f"Size: {document.size_bytes:,} bytes\n"
        f"Saved to: {escape(str(document.path))}",
        title="Document saved",
        border_style="green",
    ))
