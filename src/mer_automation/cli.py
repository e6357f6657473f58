"""Typer CLI for MER automation."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from mer_automation.common.exceptions import MerError

app = typer.Typer(name="mer", help="MER automation: cleanroom baskets and user onboarding")
console = Console()


@app.callback()
def main():
    from mer_automation.common.config import get_settings
    from mer_automation.common.logging import setup_logging

    setup_logging(get_settings().log_level)


async def _with_session(operation):
    """Run ``operation(session)`` against an initialized database."""
    from mer_automation.deps import get_basket_service, get_db

    db = get_db()
    await db.init()
    try:
        await db.create_all()
        async with db.get_session() as session:
            await get_basket_service().ensure_tables(session)
            return await operation(session)
    finally:
        await db.close()


def _run(operation):
    try:
        return asyncio.run(_with_session(operation))
    except MerError as e:
        console.print(f"[bold red]Failure:[/bold red] {e.message}")
        raise typer.Exit(1)


async def _update_active_users(session) -> dict:
    from mer_automation.deps import get_active_user_service

    return await get_active_user_service().update_active_users(session)


async def _reconcile(session) -> list:
    from mer_automation.deps import (
        get_active_user_service,
        get_basket_service,
        get_exemption_registry,
    )

    exemptions = await asyncio.to_thread(get_exemption_registry().names)
    active_names = await get_active_user_service().active_user_names(session)
    return await get_basket_service().update_active_status(session, active_names, exemptions)


def _print_summary(summary: dict) -> None:
    console.print(
        f"[bold green]{summary['users']}[/bold green] active users "
        f"from {', '.join(summary['months'])}"
    )


def _print_changes(changes: list) -> None:
    if not changes:
        console.print("No basket status changes")
    for change in changes:
        console.print(f"  {change.basket_id}: {change.description}")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the MER automation API server."""
    import uvicorn
    from mer_automation.app import create_app

    console.print(f"[bold green]Starting MER automation on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command("update-active-users")
def update_active_users():
    """Rebuild the Active Users table from the usage logs."""
    _print_summary(_run(_update_active_users))


@app.command()
def reconcile():
    """Update basket User Active flags from the Active Users table."""
    _print_changes(_run(_reconcile))


@app.command()
def refresh():
    """Rebuild active users, then reconcile basket activity (scheduled job)."""

    async def operation(session):
        summary = await _update_active_users(session)
        return summary, await _reconcile(session)

    summary, changes = _run(operation)
    _print_summary(summary)
    _print_changes(changes)


@app.command("return-basket")
def return_basket(
    basket_ids: list[str] = typer.Argument(..., help="Basket IDs to return (e.g., N007)"),
):
    """Return one or more baskets to the available pool."""
    from mer_automation.deps import get_basket_service

    async def operation(session):
        return await get_basket_service().return_baskets(session, basket_ids)

    report = _run(operation)
    for basket_id in report.returned:
        console.print(f"[bold green]Returned[/bold green] {basket_id}")
    for message in report.errors.values():
        console.print(f"[bold red]Failure:[/bold red] {message}")
    if not report.success:
        raise typer.Exit(1)


@app.command("purge-warnings")
def purge_warnings():
    """Email every inactive basket holder a purge warning."""
    from mer_automation.deps import get_basket_service

    async def operation(session):
        return await get_basket_service().send_purge_warnings(session)

    report = _run(operation)
    console.print(
        f"{len(report.candidates)} candidate(s): "
        f"[bold green]{report.sent} sent[/bold green], {report.failed} failed"
    )


@app.command()
def exempt(
    user_name: Optional[str] = typer.Argument(None, help="Full name as it appears in the usage logs"),
    reason: str = typer.Option("", help="Why the user keeps their basket"),
    remove: bool = typer.Option(False, "--remove", help="Remove the exemption instead"),
):
    """Add, remove or list basket exemptions."""
    from mer_automation.deps import get_exemption_registry

    registry = get_exemption_registry()
    try:
        if user_name is None:
            table = Table("User", "Reason")
            for entry in registry.entries():
                table.add_row(entry.user_name, entry.exemption_reason)
            console.print(table)
        elif remove:
            if not registry.remove(user_name):
                console.print(f"[bold red]No exemption for[/bold red] {user_name}")
                raise typer.Exit(1)
            console.print(f"Removed exemption for {user_name}")
        else:
            registry.add(user_name, reason)
            console.print(f"[bold green]Exempted[/bold green] {user_name}")
    except MerError as e:
        console.print(f"[bold red]Failure:[/bold red] {e.message}")
        raise typer.Exit(1)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check MER automation server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
