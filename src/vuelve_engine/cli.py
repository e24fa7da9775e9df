"""Typer CLI for Vuelve-Engine."""

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="vuelve", help="Vuelve-Engine: loyalty entitlements and security primitives")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the Vuelve-Engine API server."""
    import uvicorn
    from vuelve_engine.app import create_app

    console.print(f"[bold green]Starting Vuelve-Engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command("hash-pin")
def hash_pin_command(
    pin: str = typer.Argument(..., help="4-digit staff PIN"),
):
    """Hash a staff PIN for storage (offline, no DB required)."""
    from vuelve_engine.auth.pin import hash_pin, is_valid_pin

    if not is_valid_pin(pin):
        console.print("[bold red]INVALID[/bold red]: PIN must be exactly 4 digits")
        raise typer.Exit(1)
    console.print(hash_pin(pin))


@app.command()
def tier(
    points: int = typer.Argument(..., help="Lifetime points"),
):
    """Show the loyalty tier for a lifetime points total."""
    from vuelve_engine.gamification.engine import calculate_tier, get_tier_badge

    result = calculate_tier(points)
    console.print(f"{get_tier_badge(result)} [bold]{result.value}[/bold]")


@app.command()
def plans():
    """List the billing plan catalog and its limits."""
    from vuelve_engine.billing.plans import PLAN_CATALOG

    table = Table(title="Billing plans")
    for column in ("Plan", "Price", "Programs", "Staff", "Campaigns", "Recipients", "CSV", "Analytics"):
        table.add_column(column)
    for plan in PLAN_CATALOG.values():
        limits = plan.limits
        table.add_row(
            plan.label,
            str(plan.monthly_price),
            str(limits.max_program_choices),
            str(limits.max_staff),
            str(limits.max_scheduled_campaigns),
            str(limits.monthly_notification_recipients),
            "yes" if limits.export_csv else "no",
            "yes" if limits.analytics_advanced else "no",
        )
    console.print(table)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check Vuelve-Engine server health."""
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
