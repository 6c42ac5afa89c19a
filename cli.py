"""Prompt Info CLI: inspect pricing and estimate prompts against a running API."""

import json
import os

import httpx
import typer
from rich.console import Console
from rich.json import JSON
from rich.table import Table

API_BASE = os.environ.get("PROMPT_INFO_API", "http://localhost:8000/api")

app = typer.Typer(help="Prompt Info CLI: token counts, cost and CO2e estimates.")

console = Console()


def _request(method: str, path: str, **kwargs) -> httpx.Response:
    """Call the API, exiting with a readable message on failure."""
    try:
        resp = httpx.request(method, f"{API_BASE}{path}", timeout=30, **kwargs)
        resp.raise_for_status()
    except httpx.ConnectError:
        console.print("[red]Cannot connect to API. Is the backend running?[/red]")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        console.print(f"[red]API error: {e.response.status_code}: {e.response.text}[/red]")
        raise typer.Exit(1)
    return resp


def _fmt(value, digits: int) -> str:
    if value is None:
        return "—"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:.{digits}f}"
    return str(value)


@app.command("models")
def list_models():
    """List priced models in a table."""
    resp = _request("GET", "/pricing")
    source = resp.headers.get("x-data-source", "unknown")
    pricing = resp.json()
    if not pricing:
        console.print("[dim]No pricing data.[/dim]")
        return

    table = Table(title=f"Models (source: {source})")
    table.add_column("Model", style="cyan bold")
    table.add_column("Input / 1K", justify="right")
    table.add_column("Output / 1K", justify="right")
    table.add_column("gCO2e / token", justify="right")
    table.add_column("Provider")

    for name in sorted(pricing, key=str.casefold):
        entry = pricing[name]
        costs = entry.get("pricing") or {}
        table.add_row(
            name,
            _fmt(costs.get("input"), 6),
            _fmt(costs.get("output"), 6),
            _fmt(entry.get("co2eFactor"), 6),
            entry.get("provider") or "",
        )

    console.print(table)
    if source == "fallback":
        console.print("[yellow]Using bundled pricing data. Add Supabase credentials for live updates.[/yellow]")


@app.command("estimate")
def estimate(
    prompt: str,
    model: str = typer.Option(None, "--model", "-m", help="Model name (defaults to the first listed)"),
    output_tokens: float = typer.Option(None, "--output-tokens", "-o", help="Expected completion length"),
):
    """Estimate token count, cost and CO2e for a prompt."""
    resp = _request(
        "POST",
        "/estimate",
        json={"prompt": prompt, "model": model, "expected_output_tokens": output_tokens},
    )
    data = resp.json()
    metrics = data["metrics"]

    console.print(f"Model: [cyan bold]{data.get('model') or 'n/a'}[/cyan bold] [dim](source: {data['source']})[/dim]")
    console.print(f"Total tokens: [bold]{metrics['token_count']}[/bold]")
    if metrics["total_cost"] is not None:
        console.print(f"Estimated cost: [bold]${metrics['total_cost']:.8f}[/bold]")
    elif not data["known_model"]:
        console.print("[yellow]No pricing for this model.[/yellow]")
    if metrics["co2e_grams"] is not None:
        marker = "[yellow]*[/yellow]" if metrics["used_fallback_emission_factor"] else ""
        console.print(f"Estimated CO₂e: [bold]{metrics['co2e_grams']:.4f} g[/bold]{marker}")
    for key, value in data.get("metadata") or []:
        console.print(f"  [dim]{key}:[/dim] {value}")
    if data.get("notice"):
        console.print(f"[yellow]{data['notice']}[/yellow]")


@app.command("formats")
def formats(
    prompt: str = typer.Argument("", help="Prompt text (blank uses a sample prompt)"),
    key: str = typer.Option(None, "--format", "-f", help="Only show one format (toon, json, yaml, ...)"),
):
    """Show the prompt rendered in each interchange format."""
    cards = _request("POST", "/formats", json={"prompt": prompt}).json()
    for card in cards:
        if key and card["key"] != key:
            continue
        console.rule(f"{card['label']} [dim]{card['description']}[/dim]")
        if card["key"].startswith("json"):
            console.print(JSON(card["content"]))
        else:
            console.print(card["content"], markup=False, highlight=False)


@app.command("raw")
def raw_pricing():
    """Dump the pricing map as pretty JSON."""
    resp = _request("GET", "/pricing")
    console.print(JSON(json.dumps(resp.json(), indent=2)))


@app.command("serve")
def serve(reload: bool = typer.Option(False, "--reload", help="Restart on code changes")):
    """Run the API server with uvicorn."""
    import uvicorn

    from prompt_info.core.config import settings

    uvicorn.run("prompt_info.main:app", host=settings.host, port=settings.port, reload=reload)


if __name__ == "__main__":
    app()
