from __future__ import annotations
import asyncio
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.panel import Panel

from .bootstrap import build_app
from .core.models import MSG_INVALID_IMAGE, ImagePayload, InferenceResult
from .core.ports import AltTextClient

app = typer.Typer(add_completion=False)
console = Console()
err_console = Console(stderr=True)

DEFAULT_CONFIG = Path("config/default.yaml")


async def _describe(client: AltTextClient, payload: ImagePayload) -> InferenceResult:
    try:
        return await client.infer(payload)
    finally:
        await client.aclose()


@app.command()
def describe(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    config: Path = DEFAULT_CONFIG,
    provider: Optional[str] = None,
):
    """Generate alt text for one image file."""
    payload = ImagePayload.from_file(image)
    if not payload.is_image:
        err_console.print(MSG_INVALID_IMAGE)
        raise typer.Exit(code=1)

    ctx = build_app(config, provider=provider)
    result = asyncio.run(_describe(ctx["client"], payload))

    if not result.ok:
        err_console.print(result.status_message)
        raise typer.Exit(code=1)
    console.print(Panel(result.description, title="Generated Alt Text", border_style="red"))


@app.command()
def serve(
    config: Path = DEFAULT_CONFIG,
    host: Optional[str] = None,
    port: Optional[int] = None,
    provider: Optional[str] = None,
):
    """Run the upload page and JSON API."""
    from .web.app import run

    run(config=config, host=host, port=port, provider=provider)


if __name__ == "__main__":
    app()
