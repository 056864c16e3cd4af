"""HTTP adapter for interactive mind map sessions.

A rendering front end polls ``GET /api/nodes`` for the current snapshot and
forwards node clicks to ``POST /api/nodes/{id}/expand``. Clicks on expanded
or loading nodes are accepted but do nothing.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
import uvicorn
from fastapi import FastAPI, HTTPException, Response, status
from pydantic import BaseModel, Field, field_validator
from rich.console import Console
from rich.panel import Panel

from ...core.exceptions import ExpansionError, NodeNotFoundError
from ...core.expansion import ExpansionController
from ...core.models import MapView
from .grow import build_controller, load_config

console = Console()


class SessionRequest(BaseModel):
    word: str = Field(..., min_length=1, description="Root concept")

    @field_validator("word")
    @classmethod
    def _strip_word(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("word must not be blank")
        return value


class ExpandResponse(BaseModel):
    node_id: str
    accepted: bool = Field(..., description="False when the click was a no-op")
    status: str | None = None


def create_app(controller: ExpansionController) -> FastAPI:
    """Create FastAPI application around a single controller.

    Args:
        controller: Owner of the session's tree state

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(title="WordWeb")

    @app.get("/api/nodes", response_model=MapView)
    async def get_nodes() -> MapView:
        return controller.view()

    @app.post("/api/session", response_model=MapView)
    async def start_session(request: SessionRequest) -> MapView:
        """Reset and grow a new tree from ``word``."""
        try:
            await controller.start(request.word)
        except ExpansionError as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=controller.last_error
            ) from e
        return controller.view()

    @app.post(
        "/api/nodes/{node_id}/expand",
        response_model=ExpandResponse,
        status_code=status.HTTP_202_ACCEPTED,
    )
    async def expand_node(node_id: str, wait: bool = False) -> ExpandResponse:
        """Treat a node click as an expansion trigger.

        With ``wait=true`` the response is sent after the expansion finished.
        """
        try:
            task = controller.request_expansion(node_id)
        except NodeNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

        if task is None:
            return ExpandResponse(node_id=node_id, accepted=False)
        if not wait:
            return ExpandResponse(node_id=node_id, accepted=True)

        # A dropped client must not cancel the shared expansion
        result = await asyncio.shield(task)
        return ExpandResponse(node_id=node_id, accepted=True, status=result.status)

    @app.post("/api/reset", status_code=status.HTTP_204_NO_CONTENT)
    async def reset() -> Response:
        controller.reset()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


def serve_main(
    host: str = typer.Option(
        "127.0.0.1",
        "--host",
        help="Interface to bind",
        rich_help_panel="🌐 Server Options",
    ),
    port: int = typer.Option(
        8610,
        "--port",
        help="Port for HTTP server (default: 8610)",
        min=1024,
        max=65535,
        rich_help_panel="🌐 Server Options",
    ),
    words_file: Path | None = typer.Option(
        None,
        "--words-file",
        "-w",
        help="YAML mapping of word -> related words (offline mode)",
        exists=True,
        dir_okay=False,
        readable=True,
        rich_help_panel="🌱 Growth Options",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file",
        dir_okay=False,
        rich_help_panel="🔧 Global Options",
    ),
) -> None:
    """🌐 Serve the mind map session API for a rendering front end."""
    config = load_config(config_file)
    controller = build_controller(config, words_file)
    app = create_app(controller)

    console.print(
        Panel.fit(
            f"[green]✓[/green] WordWeb API at [cyan]http://{host}:{port}/api/nodes[/cyan]\n"
            f"[dim]Canvas {config.layout.map_size}×{config.layout.map_size}px. "
            "Press Ctrl+C to stop.[/dim]",
            title="🌐 WordWeb Server",
            border_style="green",
        )
    )
    uvicorn.run(app, host=host, port=port, log_level="warning")
