from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from alttext.bootstrap import build_app
from alttext.core.errors import NoDescriptionProduced
from alttext.core.models import MSG_INVALID_IMAGE, ImagePayload, InferenceResult
from alttext.core.ports import AltTextClient

logger = logging.getLogger(__name__)

DISCONNECT_POLL = 0.5


class AltTextRequest(BaseModel):
    image_data_url: str


def _result_status(result) -> int:
    if result.ok:
        return 200
    if isinstance(result.error, NoDescriptionProduced):
        return 422
    return 502


async def infer_while_connected(
    request: Request,
    client: AltTextClient,
    payload: ImagePayload,
    poll: float = DISCONNECT_POLL,
) -> Optional[InferenceResult]:
    """
    Run client.infer(payload), cancelling it if the browser goes away.
    Returns None when the caller disconnected before a result was ready.
    """
    task = asyncio.create_task(client.infer(payload))
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("Client disconnected, abandoning alt text request")
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
                return None
    finally:
        if not task.done():
            task.cancel()


def create_app(config_path: Path, *, provider: Optional[str] = None) -> FastAPI:
    config_path = Path(config_path)
    ctx = build_app(config_path, provider=provider)
    cfg = ctx["cfg"]
    client = ctx["client"]

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(lifespan=lifespan)
    app.state.cfg = cfg
    app.state.client = client

    base_dir = Path(__file__).resolve().parent
    static_dir = base_dir / "static"
    index_path = base_dir / "index.html"

    app.mount("/static", StaticFiles(directory=static_dir), name="static")

    @app.get("/", response_class=HTMLResponse)
    def index() -> HTMLResponse:
        return HTMLResponse(index_path.read_text(encoding="utf-8"))

    @app.get("/api/config")
    def api_config():
        return JSONResponse(
            {
                "provider": cfg["endpoint"]["provider"],
                "model": cfg["endpoint"]["model"],
            }
        )

    @app.post("/api/alt-text")
    async def api_alt_text(req: AltTextRequest, request: Request):
        try:
            payload = ImagePayload.from_data_url(req.image_data_url)
        except ValueError:
            payload = None
        if payload is None or not payload.is_image:
            return JSONResponse(
                {"ok": False, "alt_text": None, "message": MSG_INVALID_IMAGE, "attempts": 0},
                status_code=400,
            )

        result = await infer_while_connected(request, app.state.client, payload)
        if result is None:
            # nobody left to read the reply
            return Response(status_code=499)
        if result.error is not None:
            logger.info("Returning %s to the page", type(result.error).__name__)
        return JSONResponse(
            {
                "ok": result.ok,
                "alt_text": result.description,
                "message": result.status_message,
                "attempts": result.attempts,
            },
            status_code=_result_status(result),
        )

    return app


def run(
    *,
    config: Path,
    host: Optional[str] = None,
    port: Optional[int] = None,
    provider: Optional[str] = None,
) -> None:
    import uvicorn

    app = create_app(config, provider=provider)
    web = app.state.cfg.get("web") or {}
    uvicorn.run(
        app,
        host=host or web.get("host", "127.0.0.1"),
        port=port or int(web.get("port", 8000)),
    )
