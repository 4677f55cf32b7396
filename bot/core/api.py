from __future__ import annotations

import html

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse, PlainTextResponse

from storage.base import LogRepository
from utils.i18n import I18N
from utils.time import monotonic_millis


def create_api_app(logs: LogRepository, i18n: I18N) -> FastAPI:
    app = FastAPI(title="Ticket Desk", version="1.0.0", docs_url=None, redoc_url=None)
    started_at = monotonic_millis()

    @app.exception_handler(HTTPException)
    async def plain_http_error(_, exc: HTTPException) -> PlainTextResponse:
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        return f"<h1>{html.escape(i18n.t('http.status'))}</h1>"

    @app.get("/api/health")
    async def health() -> dict[str, object]:
        return {"status": "ok", "uptimeMillis": monotonic_millis() - started_at}

    @app.get("/transcription/{log_id}", response_class=HTMLResponse)
    async def transcription(log_id: str) -> str:
        text = await logs.get_transcription(int(log_id)) if log_id.isascii() and log_id.isdigit() else None
        if text is None:
            raise HTTPException(status_code=404, detail=i18n.t("http.not_found"))
        return text

    return app
