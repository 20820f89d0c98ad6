from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from errors import StoreError
from services.readings import ReadingService, build_default_service


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_service() -> ReadingService:
    return build_default_service()


def _format_timestamp(value: int) -> str:
    moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


templates.env.filters["epoch_ms"] = _format_timestamp


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_dashboard", response_class=HTMLResponse)
async def ui_dashboard(
    request: Request,
    service: ReadingService = Depends(get_service),
) -> HTMLResponse:
    try:
        latest = await service.latest()
        history = await service.history()
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc

    return templates.TemplateResponse(
        request,
        "ui/dashboard.html",
        {
            "latest": latest,
            # Newest first reads better in a table.
            "history": list(reversed(history)),
        },
    )
