"""Household import endpoints and the progress websocket."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import (
    APIRouter,
    Depends,
    Header,
    HTTPException,
    Request,
    Response,
    WebSocket,
    WebSocketDisconnect,
)
from pydantic import BaseModel, ValidationError

from meridian.core.exceptions import StoreError, StructuralError
from meridian.core.protocols import IFileStore, IProgressChannel
from meridian.importer.service import ImportService
from meridian.importer.uploads import parse_csv_rows, staged_upload
from meridian.models.import_row import ColumnMapping

logger = logging.getLogger(__name__)

router = APIRouter(tags=["imports"])

USER_HEADER = "X-User-Id"
PROGRESS_CLEARED_EVENT = "progressCleared"


class StartImportRequest(BaseModel):
    mapping: dict[str, int]
    rows: list[list[Any]]


class StartUploadRequest(BaseModel):
    file_key: str
    mapping: dict[str, int]
    has_header: bool = True


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail=f"Missing {USER_HEADER} header")
    return x_user_id.strip()


def get_service(request: Request) -> ImportService:
    return request.app.state.import_service


def get_file_store(request: Request) -> IFileStore:
    return request.app.state.persistence.file_store


def _column_mapping(raw: dict[str, int]) -> ColumnMapping:
    try:
        return ColumnMapping.from_dict(raw)
    except ValidationError as exc:
        detail = exc.errors(include_url=False, include_context=False, include_input=False)
        raise HTTPException(status_code=422, detail=detail) from exc


def _load_upload(file_store: IFileStore, key: str, has_header: bool) -> list[list[str]]:
    with staged_upload(file_store, key) as data:
        _, rows = parse_csv_rows(data, has_header=has_header)
    return rows


async def _start(service: ImportService, user_id: str, mapping: ColumnMapping,
                 rows: list[list[Any]], source_file_key: str | None = None) -> dict[str, Any]:
    try:
        await service.start(user_id, mapping, rows, source_file_key=source_file_key)
    except StructuralError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"status": "started", "total_records": len(rows)}


@router.post("/start", status_code=202)
async def start_import(
    body: StartImportRequest,
    user_id: str = Depends(get_user_id),
    service: ImportService = Depends(get_service),
) -> dict[str, Any]:
    """Validate the batch and start reconciling it in the background."""
    return await _start(service, user_id, _column_mapping(body.mapping), body.rows)


@router.post("/start-upload", status_code=202)
async def start_upload_import(
    body: StartUploadRequest,
    user_id: str = Depends(get_user_id),
    service: ImportService = Depends(get_service),
    file_store: IFileStore = Depends(get_file_store),
) -> dict[str, Any]:
    """Read a staged CSV upload, delete it, and start reconciling its rows."""
    mapping = _column_mapping(body.mapping)
    try:
        rows = await asyncio.to_thread(_load_upload, file_store, body.file_key, body.has_header)
    except StoreError as exc:
        raise HTTPException(status_code=404, detail=f"Upload {body.file_key!r} not found") from exc
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="Upload is not UTF-8 encoded CSV") from exc
    return await _start(service, user_id, mapping, rows, source_file_key=body.file_key)


@router.get("/progress")
async def get_progress(
    user_id: str = Depends(get_user_id),
    service: ImportService = Depends(get_service),
) -> dict[str, Any]:
    snapshot = await service.current(user_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No import progress")
    return snapshot


@router.delete("/progress", status_code=204)
async def dismiss_progress(
    user_id: str = Depends(get_user_id),
    service: ImportService = Depends(get_service),
) -> Response:
    await service.dismiss(user_id)
    return Response(status_code=204)


@router.post("/cancel")
async def cancel_import(
    user_id: str = Depends(get_user_id),
    service: ImportService = Depends(get_service),
) -> dict[str, bool]:
    return {"cancelled": service.cancel(user_id)}


async def _forward_events(websocket: WebSocket, channel: IProgressChannel, user_id: str) -> None:
    async for event, payload in channel.subscribe(user_id):
        await websocket.send_json({"event": event, "payload": payload})


@router.websocket("/ws")
async def progress_socket(websocket: WebSocket) -> None:
    """Stream the caller's progress events.

    The current snapshot, if any, is sent on connect ahead of live events.
    A ``{"type": "dismiss"}`` message clears it; frames that are not JSON are
    ignored.
    """
    user_id = websocket.headers.get(USER_HEADER.lower()) or websocket.query_params.get("user_id")
    if not user_id:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    service: ImportService = websocket.app.state.import_service
    channel: IProgressChannel = websocket.app.state.persistence.channel

    forward = asyncio.create_task(_forward_events(websocket, channel, user_id))
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                logger.debug("Ignoring non-JSON frame from user %s", user_id)
                continue
            if isinstance(message, dict) and message.get("type") == "dismiss":
                await service.dismiss(user_id)
                await websocket.send_json({"event": PROGRESS_CLEARED_EVENT, "payload": None})
    except WebSocketDisconnect:
        logger.debug("Progress socket closed for user %s", user_id)
    finally:
        forward.cancel()
        await asyncio.gather(forward, return_exceptions=True)
