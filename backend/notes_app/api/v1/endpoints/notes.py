from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Depends, Response, WebSocket, WebSocketDisconnect, status
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from notes_app.api.v1.schemas.note import (
    CreateIntent,
    DeleteIntent,
    LiveIntent,
    LiveNote,
    NoteAuthor,
    NoteCreate,
    NoteDetailRead,
    NoteRead,
    NoteUpdate,
    NoteView,
    ResultMessage,
    SnapshotMessage,
    UpdateIntent,
)
from notes_app.core.schemas.auth import AuthUser
from notes_app.core.schemas.note import NoteSetSnapshot, OperationResult
from notes_app.core.services.note_service import NoteService
from notes_app.core.services.note_synchronizer import NoteSynchronizer
from notes_app.dependencies import (
    get_current_user,
    get_note_service,
    get_note_synchronizer,
    get_optional_user,
    get_websocket_user,
)
from notes_app.utils.logging import get_logger
from notes_app.utils.markdown import render_markdown

logger = get_logger(__name__)

router = APIRouter()

_intent_adapter: TypeAdapter = TypeAdapter(LiveIntent)


@router.get("/", response_model=list[NoteRead])
async def list_notes(
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    notes = await service.list_owned(current_user.id)
    return [NoteRead.model_validate(n) for n in notes]


@router.post("/", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def create_note(
    payload: NoteCreate,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    note = await service.create_note(payload, current_user.id)
    return NoteRead.model_validate(note)


@router.websocket("/live")
async def live_notes(
    websocket: WebSocket,
    current_user: AuthUser = Depends(get_websocket_user),
    synchronizer: NoteSynchronizer = Depends(get_note_synchronizer),
):
    """Live note set for the connected author.

    Pushes a snapshot after every change of the set and answers each intent
    with a result message. Writes show up in a later snapshot once the change
    feed delivers them.
    """
    await websocket.accept()
    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    remove_listener = synchronizer.add_listener(
        lambda snapshot: outbox.put_nowait(_snapshot_message(synchronizer, snapshot))
    )
    sender = asyncio.create_task(_pump(websocket, outbox))
    try:
        result = await synchronizer.start(current_user.id)
        if not result.ok:
            outbox.put_nowait(ResultMessage(ok=False, message=result.message).model_dump(mode="json"))
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                outbox.put_nowait(_invalid_request(None))
                continue
            outbox.put_nowait(await _dispatch(synchronizer, message))
    except WebSocketDisconnect:
        logger.info("Live notes client disconnected", extra={"user_id": str(current_user.id)})
    finally:
        remove_listener()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
        await synchronizer.teardown()


@router.get("/{note_id}", response_model=NoteDetailRead)
async def get_note(
    note_id: str,
    view: NoteView = NoteView.RAW,
    current_user: AuthUser | None = Depends(get_optional_user),
    service: NoteService = Depends(get_note_service),
):
    """Single-note view for authors and, for public notes, anyone else."""
    detail = await service.load_note(note_id, current_user.id if current_user else None)
    base = NoteRead.model_validate(detail.note).model_dump()
    return NoteDetailRead(
        **base,
        author=NoteAuthor.from_profile(detail.author),
        permissions=detail.permissions,
        content_html=render_markdown(detail.note.content) if view is NoteView.RENDERED else None,
    )


@router.patch("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_note(
    note_id: str,
    payload: NoteUpdate,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    detail = await service.load_note(note_id, current_user.id)
    await service.update_note(detail.note, payload, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    detail = await service.load_note(note_id, current_user.id)
    await service.delete_note(detail.note, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _snapshot_message(synchronizer: NoteSynchronizer, snapshot: NoteSetSnapshot) -> dict[str, Any]:
    notes = [
        LiveNote(
            **NoteRead.model_validate(note).model_dump(),
            permissions=synchronizer.view_permissions(note),
        )
        for note in snapshot.notes
    ]
    return SnapshotMessage(
        notes=notes,
        subscription_active=snapshot.subscription_active,
        errored=snapshot.errored,
        error=snapshot.error,
    ).model_dump(mode="json")


async def _dispatch(synchronizer: NoteSynchronizer, message: Any) -> dict[str, Any]:
    request_id = message.get("request_id") if isinstance(message, dict) else None
    if not isinstance(request_id, str):
        request_id = None
    try:
        intent = _intent_adapter.validate_python(message)
    except PydanticValidationError:
        return _invalid_request(request_id)

    if isinstance(intent, CreateIntent):
        result = await synchronizer.create_note(intent.title, intent.content, intent.visibility, intent.tags)
    elif isinstance(intent, UpdateIntent):
        result = await synchronizer.update_note(intent.note_id, intent.patch)
    elif isinstance(intent, DeleteIntent):
        result = await synchronizer.delete_note(intent.note_id)
    else:
        result = await synchronizer.reload()
    return _result_message(request_id, result)


def _invalid_request(request_id: str | None) -> dict[str, Any]:
    return ResultMessage(request_id=request_id, ok=False, message="Invalid request").model_dump(mode="json")


def _result_message(request_id: str | None, result: OperationResult) -> dict[str, Any]:
    return ResultMessage(request_id=request_id, ok=result.ok, message=result.message).model_dump(mode="json")


async def _pump(websocket: WebSocket, outbox: asyncio.Queue[dict[str, Any]]) -> None:
    while True:
        message = await outbox.get()
        await websocket.send_json(message)

