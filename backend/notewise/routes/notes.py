"""
Notewise Backend — Notes Route Handlers
=========================================

What:  Note CRUD and trash endpoints.
How:   Extracts the caller's user id and parameters, delegates to NoteService.
Who:   Called by the frontend dashboard, editor and trash views.

Routes:
    POST   /api/notes                      create (queues summary + tags)
    GET    /api/notes                      list live notes (page/limit/sort)
    GET    /api/notes/{id}                 read
    PUT    /api/notes/{id}                 partial update (re-queues AI on content change)
    DELETE /api/notes/{id}                 move to trash
    POST   /api/notes/{id}/restore         restore from trash
    DELETE /api/notes/{id}/permanent       delete with summary and tags
    GET    /api/trash                      list trashed notes

Note ids are taken as plain strings: a malformed id is reported as 404, the
same as a note owned by someone else.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notewise.database import get_db_session
from notewise.routes.deps import get_current_user_id
from notewise.schemas.note import (
    ErrorResponse,
    NoteCreate,
    NoteListResponse,
    NoteResponse,
    NoteSort,
    NoteUpdate,
)
from notewise.services.background import GenerationQueue, get_generation_queue
from notewise.services.note_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])

_NOT_FOUND = {404: {"description": "Note not found", "model": ErrorResponse}}


@router.post(
    "/notes",
    response_model=NoteResponse,
    status_code=201,
    summary="Create a note",
    description="Creates a note. Summary and tags are generated in the background.",
)
async def create_note(
    body: NoteCreate,
    user_id: str = Depends(get_current_user_id),
    queue: Optional[GenerationQueue] = Depends(get_generation_queue),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.create_note(db, user_id, body, queue=queue)


@router.get(
    "/notes",
    response_model=NoteListResponse,
    summary="List notes with pagination",
)
async def list_notes(
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    sort: NoteSort = Query(default=NoteSort.NEWEST),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    result = await note_service.list_notes(db, user_id, page=page, limit=limit, sort=sort)
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


@router.get("/notes/{note_id}", response_model=NoteResponse, responses=_NOT_FOUND)
async def get_note(
    note_id: str,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    result = await note_service.get_note(db, note_id, user_id)
    # Notes are mutable and user-specific
    response.headers["Cache-Control"] = "private, no-cache"
    return result


@router.put("/notes/{note_id}", response_model=NoteResponse, responses=_NOT_FOUND)
async def update_note(
    note_id: str,
    body: NoteUpdate,
    user_id: str = Depends(get_current_user_id),
    queue: Optional[GenerationQueue] = Depends(get_generation_queue),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update_note(db, note_id, user_id, body, queue=queue)


@router.delete(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses=_NOT_FOUND,
    summary="Move a note to the trash",
)
async def delete_note(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.soft_delete_note(db, note_id, user_id)


@router.post("/notes/{note_id}/restore", response_model=NoteResponse, responses=_NOT_FOUND)
async def restore_note(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.restore_note(db, note_id, user_id)


@router.delete("/notes/{note_id}/permanent", status_code=204, responses=_NOT_FOUND)
async def permanent_delete_note(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_service.permanent_delete_note(db, note_id, user_id)
    return Response(status_code=204)


@router.get("/trash", response_model=NoteListResponse, summary="List trashed notes")
async def list_trash(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    return await note_service.list_trash(db, user_id, page=page, limit=limit)
