"""
Message board API endpoints.

Public routes let anyone submit and read the board; everything that manages
or prints messages requires the admin bearer token.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path, Query, status

from auth import dependencies as auth_dependencies
from core.context import get_db
from core.db import Database

from . import repository, schemas

logger = logging.getLogger(__name__)

router = APIRouter()


def _listing(rows: list[dict]) -> dict:
    return {"success": True, "count": len(rows), "data": rows}


# ---------- Public ----------


@router.get("/messages")
async def list_messages(db: Database = Depends(get_db)) -> dict:
    """
    Active messages, newest first.
    """
    return _listing(await repository.list_messages(db))


@router.get("/messages/stats")
@router.get("/stats")
async def message_stats(db: Database = Depends(get_db)) -> dict:
    return {"success": True, "data": await repository.message_stats(db)}


@router.post("/messages/public", status_code=status.HTTP_201_CREATED)
async def submit_public_message(
    payload: schemas.MessageIn,
    db: Database = Depends(get_db),
) -> dict:
    row = await repository.save_message(
        db,
        sender_name=payload.sender_name,
        recipient_name=payload.recipient_name,
        body=payload.body,
    )
    logger.info("message_submitted id=%s source=public", row["id"])
    return {"success": True, "message": "Message saved successfully.", "data": row}


# ---------- Admin ----------


@router.get("/messages/new", dependencies=[Depends(auth_dependencies.get_current_admin)])
async def list_new_messages(
    since_id: int = Query(0, ge=0, le=repository.MAX_MESSAGE_ID),
    limit: int = Query(repository.DEFAULT_SINCE_LIMIT, ge=1, le=500),
    db: Database = Depends(get_db),
) -> dict:
    """
    Messages with an id above `since_id`, newest id first. Used by the print
    station to poll for new submissions.
    """
    return _listing(await repository.list_messages_since(db, since_id, limit))


@router.get("/messages/ordered", dependencies=[Depends(auth_dependencies.get_current_admin)])
async def list_messages_ordered(db: Database = Depends(get_db)) -> dict:
    return _listing(await repository.list_messages_ordered(db))


@router.get("/messages/unread-count", dependencies=[Depends(auth_dependencies.get_current_admin)])
async def unread_count(db: Database = Depends(get_db)) -> dict:
    return {"success": True, "count": await repository.unread_count(db)}


@router.get("/messages/latest", dependencies=[Depends(auth_dependencies.get_current_admin)])
async def latest_messages(
    limit: int = Query(repository.DEFAULT_LATEST_LIMIT, ge=1, le=100),
    db: Database = Depends(get_db),
) -> dict:
    return _listing(await repository.latest_messages(db, limit))


@router.get("/messages/{message_id}", dependencies=[Depends(auth_dependencies.get_current_admin)])
async def get_message(
    message_id: int = Path(..., ge=1, le=repository.MAX_MESSAGE_ID),
    db: Database = Depends(get_db),
) -> dict:
    return {"success": True, "data": await repository.get_message(db, message_id)}


@router.post(
    "/messages",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(auth_dependencies.get_current_admin)],
)
async def create_message(
    payload: schemas.MessageIn,
    db: Database = Depends(get_db),
) -> dict:
    row = await repository.save_message(
        db,
        sender_name=payload.sender_name,
        recipient_name=payload.recipient_name,
        body=payload.body,
    )
    logger.info("message_submitted id=%s source=admin", row["id"])
    return {"success": True, "message": "Message saved successfully.", "data": row}


@router.put("/messages/{message_id}", dependencies=[Depends(auth_dependencies.get_current_admin)])
async def update_message(
    payload: schemas.MessageIn,
    message_id: int = Path(..., ge=1, le=repository.MAX_MESSAGE_ID),
    db: Database = Depends(get_db),
) -> dict:
    row = await repository.update_message(
        db,
        message_id,
        sender_name=payload.sender_name,
        recipient_name=payload.recipient_name,
        body=payload.body,
    )
    return {"success": True, "message": "Message updated successfully.", "data": row}


@router.put("/messages/{message_id}/printed", dependencies=[Depends(auth_dependencies.get_current_admin)])
async def mark_printed(
    message_id: int = Path(..., ge=1, le=repository.MAX_MESSAGE_ID),
    db: Database = Depends(get_db),
) -> dict:
    row = await repository.mark_printed(db, message_id)
    logger.info("message_printed id=%s", message_id)
    return {"success": True, "message": "Message marked as printed.", "data": row}


@router.delete("/messages", dependencies=[Depends(auth_dependencies.get_current_admin)])
async def delete_all_messages(db: Database = Depends(get_db)) -> dict:
    count = await repository.soft_delete_all_messages(db)
    logger.info("messages_deleted count=%s", count)
    return {"success": True, "message": f"{count} messages deleted successfully.", "count": count}


@router.delete("/messages/{message_id}", dependencies=[Depends(auth_dependencies.get_current_admin)])
async def delete_message(
    message_id: int = Path(..., ge=1, le=repository.MAX_MESSAGE_ID),
    db: Database = Depends(get_db),
) -> dict:
    row = await repository.soft_delete_message(db, message_id)
    logger.info("message_deleted id=%s", message_id)
    return {"success": True, "message": "Message deleted successfully.", "data": row}
