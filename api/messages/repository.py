"""
Message persistence (raw SQL).

Soft delete is a status flag: rows move from 'active' to 'deleted' and are
never removed. Listing queries are scoped to active rows; the printer-facing
queries (mark_printed, list_messages_since, unread_count, latest_messages)
look at every row regardless of status.
"""

from __future__ import annotations

import asyncio
from typing import Any

from core.db import Database
from core.errors import NotFound, ValidationError

STATUS_ACTIVE = "active"
STATUS_DELETED = "deleted"

DEFAULT_SINCE_LIMIT = 50
DEFAULT_LATEST_LIMIT = 10
RECENT_WINDOW_DAYS = 7

# messages.id is SERIAL (int4).
MAX_MESSAGE_ID = 2**31 - 1

_MESSAGE_COLUMNS = """
id, sender_name, recipient_name, body, is_printed, printed_at, created_at, status
"""


def _require_text(**fields: str) -> tuple[str, ...]:
    cleaned = {name: (value or "").strip() for name, value in fields.items()}
    missing = [name for name, value in cleaned.items() if not value]
    if missing:
        raise ValidationError(f"Required fields are missing: {', '.join(missing)}.")
    return tuple(cleaned.values())


def _found(row: dict[str, Any] | None) -> dict[str, Any]:
    if row is None:
        raise NotFound("Message not found.")
    return row


async def save_message(db: Database, *, sender_name: str, recipient_name: str, body: str) -> dict[str, Any]:
    sender_name, recipient_name, body = _require_text(
        sender_name=sender_name,
        recipient_name=recipient_name,
        body=body,
    )
    row = await db.fetch_one(
        f"""
        INSERT INTO messages (sender_name, recipient_name, body, status)
        VALUES ($1, $2, $3, '{STATUS_ACTIVE}')
        RETURNING {_MESSAGE_COLUMNS}
        """,
        sender_name,
        recipient_name,
        body,
    )
    if row is None:
        raise RuntimeError("Failed to insert message.")
    return row


async def update_message(
    db: Database,
    message_id: int,
    *,
    sender_name: str,
    recipient_name: str,
    body: str,
) -> dict[str, Any]:
    sender_name, recipient_name, body = _require_text(
        sender_name=sender_name,
        recipient_name=recipient_name,
        body=body,
    )
    row = await db.fetch_one(
        f"""
        UPDATE messages
        SET sender_name = $1,
            recipient_name = $2,
            body = $3
        WHERE id = $4
          AND status = '{STATUS_ACTIVE}'
        RETURNING {_MESSAGE_COLUMNS}
        """,
        sender_name,
        recipient_name,
        body,
        message_id,
    )
    return _found(row)


async def list_messages(db: Database) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {_MESSAGE_COLUMNS}
        FROM messages
        WHERE status = '{STATUS_ACTIVE}'
        ORDER BY created_at DESC, id DESC
        """
    )


async def list_messages_ordered(db: Database) -> list[dict[str, Any]]:
    """
    Unprinted messages first, then printed ones; newest first within each group.
    """
    return await db.fetch_all(
        f"""
        SELECT {_MESSAGE_COLUMNS}
        FROM messages
        WHERE status = '{STATUS_ACTIVE}'
        ORDER BY
          CASE WHEN is_printed = false THEN 0 ELSE 1 END,
          created_at DESC,
          id DESC
        """
    )


async def get_message(db: Database, message_id: int) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        SELECT {_MESSAGE_COLUMNS}
        FROM messages
        WHERE id = $1
          AND status = '{STATUS_ACTIVE}'
        """,
        message_id,
    )
    return _found(row)


async def soft_delete_message(db: Database, message_id: int) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        UPDATE messages
        SET status = '{STATUS_DELETED}'
        WHERE id = $1
          AND status = '{STATUS_ACTIVE}'
        RETURNING {_MESSAGE_COLUMNS}
        """,
        message_id,
    )
    return _found(row)


async def soft_delete_all_messages(db: Database) -> int:
    count = await db.fetch_val(
        f"""
        WITH deleted AS (
            UPDATE messages
            SET status = '{STATUS_DELETED}'
            WHERE status = '{STATUS_ACTIVE}'
            RETURNING id
        )
        SELECT count(*) FROM deleted
        """
    )
    return int(count or 0)


async def mark_printed(db: Database, message_id: int) -> dict[str, Any]:
    # Any status; re-marking refreshes printed_at.
    row = await db.fetch_one(
        f"""
        UPDATE messages
        SET is_printed = true,
            printed_at = now()
        WHERE id = $1
        RETURNING {_MESSAGE_COLUMNS}
        """,
        message_id,
    )
    return _found(row)


async def list_messages_since(
    db: Database,
    since_id: int = 0,
    limit: int = DEFAULT_SINCE_LIMIT,
) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT id, sender_name, recipient_name, body, created_at, printed_at, is_printed
        FROM messages
        WHERE id > $1
        ORDER BY id DESC
        LIMIT $2
        """,
        since_id,
        limit,
    )


async def unread_count(db: Database) -> int:
    count = await db.fetch_val(
        """
        SELECT count(*)
        FROM messages
        WHERE is_printed = false
        """
    )
    return int(count or 0)


async def latest_messages(db: Database, limit: int = DEFAULT_LATEST_LIMIT) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT id, sender_name, recipient_name, created_at, is_printed
        FROM messages
        ORDER BY id DESC
        LIMIT $1
        """,
        limit,
    )


async def message_stats(db: Database) -> dict[str, int]:
    """
    Four independent counts over active rows, each on its own pooled connection.
    """
    total, printed, recipients, recent = await asyncio.gather(
        db.fetch_val(
            f"SELECT count(*) FROM messages WHERE status = '{STATUS_ACTIVE}'"
        ),
        db.fetch_val(
            f"SELECT count(*) FROM messages WHERE status = '{STATUS_ACTIVE}' AND is_printed = true"
        ),
        db.fetch_val(
            f"SELECT count(DISTINCT recipient_name) FROM messages WHERE status = '{STATUS_ACTIVE}'"
        ),
        db.fetch_val(
            f"""
            SELECT count(*)
            FROM messages
            WHERE status = '{STATUS_ACTIVE}'
              AND created_at >= now() - make_interval(days => $1)
            """,
            RECENT_WINDOW_DAYS,
        ),
    )
    return {
        "total": int(total or 0),
        "printed": int(printed or 0),
        "uniqueRecipients": int(recipients or 0),
        "recent": int(recent or 0),
    }
