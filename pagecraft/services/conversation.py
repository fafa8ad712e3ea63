from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from pagecraft.database.connection import get_connection
from pagecraft.schemas import Conversation, Message

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant")


def add_message(app_id: str, role: str, content: str) -> Message:
    if role not in ROLES:
        raise ValueError(f"Unknown message role: {role}")
    message_id = str(uuid.uuid4())
    created_at = datetime.now(timezone.utc).isoformat()
    conn = get_connection()
    try:
        conn.execute(
            "INSERT INTO messages (id, app_id, role, content, created_at) VALUES (?, ?, ?, ?, ?)",
            (message_id, app_id, role, content, created_at),
        )
        conn.commit()
    finally:
        conn.close()
    return Message(id=message_id, role=role, content=content, timestamp=created_at, app_id=app_id)


def get_conversation(app_id: str) -> Conversation:
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT id, app_id, role, content, created_at
        FROM messages
        WHERE app_id = ?
        ORDER BY created_at ASC, rowid ASC
        """,
        (app_id,),
    )
    rows = cursor.fetchall()
    conn.close()
    messages = [
        Message(
            id=row["id"],
            role=row["role"],
            content=row["content"],
            timestamp=row["created_at"],
            app_id=row["app_id"],
        )
        for row in rows
    ]
    return Conversation(app_id=app_id, messages=messages)
