from __future__ import annotations

import html
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pagecraft.database.connection import get_connection, with_connection
from pagecraft.schemas import App, CreateAppData, Preview, UpdateAppData
from pagecraft.utils.slug import ensure_unique_slug, generate_slug
from pagecraft.utils.validation import validate_app_name

logger = logging.getLogger(__name__)


class AppNotFoundError(LookupError):
    pass


DEFAULT_PREVIEW_CSS = """body { font-family: system-ui, -apple-system, sans-serif; margin: 0; background: linear-gradient(135deg, #eff6ff 0%, #e0e7ff 100%); color: #111827; }
.welcome { min-height: 100vh; display: flex; align-items: center; justify-content: center; padding: 2rem; box-sizing: border-box; }
.welcome-inner { text-align: center; max-width: 42rem; }
.welcome h1 { font-size: 2.25rem; margin: 0 0 1rem; }
.welcome p { color: #4b5563; font-size: 1.1rem; line-height: 1.6; margin: 0 0 2rem; }
.ideas { display: grid; grid-template-columns: repeat(auto-fit, minmax(220px, 1fr)); gap: 1rem; text-align: left; }
.idea { background: #fff; padding: 1rem; border-radius: 0.5rem; box-shadow: 0 1px 2px rgba(0, 0, 0, 0.06); }
.idea h3 { margin: 0 0 0.5rem; font-size: 1rem; }
.idea p { margin: 0; font-size: 0.875rem; }"""

_IDEAS = (
    ("🎨 Design", "\"Add a navigation bar\" or \"Make it more colorful\""),
    ("🔧 Features", "\"Create a contact form\" or \"Add a gallery\""),
    ("📱 Layout", "\"Make it responsive\" or \"Center the content\""),
    ("✨ Polish", "\"Add animations\" or \"Improve the typography\""),
)


def default_preview(app_name: str) -> Preview:
    ideas = "".join(
        f'<div class="idea"><h3>{title}</h3><p>{html.escape(hint, quote=False)}</p></div>'
        for title, hint in _IDEAS
    )
    markup = f"""<div class="welcome">
  <div class="welcome-inner">
    <h1>Welcome to {html.escape(app_name)}</h1>
    <p>Start building your app by chatting with the AI assistant. Try asking to:</p>
    <div class="ideas">{ideas}</div>
  </div>
</div>"""
    return Preview(html=markup, css=DEFAULT_PREVIEW_CSS, js="")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_app(row: sqlite3.Row) -> App:
    return App(
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        description=row["description"] or None,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        preview=Preview(html=row["html"] or "", css=row["css"] or "", js=row["js"] or ""),
    )


@with_connection
def list_apps(conn: sqlite3.Connection) -> List[App]:
    rows = conn.execute("SELECT * FROM apps ORDER BY created_at DESC, rowid DESC").fetchall()
    return [_row_to_app(row) for row in rows]


@with_connection
def get_app(conn: sqlite3.Connection, app_id: str) -> Optional[App]:
    row = conn.execute("SELECT * FROM apps WHERE id = ?", (app_id,)).fetchone()
    if not row:
        logger.info("App not found with id %s", app_id)
        return None
    return _row_to_app(row)


@with_connection
def get_app_by_slug(conn: sqlite3.Connection, slug: str) -> Optional[App]:
    row = conn.execute("SELECT * FROM apps WHERE slug = ?", (slug,)).fetchone()
    if not row:
        logger.info("App not found with slug %s", slug)
        return None
    return _row_to_app(row)


def _unique_slug(cursor: sqlite3.Cursor, base_slug: str) -> str:
    cursor.execute(
        "SELECT slug FROM apps WHERE slug = ? OR slug LIKE ?",
        (base_slug, f"{base_slug}-%"),
    )
    return ensure_unique_slug(base_slug, [row["slug"] for row in cursor.fetchall()])


def create_app(data: CreateAppData) -> App:
    validate_app_name(data.name)
    name = data.name.strip()
    description = (data.description or "").strip() or None
    base_slug = generate_slug(data.slug or name)
    preview = default_preview(name)
    app_id = str(uuid.uuid4())
    created_at = _now()

    conn = get_connection()
    cursor = conn.cursor()
    try:
        # A concurrent create can take the slug between the lookup and the insert; retry once.
        for attempt in range(2):
            slug = _unique_slug(cursor, base_slug)
            try:
                cursor.execute(
                    """
                    INSERT INTO apps (id, name, slug, description, html, css, js, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (app_id, name, slug, description, preview.html, preview.css, preview.js, created_at, created_at),
                )
                conn.commit()
                break
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                logger.warning("Slug %r was taken while creating app %r: %s", slug, name, exc)
                if attempt:
                    raise ValueError("Failed to create app") from exc
    finally:
        conn.close()
    logger.info("Created app %s (%s)", slug, app_id)
    return App(
        id=app_id,
        name=name,
        slug=slug,
        description=description,
        created_at=created_at,
        updated_at=created_at,
        preview=preview,
    )


def update_app(app_id: str, data: UpdateAppData) -> Optional[App]:
    fields = []
    params: list = []
    if data.name is not None:
        validate_app_name(data.name)
        fields.append("name = ?")
        params.append(data.name.strip())
    if data.description is not None:
        fields.append("description = ?")
        params.append(data.description.strip() or None)
    if data.preview is not None:
        fields.extend(["html = ?", "css = ?", "js = ?"])
        params.extend([data.preview.html or "", data.preview.css or "", data.preview.js or ""])
    fields.append("updated_at = ?")
    params.append(_now())
    params.append(app_id)

    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute(f"UPDATE apps SET {', '.join(fields)} WHERE id = ?", params)
    conn.commit()
    if cursor.rowcount == 0:
        conn.close()
        return None
    cursor.execute("SELECT * FROM apps WHERE id = ?", (app_id,))
    updated = _row_to_app(cursor.fetchone())
    conn.close()
    return updated


def delete_app(app_id: str) -> bool:
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("DELETE FROM apps WHERE id = ?", (app_id,))
    conn.commit()
    deleted = cursor.rowcount > 0
    conn.close()
    if deleted:
        logger.info("Deleted app %s", app_id)
    return deleted
