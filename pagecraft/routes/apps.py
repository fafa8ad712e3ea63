from __future__ import annotations

import io
import urllib.parse
from html import escape
from typing import List, Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response, StreamingResponse
from starlette.status import HTTP_303_SEE_OTHER

from pagecraft import config
from pagecraft.schemas import App, Message, Preview, UpdateAppData
from pagecraft.services import apps as app_service
from pagecraft.services import conversation as conversation_service
from pagecraft.services import export as export_service
from pagecraft.services import generation
from pagecraft.services.render import create_app_preview_document, render_preview_frame
from pagecraft.utils.session import flash_error, pop_flash_error

router = APIRouter(prefix="/apps", tags=["apps"])


APP_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{app_name} · Pagecraft</title>
    <style>
        * {{ box-sizing: border-box; }}
        body {{ font-family:'Inter',system-ui,sans-serif; background:#0f0f0f; color:#fff; margin:0; }}
        .page {{ max-width:1400px; margin:0 auto; padding:24px 20px 60px; }}
        .top-nav {{ display:flex; justify-content:space-between; align-items:center; gap:12px; flex-wrap:wrap; margin-bottom:20px; }}
        .top-nav h1 {{ margin:0; font-size:1.6rem; }}
        .top-nav p {{ margin:4px 0 0; color:rgba(255,255,255,0.6); }}
        .btn {{
            display:inline-block; padding:8px 16px; border-radius:999px; border:1px solid rgba(255,255,255,0.2);
            color:#fff; text-decoration:none; background:transparent; margin-left:6px; font-size:0.9rem; cursor:pointer;
        }}
        .btn.primary {{ background:#2563eb; border:none; }}
        .btn.danger {{ border-color:#f87171; color:#f87171; }}
        .layout {{ display:grid; grid-template-columns:minmax(300px,420px) 1fr; gap:20px; }}
        @media (max-width: 900px) {{ .layout {{ grid-template-columns:1fr; }} }}
        section {{ background:#131313; border:1px solid rgba(255,255,255,0.08); border-radius:24px; padding:20px; margin-bottom:20px; }}
        .chat {{ display:flex; flex-direction:column; max-height:70vh; }}
        .messages {{ flex:1; overflow-y:auto; margin-bottom:14px; }}
        .message {{ padding:12px 14px; border-radius:16px; margin-bottom:10px; white-space:pre-wrap; line-height:1.5; }}
        .message.user {{ background:#2563eb; margin-left:30px; }}
        .message.assistant {{ background:#1f1f1f; margin-right:30px; }}
        .message small {{ display:block; color:rgba(255,255,255,0.5); margin-top:6px; font-size:0.75rem; }}
        label {{ display:block; margin-bottom:6px; color:rgba(255,255,255,0.7); font-size:0.9rem; }}
        input, textarea {{ width:100%; padding:12px; border-radius:14px; border:1px solid rgba(255,255,255,0.2); background:#0f0f0f; color:#fff; margin-bottom:12px; font:inherit; }}
        textarea {{ min-height:90px; }}
        textarea.code {{ font-family:ui-monospace,monospace; font-size:0.85rem; min-height:160px; }}
        button {{ padding:10px 18px; border:none; border-radius:14px; background:#2563eb; color:#fff; font-weight:600; cursor:pointer; }}
        .error {{ color:#f87171; margin-bottom:12px; }}
        .preview-frame {{ width:100%; height:70vh; border:0; border-radius:16px; background:#fff; }}
        details {{ margin-top:12px; }}
        summary {{ cursor:pointer; color:rgba(255,255,255,0.8); margin-bottom:10px; }}
        pre {{ background:#0a0a0a; padding:14px; border-radius:14px; overflow:auto; font-size:0.8rem; max-height:320px; }}
        .inline {{ display:inline; }}
    </style>
</head>
<body>
    <div class="page">
        <div class="top-nav">
            <div>
                <h1>{app_name}</h1>
                <p>{app_description}</p>
            </div>
            <div>
                <a class="btn" href="/">All apps</a>
                <a class="btn" href="/apps/{slug}/preview" target="_blank" rel="noopener">Open preview</a>
                <a class="btn primary" href="/apps/{slug}/download?format=zip">Download</a>
                <form class="inline" method="post" action="/apps/{slug}/delete" onsubmit="return confirm('Delete this app?');">
                    <button class="btn danger" type="submit">Delete</button>
                </form>
            </div>
        </div>
        {error_block}
        <div class="layout">
            <div>
                <section class="chat" id="chat">
                    <h2>Chat</h2>
                    <div class="messages">{messages_block}</div>
                    <form method="post" action="/apps/{slug}/messages">
                        <label for="message">Describe what to build or change</label>
                        <textarea id="message" name="message" placeholder="Add a pricing table with three tiers" required></textarea>
                        <button type="submit">Send</button>
                    </form>
                </section>
                <section>
                    <details>
                        <summary>App settings</summary>
                        <form method="post" action="/apps/{slug}/edit">
                            <label for="name">Name</label>
                            <input type="text" id="name" name="name" value="{app_name}" />
                            <label for="description">Description</label>
                            <textarea id="description" name="description">{app_description}</textarea>
                            <button type="submit">Save</button>
                        </form>
                    </details>
                </section>
            </div>
            <div>
                <section>
                    <h2>Preview</h2>
                    {preview_frame}
                </section>
                <section>
                    <h2>Code</h2>
                    {code_block}
                    <details>
                        <summary>Edit code by hand</summary>
                        <form method="post" action="/apps/{slug}/code">
                            <label for="html">HTML</label>
                            <textarea class="code" id="html" name="html">{html_source}</textarea>
                            <label for="css">CSS</label>
                            <textarea class="code" id="css" name="css">{css_source}</textarea>
                            <label for="js">JavaScript</label>
                            <textarea class="code" id="js" name="js">{js_source}</textarea>
                            <button type="submit">Update preview</button>
                        </form>
                    </details>
                </section>
            </div>
        </div>
    </div>
</body>
</html>
"""

NOT_FOUND_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8" />
    <title>App not found · Pagecraft</title>
    <style>
        body {{ font-family:'Inter',system-ui,sans-serif; background:#0f0f0f; color:#fff; margin:0; display:flex; justify-content:center; align-items:center; min-height:100vh; }}
        .card {{ width:min(420px,90%); background:#141414; border:1px solid rgba(255,255,255,0.1); border-radius:24px; padding:32px; text-align:center; }}
        a {{ color:#2563eb; text-decoration:none; }}
    </style>
</head>
<body>
    <div class="card">
        <h1>App not found</h1>
        <p>No app exists at <code>/apps/{slug}</code>.</p>
        <p><a href="/">Back to your apps</a></p>
    </div>
</body>
</html>
"""

DOWNLOAD_FORMATS = ("zip", "html", "css", "js")


def render_messages(messages: List[Message]) -> str:
    if not messages:
        return '<p class="message assistant">Hi! Tell me what you would like to build.</p>'
    return "".join(
        f"""
        <div class="message {message.role}">{escape(message.content)}<small>{message.timestamp.strftime('%b %d, %Y %H:%M')}</small></div>
        """
        for message in messages
    )


def render_code(preview: Preview, slug: str) -> str:
    blocks = []
    for label, fmt, source in (
        ("HTML", "html", preview.html),
        ("CSS", "css", preview.css),
        ("JavaScript", "js", preview.js),
    ):
        if not source.strip():
            continue
        blocks.append(
            f'<details><summary>{label} <a class="btn" href="/apps/{slug}/download?format={fmt}">Download .{fmt}</a></summary>'
            f"<pre><code>{escape(source)}</code></pre></details>"
        )
    return "".join(blocks) or "<p>No code yet.</p>"


def not_found(slug: str) -> HTMLResponse:
    return HTMLResponse(NOT_FOUND_TEMPLATE.format(slug=escape(slug)), status_code=404)


def render_app_page(app: App, messages: List[Message], error: Optional[str] = None) -> HTMLResponse:
    preview = app.preview
    document = create_app_preview_document(app.name, preview.html, preview.css, preview.js)
    html = APP_TEMPLATE.format(
        app_name=escape(app.name),
        app_description=escape(app.description or ""),
        slug=escape(app.slug),
        error_block=f'<div class="error">{escape(error)}</div>' if error else "",
        messages_block=render_messages(messages),
        preview_frame=render_preview_frame(document),
        code_block=render_code(preview, escape(app.slug)),
        html_source=escape(preview.html),
        css_source=escape(preview.css),
        js_source=escape(preview.js),
    )
    return HTMLResponse(html)


def _redirect_to(app: App, anchor: str = "") -> RedirectResponse:
    return RedirectResponse(f"/apps/{app.slug}{anchor}", status_code=HTTP_303_SEE_OTHER)


@router.get("/{slug}", response_class=HTMLResponse)
async def app_page(request: Request, slug: str) -> HTMLResponse:
    app = app_service.get_app_by_slug(slug)
    if not app:
        return not_found(slug)
    conversation = conversation_service.get_conversation(app.id)
    return render_app_page(app, conversation.messages, error=pop_flash_error(request))


@router.post("/{slug}/messages")
async def send_message(request: Request, slug: str, message: str = Form("")) -> Response:
    app = app_service.get_app_by_slug(slug)
    if not app:
        return not_found(slug)
    try:
        await generation.send_message(app.id, message)
    except ValueError as exc:
        flash_error(request, str(exc))
    except app_service.AppNotFoundError:
        return not_found(slug)
    return _redirect_to(app, "#chat")


@router.post("/{slug}/edit")
async def edit_app(slug: str, name: str = Form(""), description: str = Form("")) -> Response:
    app = app_service.get_app_by_slug(slug)
    if not app:
        return not_found(slug)
    update = UpdateAppData(name=name.strip() or None, description=description)
    app_service.update_app(app.id, update)
    return _redirect_to(app)


@router.post("/{slug}/code")
async def update_code(
    slug: str,
    html: str = Form(""),
    css: str = Form(""),
    js: str = Form(""),
) -> Response:
    app = app_service.get_app_by_slug(slug)
    if not app:
        return not_found(slug)
    app_service.update_app(app.id, UpdateAppData(preview=Preview(html=html, css=css, js=js)))
    return _redirect_to(app)


@router.post("/{slug}/delete")
async def delete_app(slug: str) -> Response:
    app = app_service.get_app_by_slug(slug)
    if not app:
        return not_found(slug)
    app_service.delete_app(app.id)
    return RedirectResponse("/", status_code=HTTP_303_SEE_OTHER)


@router.get("/{slug}/preview", response_class=HTMLResponse)
async def preview_document(slug: str) -> HTMLResponse:
    app = app_service.get_app_by_slug(slug)
    if not app:
        return not_found(slug)
    preview = app.preview
    document = create_app_preview_document(app.name, preview.html, preview.css, preview.js)
    return HTMLResponse(
        document,
        headers={"Content-Security-Policy": f"sandbox {config.SANDBOX_PERMISSIONS}"},
    )


def _attachment(content: bytes, filename: str, media_type: str) -> StreamingResponse:
    encoded_filename = urllib.parse.quote(filename)
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{encoded_filename}"},
    )


@router.get("/{slug}/download")
async def download_app(request: Request, slug: str, format: str = "zip") -> Response:
    app = app_service.get_app_by_slug(slug)
    if not app:
        return not_found(slug)
    if format not in DOWNLOAD_FORMATS:
        flash_error(request, f"Unknown download format: {format}")
        return _redirect_to(app)
    base = export_service.project_basename(app)
    if format == "zip":
        if not export_service.get_project_files(app):
            flash_error(request, "No content found in project files to download.")
            return _redirect_to(app)
        return _attachment(export_service.build_project_archive(app), f"{base}.zip", "application/zip")
    for project_file in export_service.get_project_files(app):
        if project_file.filename == f"{base}.{format}":
            return _attachment(project_file.content.encode("utf-8"), project_file.filename, project_file.media_type)
    flash_error(request, f"No {format.upper()} content to download yet.")
    return _redirect_to(app)
