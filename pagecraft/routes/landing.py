from __future__ import annotations

from html import escape
from typing import List

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from pagecraft.schemas import App, CreateAppData
from pagecraft.services import apps as app_service
from pagecraft.utils.session import pop_flash_error

router = APIRouter()


LANDING_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>Pagecraft</title>
    <style>
        :root {{
            --black: #0f0f0f;
            --white: #ffffff;
            --accent: #2563eb;
            --gray: #1f1f1f;
        }}
        * {{ box-sizing: border-box; }}
        body {{
            margin: 0;
            font-family: 'Inter', system-ui, sans-serif;
            background: var(--black);
            color: var(--white);
        }}
        .page {{ max-width: 1100px; margin: 0 auto; padding: 40px 20px 80px; }}
        .logo {{ letter-spacing: 0.08em; font-weight: 600; margin-bottom: 30px; }}
        section {{
            background: var(--gray);
            padding: 30px;
            border-radius: 24px;
            border: 1px solid rgba(255,255,255,0.1);
            margin-bottom: 24px;
        }}
        h1 {{ font-size: clamp(2rem,4vw,3rem); margin: 0 0 12px; }}
        p {{ color: rgba(255,255,255,0.7); line-height: 1.6; }}
        label {{ display:block; margin-bottom:6px; color:rgba(255,255,255,0.7); font-size:0.9rem; }}
        input, textarea {{
            width:100%; padding:14px; border-radius:14px;
            border:1px solid rgba(255,255,255,0.2);
            background:#0f0f0f; color:#fff; margin-bottom:14px; font: inherit;
        }}
        textarea {{ min-height: 90px; }}
        button {{
            padding:12px 22px; border:none; border-radius:14px;
            background:var(--accent); color:#fff; font-weight:600; cursor:pointer;
        }}
        .error {{ color:#f87171; margin-bottom:12px; }}
        .grid {{ display:grid; grid-template-columns:repeat(auto-fit,minmax(240px,1fr)); gap:18px; }}
        .card {{
            display:block; background:#111; border:1px solid rgba(255,255,255,0.08);
            padding:18px; border-radius:18px; color:var(--white); text-decoration:none;
        }}
        .card:hover {{ border-color: var(--accent); }}
        .card small {{ color: rgba(255,255,255,0.5); }}
    </style>
</head>
<body>
    <div class="page">
        <div class="logo">PAGECRAFT</div>
        <section>
            <h1>Build a web page by chatting</h1>
            <p>Create an app, describe what you want, and watch the preview update with every answer.</p>
            {error_block}
            <form method="post" action="/apps">
                <label for="name">App name</label>
                <input type="text" id="name" name="name" value="{name}" placeholder="My landing page" required />
                <label for="description">Description (optional)</label>
                <textarea id="description" name="description" placeholder="What is this app about?">{description}</textarea>
                <button type="submit">Create app</button>
            </form>
        </section>
        <section>
            <h2>Your apps</h2>
            {apps_block}
        </section>
    </div>
</body>
</html>
"""


def render_apps(apps: List[App]) -> str:
    if not apps:
        return "<p>No apps yet. Create your first one above.</p>"
    cards = "".join(
        f"""
        <a class="card" href="/apps/{escape(app.slug)}">
            <h3>{escape(app.name)}</h3>
            <p>{escape(app.description or '')}</p>
            <small>Updated {app.updated_at.strftime('%b %d, %Y %H:%M')}</small>
        </a>
        """
        for app in apps
    )
    return f'<div class="grid">{cards}</div>'


def render_landing(error: str = "", name: str = "", description: str = "", status_code: int = 200) -> HTMLResponse:
    error_block = f'<div class="error">{escape(error)}</div>' if error else ""
    html = LANDING_TEMPLATE.format(
        error_block=error_block,
        name=escape(name),
        description=escape(description),
        apps_block=render_apps(app_service.list_apps()),
    )
    return HTMLResponse(html, status_code=status_code)


@router.get("/", response_class=HTMLResponse)
async def landing_page(request: Request) -> HTMLResponse:
    return render_landing(error=pop_flash_error(request) or "")


@router.post("/apps", response_class=HTMLResponse)
async def create_app(request: Request, name: str = Form(""), description: str = Form("")) -> HTMLResponse:
    try:
        app = app_service.create_app(CreateAppData(name=name, description=description or None))
    except ValueError as exc:
        return render_landing(str(exc), name=name, description=description, status_code=400)
    return RedirectResponse(f"/apps/{app.slug}", status_code=HTTP_303_SEE_OTHER)


@router.get("/api/health")
async def health() -> dict:
    return {"status": "healthy"}
