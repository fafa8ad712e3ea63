from __future__ import annotations

import html

from pagecraft import config


def create_app_preview_document(title: str, body_html: str, css: str, js: str = "") -> str:
    script = f"<script>{js}</script>" if js else ""
    return f"""<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{html.escape(title)}</title>
    <style>{css}</style>
  </head>
  <body>
    {body_html}
    {script}
  </body>
</html>"""


def create_complete_html_document(title: str, body_html: str, css: str, js: str = "") -> str:
    style = f"<style>{css}</style>" if css.strip() else ""
    script = f"<script>{js}</script>" if js and js.strip() else ""
    return f"""<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{html.escape(title)}</title>
    {style}
  </head>
  <body>
    {body_html}
    {script}
  </body>
</html>"""


def render_preview_frame(document: str, title: str = "App Preview") -> str:
    return (
        f'<iframe class="preview-frame" srcdoc="{html.escape(document, quote=True)}" '
        f'sandbox="{config.SANDBOX_PERMISSIONS}" title="{html.escape(title)}"></iframe>'
    )
