from __future__ import annotations

import io
import zipfile
from typing import List, NamedTuple

from pagecraft.schemas import App
from pagecraft.services.render import create_complete_html_document
from pagecraft.utils.slug import sanitize_filename

HTML_TYPE = "text/html"
CSS_TYPE = "text/css"
JS_TYPE = "text/javascript"


class ProjectFile(NamedTuple):
    content: str
    filename: str
    media_type: str


def project_basename(app: App) -> str:
    return app.slug or sanitize_filename(app.name)


def get_project_files(app: App) -> List[ProjectFile]:
    preview = app.preview
    base = project_basename(app)
    files: List[ProjectFile] = []
    if preview.html.strip() or preview.css.strip() or preview.js.strip():
        document = create_complete_html_document(app.name, preview.html, preview.css, preview.js)
        files.append(ProjectFile(document, f"{base}.html", HTML_TYPE))
    if preview.css.strip():
        files.append(ProjectFile(preview.css, f"{base}.css", CSS_TYPE))
    if preview.js.strip():
        files.append(ProjectFile(preview.js, f"{base}.js", JS_TYPE))
    return files


def build_project_archive(app: App) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for project_file in get_project_files(app):
            archive.writestr(project_file.filename, project_file.content)
    buffer.seek(0)
    return buffer.read()
