from __future__ import annotations

import os

from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html"]),
)


def render(template_name: str, status_code: int = 200, **context) -> HTMLResponse:
    html = env.get_template(template_name).render(**context)
    return HTMLResponse(html, status_code=status_code)
