"""HTTP front end: one page that profiles a posted script and shows the result."""
from __future__ import annotations

import html
import re
from importlib import resources
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qs

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse

from ..annotate.markup import escape
from ..inspector.session import TypeProfileError
from ..pipeline import collect_and_annotate, render_console_log
from ..profiler.collector import ProfileCollector
from ..utils.config import Settings
from ..utils.logger import get_logger, new_correlation_id

LOGGER = get_logger(__name__)

TEMPLATE_NAME = "template.html"
EXAMPLE_NAME = "example.js"
PLACEHOLDER_PATTERN = re.compile(r"\{\{(SCRIPT|RESULT|CONSOLE)\}\}")


def load_resource(name: str, override: Optional[Path] = None) -> str:
    """Read a bundled resource, or ``override`` when configured."""
    if override is not None:
        return Path(override).read_text(encoding="utf-8")
    return resources.files("typeprofile.resources").joinpath(name).read_text(encoding="utf-8")


def render_page(template: str, *, script: str, result: str, console: str) -> str:
    """Fill the template placeholders in a single pass.

    Substituted text is never scanned again, so a script that happens to
    contain ``{{RESULT}}`` stays as typed.
    """
    values = {
        "SCRIPT": html.escape(script, quote=False),
        "RESULT": result,
        "CONSOLE": console,
    }
    return PLACEHOLDER_PATTERN.sub(lambda match: values[match.group(1)], template)


def create_app(settings: Optional[Settings] = None, collector: Optional[ProfileCollector] = None) -> FastAPI:
    settings = settings or Settings()
    collector = collector or ProfileCollector.from_settings(settings)

    app = FastAPI(
        title="typeprofile",
        description="Annotate scripts with the runtime types observed by the V8 type profiler",
    )

    @app.get("/", response_class=HTMLResponse)
    def index() -> HTMLResponse:
        new_correlation_id()
        template = load_resource(TEMPLATE_NAME, settings.template_path)
        script = load_resource(EXAMPLE_NAME, settings.example_path)
        return HTMLResponse(render_page(template, script=script, result="", console=""))

    @app.post("/", response_class=HTMLResponse)
    async def profile(request: Request) -> HTMLResponse:
        new_correlation_id()
        body = (await request.body()).decode("utf-8", errors="replace")
        script = parse_qs(body, keep_blank_values=True).get("script", [""])[0]

        result = ""
        try:
            annotation = await run_in_threadpool(collect_and_annotate, script, collector)
        except TypeProfileError as exc:
            LOGGER.info("Profiling failed: %s", exc)
            console = escape(str(exc))
        else:
            result = annotation.annotated
            console = render_console_log(annotation.logs)

        template = load_resource(TEMPLATE_NAME, settings.template_path)
        return HTMLResponse(render_page(template, script=script, result=result, console=console))

    return app


__all__ = ["create_app", "load_resource", "render_page"]
