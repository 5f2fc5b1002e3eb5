from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from conftest import SCRIPT_ID, console_event, profile_entry, type_profile_reply
from typeprofile.inspector.session import ProtocolResponse
from typeprofile.utils.config import Settings
from typeprofile.web.app import create_app, load_resource, render_page


def _client(collector, settings: Settings | None = None) -> TestClient:
    return TestClient(create_app(settings or Settings(), collector))


def test_index_shows_bundled_example(collector, fake_session) -> None:
    resp = _client(collector).get("/")

    assert resp.status_code == 200, resp.text
    assert resp.headers["content-type"].startswith("text/html")
    assert "function add(a, b)" in resp.text
    assert "{{SCRIPT}}" not in resp.text
    assert fake_session.commands == []


def test_index_uses_configured_files(tmp_path: Path, collector) -> None:
    template = tmp_path / "page.html"
    template.write_text("<pre>{{SCRIPT}}</pre>|{{RESULT}}|{{CONSOLE}}", encoding="utf-8")
    example = tmp_path / "example.js"
    example.write_text("a < b", encoding="utf-8")
    settings = Settings(template_path=template, example_path=example)

    resp = _client(collector, settings).get("/")

    assert resp.text == "<pre>a &lt; b</pre>||"


def test_post_renders_annotation_and_console(collector, fake_session) -> None:
    fake_session.replies["Profiler.takeTypeProfile"] = type_profile_reply(
        profile_entry(SCRIPT_ID, [(4, ["number"])])
    )
    fake_session.events["Runtime.runScript"] = [console_event("log", "hello world")]

    resp = _client(collector).post("/", data={"script": "let x = 1;"})

    assert resp.status_code == 200, resp.text
    assert "let&nbsp;<span" in resp.text
    assert ">number</span> x&nbsp;=&nbsp;1;" in resp.text
    assert "console.log: hello&nbsp;world<br/>" in resp.text
    assert dict(fake_session.commands)["Runtime.compileScript"]["expression"] == "let x = 1;"


def test_post_shows_escaped_error_in_console(collector, fake_session) -> None:
    fake_session.replies["Runtime.runScript"] = ProtocolResponse(
        result={"exceptionDetails": {"exception": {"description": "Error: <oops>"}}}
    )

    resp = _client(collector).post("/", data={"script": "throw new Error('<oops>')"})

    assert resp.status_code == 200
    assert "Error:&nbsp;&lt;oops&gt;" in resp.text
    assert '<div class="result"></div>' in resp.text
    assert fake_session.disconnect_calls == 1


def test_render_page_does_not_resubstitute_script_text() -> None:
    page = render_page(
        "[{{SCRIPT}}][{{RESULT}}][{{CONSOLE}}]",
        script="// {{RESULT}}",
        result="R",
        console="C",
    )

    assert page == "[// {{RESULT}}][R][C]"


def test_load_resource_reads_package_data() -> None:
    assert "{{RESULT}}" in load_resource("template.html")


def test_post_with_out_of_range_offset_shows_error(collector, fake_session) -> None:
    fake_session.replies["Profiler.takeTypeProfile"] = type_profile_reply(
        profile_entry(SCRIPT_ID, [(99, ["number"])])
    )

    resp = _client(collector).post("/", data={"script": "abc"})

    assert resp.status_code == 200, resp.text
    assert "offset&nbsp;99&nbsp;is&nbsp;outside&nbsp;the&nbsp;source" in resp.text
    assert '<div class="result"></div>' in resp.text
    assert fake_session.disconnect_calls == 1
