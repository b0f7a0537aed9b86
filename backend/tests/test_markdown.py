from __future__ import annotations

from notes_app.utils.markdown import render_markdown


def test_empty_body_renders_nothing():
    assert render_markdown("") == ""
    assert render_markdown(None) == ""


def test_headings_and_lists():
    html = render_markdown("# Title\n\n- one\n- two\n")
    assert "<h1>Title</h1>" in html
    assert "<li>one</li>" in html


def test_fenced_code_is_supported():
    html = render_markdown("```\nx = 1\n```\n")
    assert "<code>" in html
    assert "x = 1" in html


def test_raw_html_is_escaped():
    html = render_markdown('<script>alert("x")</script>\n\nhello <b>there</b>')
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "<b>" not in html


def test_script_urls_are_stripped_from_links_and_images():
    for body in ("[click](javascript:alert(document.cookie))", "![x](javascript:alert(1))", "[v](vbscript:msgbox)"):
        html = render_markdown(body)
        assert "javascript:" not in html
        assert "vbscript:" not in html


def test_safe_links_survive_sanitizing():
    html = render_markdown("[docs](https://notes-app.io/help) and [me](mailto:me@notes-app.io)")
    assert 'href="https://notes-app.io/help"' in html
    assert 'href="mailto:me@notes-app.io"' in html
