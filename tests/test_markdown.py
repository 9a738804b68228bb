from contentrepo.entry import Entry
from contentrepo.markdown import render_entry_body, render_markdown


def test_render_markdown_supports_extensions() -> None:
    html = render_markdown("- [x] done\n\nTerm\n: Definition\n\nNote[^1]\n\n[^1]: Footnote text\n")
    assert 'type="checkbox"' in html
    assert "<dl>" in html
    assert "Footnote text" in html


def test_blank_markdown_renders_empty() -> None:
    assert render_markdown("  \n") == ""


def test_entry_body_rendering_ignores_non_text_bodies() -> None:
    assert render_entry_body(Entry(collection="posts", data={"body": "*hi*"})) == "<p><em>hi</em></p>\n"
    assert render_entry_body(Entry(collection="posts", data={"body": 3})) == ""
    assert render_entry_body(Entry(collection="posts")) == ""
