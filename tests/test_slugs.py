from datetime import date

from contentrepo.slugs import format_slug, sanitize_slug

TODAY = date(2024, 3, 5)


def test_year_and_title_slug_collapse_punctuation() -> None:
    slug = format_slug("{{year}}-{{slug}}", {"title": "Hello, World!"}, now=TODAY)
    assert slug == "2024-hello-world-"


def test_month_and_day_are_zero_padded() -> None:
    slug = format_slug("{{year}}/{{month}}/{{day}}", {}, now=TODAY)
    assert slug == "2024/03/05"


def test_slug_falls_back_to_path_when_title_missing() -> None:
    assert format_slug("{{slug}}", {"path": "Notes From Path"}, now=TODAY) == "notes-from-path"


def test_slug_keeps_dots_underscores_and_hyphens() -> None:
    assert format_slug("{{slug}}", {"title": "Release v1.2_beta-final"}, now=TODAY) == "release-v1.2_beta-final"


def test_slug_trims_before_collapsing() -> None:
    assert format_slug("{{slug}}", {"title": "  Spaced   Out  "}, now=TODAY) == "spaced-out"


def test_other_placeholders_use_raw_field_values() -> None:
    slug = format_slug("{{author}}/{{slug}}", {"title": "Post", "author": "Jane Doe"}, now=TODAY)
    assert slug == "Jane Doe/post"


def test_unknown_placeholder_without_field_expands_to_empty() -> None:
    assert format_slug("{{slug}}-{{missing}}", {"title": "A"}, now=TODAY) == "a-"


def test_slug_without_title_or_path_is_empty() -> None:
    assert format_slug("post-{{slug}}", {}, now=TODAY) == "post-"


def test_same_inputs_produce_same_slug() -> None:
    fields = {"title": "Déjà vu: again?", "category": "misc"}
    first = format_slug("{{category}}-{{slug}}", fields, now=TODAY)
    second = format_slug("{{category}}-{{slug}}", fields, now=TODAY)
    assert first == second == "misc-d-j-vu-again-"


def test_sanitize_slug_strips_unsafe_characters() -> None:
    cleaned = sanitize_slug("A/B\\C d?e#f")
    assert cleaned == "a-b-c-d-e-f"
    assert all(ch.isalnum() or ch in "._-" for ch in cleaned)
