"""Tests for onboarding.templates."""

from pathlib import Path

from onboarding.templates import load_templates, principal_template, specialist_templates


def test_bundled_templates_load() -> None:
    templates = load_templates()
    assert templates[0].is_principal
    assert {t.id for t in templates} >= {"bancario", "bpc", "maternidade"}
    assert all(t.steps for t in templates)


def test_principal_template() -> None:
    principal = principal_template(load_templates())
    assert principal is not None
    assert principal.level == 1


def test_search_matches_name_or_area() -> None:
    templates = load_templates()
    assert [t.id for t in specialist_templates(templates, "bpc")] == ["bpc"]
    assert "bpc" in [t.id for t in specialist_templates(templates, "prestação")]
    assert all(not t.is_principal for t in specialist_templates(templates))


def test_invalid_files_are_skipped(tmp_path: Path) -> None:
    (tmp_path / "ok.yaml").write_text("id: a\nname: Zeta\nlevel: 2\n", encoding="utf-8")
    (tmp_path / "broken.yaml").write_text("id: [\n", encoding="utf-8")
    (tmp_path / "invalid.yaml").write_text("name: Sem id\n", encoding="utf-8")
    (tmp_path / "first.yaml").write_text("id: p\nname: Alfa\nlevel: 1\n", encoding="utf-8")
    assert [t.id for t in load_templates(tmp_path)] == ["p", "a"]


def test_missing_directory(tmp_path: Path) -> None:
    assert load_templates(tmp_path / "nope") == []
