"""
命令行测试（Typer CliRunner）
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from build_log import __version__
from build_log.cli.app import app
from build_log.core.generator import generate_markdown
from build_log.core.parser import parse_markdown

from conftest import IDENTIFIER_0709, IDENTIFIER_0710

runner = CliRunner()


@pytest.fixture
def documented(workspace: Path, complete_project) -> Path:
    """工作区中已有一个完整的构建日志"""
    (workspace / "BUILD_LOG_AAL-AA-07009-01.md").write_text(
        generate_markdown(complete_project), encoding="utf-8"
    )
    return workspace


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_list_json(workspace: Path):
    result = runner.invoke(app, ["list", str(workspace), "--format", "json"])

    assert result.exit_code == 0
    builds = json.loads(result.stdout)
    assert [b["build_number"] for b in builds] == [IDENTIFIER_0710, IDENTIFIER_0709]
    assert builds[1]["files"] == 2


def test_list_rich(documented: Path):
    result = runner.invoke(app, ["list", str(documented)])

    assert result.exit_code == 0
    assert "3 build(s)" in result.output


def test_list_missing_workspace(tmp_path: Path):
    result = runner.invoke(app, ["list", str(tmp_path / "missing")])

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_show_markdown(documented: Path, complete_project):
    result = runner.invoke(
        app, ["show", "AAL-AA-07009-01", "--workspace", str(documented), "--format", "markdown"]
    )

    assert result.exit_code == 0
    assert parse_markdown(result.stdout) == complete_project


def test_show_json(documented: Path):
    result = runner.invoke(
        app, ["show", "AAL-AA-07009-01", "-w", str(documented), "-f", "json"]
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["device"] == "GPN600-001"
    assert data["approved_for_release_date"] == "2026-01-31"


def test_show_unknown_build(documented: Path):
    result = runner.invoke(app, ["show", "NOPE", "-w", str(documented)])

    assert result.exit_code == 1
    assert "Build not found: NOPE" in result.output


def test_validate(documented: Path):
    ok = runner.invoke(app, ["validate", "AAL-AA-07009-01", "-w", str(documented), "-f", "json"])
    assert ok.exit_code == 0
    assert json.loads(ok.stdout)["summary"]["passed"] is True

    missing = runner.invoke(app, ["validate", IDENTIFIER_0710, "-w", str(documented), "-f", "json"])
    assert missing.exit_code == 1
    fields = [issue["field"] for issue in json.loads(missing.stdout)["issues"]]
    assert "Android Version" in fields
    assert "Build Number" not in fields


def test_new_from_identifier(workspace: Path):
    result = runner.invoke(app, ["new", IDENTIFIER_0709, "-w", str(workspace)])

    assert result.exit_code == 0
    project = parse_markdown(result.stdout)
    assert project.build_number == IDENTIFIER_0709
    assert project.device == "GPN600-001"
    assert len(project.files) == 2


def test_new_writes_output(workspace: Path, tmp_path: Path):
    output = tmp_path / "draft.md"

    result = runner.invoke(app, ["new", "-w", str(workspace), "-o", str(output)])

    assert result.exit_code == 0
    assert len(parse_markdown(output.read_text(encoding="utf-8")).files) == 3


def test_new_unknown_identifier(workspace: Path):
    result = runner.invoke(app, ["new", "NOPE.20260101.000000", "-w", str(workspace)])
    assert result.exit_code == 1


def test_save_refuses_incomplete_build(workspace: Path):
    result = runner.invoke(app, ["save", IDENTIFIER_0709, "-w", str(workspace)])

    assert result.exit_code == 1
    assert "Required fields missing" in result.output
    assert not list(workspace.glob("BUILD_LOG_*.md"))


def test_save(documented: Path):
    result = runner.invoke(app, ["save", "AAL-AA-07009-01", "-w", str(documented)])

    assert result.exit_code == 0
    assert "Saved successfully" in result.output


@pytest.mark.parametrize("name, marker", [
    ("out.md", b"# Android OS Image Build Log"),
    ("out.html", b"<!DOCTYPE html>"),
    ("out.pdf", b"%PDF"),
])
def test_export(documented: Path, tmp_path: Path, name, marker):
    output = tmp_path / name

    result = runner.invoke(app, ["export", "AAL-AA-07009-01", str(output), "-w", str(documented)])

    assert result.exit_code == 0, result.output
    assert f"Exported to {name}" in result.output
    assert output.read_bytes().startswith(marker)


def test_export_unknown_format(documented: Path, tmp_path: Path):
    result = runner.invoke(
        app, ["export", "AAL-AA-07009-01", str(tmp_path / "out.docx"), "-w", str(documented)]
    )

    assert result.exit_code == 1
    assert "Unknown export format" in result.output


def test_import(documented: Path):
    source = documented / "BUILD_LOG_AAL-AA-07009-01.md"

    result = runner.invoke(app, ["import", str(source), "--format", "json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["built_by"] == "Alice"


def test_import_missing_file(tmp_path: Path):
    result = runner.invoke(app, ["import", str(tmp_path / "missing.md")])

    assert result.exit_code == 1
    assert "Import failed" in result.output


def test_checksums(workspace: Path):
    result = runner.invoke(app, ["checksums", IDENTIFIER_0709, "-w", str(workspace)])

    assert result.exit_code == 0
    assert "Checksums computed" in result.output


def test_preview(documented: Path, tmp_path: Path):
    output_dir = tmp_path / "pages"

    result = runner.invoke(
        app, ["preview", "AAL-AA-07009-01", str(output_dir), "-w", str(documented), "--dpi", "40"]
    )

    assert result.exit_code == 0, result.output
    pages = sorted(output_dir.glob("page-*.png"))
    assert pages
    assert pages[0].read_bytes().startswith(b"\x89PNG")


def test_delete(tmp_path: Path):
    target = tmp_path / "BUILD_LOG_1.html"
    target.write_text("<html></html>")

    result = runner.invoke(app, ["delete", str(target), "--yes"])

    assert result.exit_code == 0
    assert "Deleted BUILD_LOG_1.html" in result.output
    assert not target.exists()


def test_delete_cancelled(tmp_path: Path):
    target = tmp_path / "BUILD_LOG_1.html"
    target.write_text("<html></html>")

    result = runner.invoke(app, ["delete", str(target)], input="n\n")

    assert result.exit_code == 0
    assert target.exists()


def test_config_option(workspace: Path, tmp_path: Path):
    config = tmp_path / "buildlog.toml"
    config.write_text(f'[buildlog]\nworkspace = "{workspace.as_posix()}"\n', encoding="utf-8")

    result = runner.invoke(app, ["--config", str(config), "list", "--format", "json"])

    assert result.exit_code == 0
    assert len(json.loads(result.stdout)) == 2


def test_missing_config_file(tmp_path: Path):
    result = runner.invoke(app, ["--config", str(tmp_path / "missing.toml"), "version"])

    assert result.exit_code == 1
    assert "Config file not found" in result.output
