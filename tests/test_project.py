"""
ProjectManager 测试：加载、合并、保存、导入、哈希
"""

import hashlib
import logging
from pathlib import Path

import pytest

from build_log.config import DashboardConfig
from build_log.core.generator import generate_markdown
from build_log.core.models import BuildFile, BuildProject
from build_log.core.parser import parse_markdown
from build_log.errors import ProjectNotFoundError, WorkspaceError
from build_log.project import ProjectManager, build_log_filename

from conftest import ARTIFACT_0709, IDENTIFIER_0709, IDENTIFIER_0710


@pytest.fixture
def manager(workspace: Path) -> ProjectManager:
    manager = ProjectManager()
    assert manager.set_workspace(workspace)
    return manager


def write_log(directory: Path, name: str, project: BuildProject) -> Path:
    path = directory / name
    path.write_text(generate_markdown(project), encoding="utf-8")
    return path


def test_set_workspace_rejects_missing_directory(tmp_path: Path):
    manager = ProjectManager()

    assert not manager.set_workspace(tmp_path / "missing")
    assert manager.current_workspace is None


def test_workspace_from_config(workspace: Path):
    manager = ProjectManager(DashboardConfig(workspace=workspace))
    assert manager.current_workspace == workspace.resolve()


def test_load_without_workspace_returns_empty():
    assert ProjectManager().load_all_projects() == []


def test_load_builds_from_artifacts(manager: ProjectManager):
    projects = manager.load_all_projects()

    assert [p.build_number for p in projects] == [IDENTIFIER_0710, IDENTIFIER_0709]
    assert all(p.is_auto_completed for p in projects)
    assert len(projects[1].files) == 2


def test_markdown_record_replaces_generated_one(manager: ProjectManager, workspace: Path, complete_project):
    complete_project.build_number = IDENTIFIER_0709
    complete_project.files = []
    write_log(workspace, f"BUILD_LOG_{IDENTIFIER_0709}.md", complete_project)

    projects = manager.load_all_projects()

    assert len(projects) == 2
    documented = next(p for p in projects if p.build_number == IDENTIFIER_0709)
    assert documented.built_by == "Alice"
    assert documented.project_file_path.endswith(f"BUILD_LOG_{IDENTIFIER_0709}.md")
    assert not documented.is_auto_completed


def test_merge_matches_build_numbers_case_sensitively(manager: ProjectManager, workspace: Path,
                                                      complete_project):
    complete_project.build_number = IDENTIFIER_0709.lower()
    complete_project.files = []
    write_log(workspace, f"BUILD_LOG_{IDENTIFIER_0709.lower()}.md", complete_project)

    projects = manager.load_all_projects()

    numbers = sorted(p.build_number for p in projects)
    assert numbers == sorted([IDENTIFIER_0710, IDENTIFIER_0709, IDENTIFIER_0709.lower()])
    generated = next(p for p in projects if p.build_number == IDENTIFIER_0709)
    assert generated.is_auto_completed
    assert len(generated.files) == 2


def test_duplicate_build_numbers_last_file_wins(manager: ProjectManager, workspace: Path,
                                                complete_project, caplog):
    complete_project.build_number = "DUP-1"
    complete_project.built_by = "First"
    write_log(workspace, "BUILD_LOG_DUP-1.md", complete_project)
    complete_project.built_by = "Second"
    write_log(workspace, "README_DUP.md", complete_project)

    with caplog.at_level(logging.WARNING):
        projects = manager.load_all_projects()

    duplicates = [p for p in projects if p.build_number == "DUP-1"]
    assert len(duplicates) == 1
    assert duplicates[0].built_by == "Second"
    assert "Duplicate build number DUP-1" in caplog.text


def test_markdown_without_build_number_is_skipped(manager: ProjectManager, workspace: Path):
    (workspace / "README.md").write_text("# Just a readme\n", encoding="utf-8")

    projects = manager.load_all_projects()

    assert [p.build_number for p in projects] == [IDENTIFIER_0710, IDENTIFIER_0709]


def test_file_paths_resolved_for_parsed_records(manager: ProjectManager, workspace: Path, complete_project):
    write_log(workspace, "BUILD_LOG_AAL-AA-07009-01.md", complete_project)

    project = next(
        p for p in manager.load_all_projects() if p.build_number == "AAL-AA-07009-01"
    )

    assert project.files[0].full_path == str(workspace.resolve() / f"{ARTIFACT_0709}.zip")


def test_create_new_project_lists_workspace_files(manager: ProjectManager):
    project = manager.create_new_project()

    assert project.build_number == ""
    assert len(project.files) == 3
    assert [t.test_name for t in project.test_results] == [
        "Boot Test", "Basic Functionality", "OTA Update Test",
    ]


def test_save_project(manager: ProjectManager, workspace: Path, complete_project):
    path = manager.save_project(complete_project)

    assert path == workspace.resolve() / "BUILD_LOG_AAL-AA-07009-01.md"
    assert complete_project.project_file_path == str(path)
    assert path.read_text(encoding="utf-8") == generate_markdown(complete_project)
    assert parse_markdown(path.read_text(encoding="utf-8")) == complete_project
    assert complete_project.last_updated.microsecond == 0


def test_save_overwrites_previous_file(manager: ProjectManager, complete_project):
    manager.save_project(complete_project)
    complete_project.built_by = "Changed"
    path = manager.save_project(complete_project)

    assert parse_markdown(path.read_text(encoding="utf-8")).built_by == "Changed"
    assert not [p for p in path.parent.iterdir() if p.name.endswith(".tmp")]


def test_save_requires_workspace(complete_project):
    with pytest.raises(WorkspaceError):
        ProjectManager().save_project(complete_project)


def test_build_log_filename_without_build_number():
    name = build_log_filename(BuildProject())

    assert name.startswith("BUILD_LOG_")
    assert name.endswith(".md")


def test_export_markdown(manager: ProjectManager, tmp_path: Path, complete_project):
    target = tmp_path / "export.md"

    manager.export_markdown(complete_project, target)

    assert target.read_text(encoding="utf-8") == generate_markdown(complete_project)


def test_generate_preview_does_not_touch(manager: ProjectManager, complete_project):
    before = complete_project.last_updated

    preview = manager.generate_preview(complete_project)

    assert preview == generate_markdown(complete_project)
    assert complete_project.last_updated == before


def test_import_markdown(manager: ProjectManager, tmp_path: Path, complete_project):
    source = write_log(tmp_path, "imported.md", complete_project)

    project = manager.import_markdown(source)

    assert project == complete_project
    assert project.project_file_path == str(source)


def test_import_missing_file(manager: ProjectManager, tmp_path: Path):
    with pytest.raises(ProjectNotFoundError) as exc_info:
        manager.import_markdown(tmp_path / "missing.md")

    assert isinstance(exc_info.value, FileNotFoundError)
    assert "missing.md" in str(exc_info.value)


def test_load_project(manager: ProjectManager, tmp_path: Path, complete_project):
    source = write_log(tmp_path, "a.md", complete_project)

    assert manager.load_project(source) == complete_project
    assert manager.load_project(tmp_path / "missing.md") is None


def test_compute_file_checksums(manager: ProjectManager, workspace: Path):
    project = manager.load_all_projects()[1]
    project.files.append(BuildFile("gone.zip", "0 B"))

    checksums = manager.collect_file_checksums(project)
    assert all(f.sha256 == "-" for f in project.files)
    assert set(checksums) == {0, 1}

    manager.apply_file_checksums(project, checksums)

    assert project.files[0].sha256 == hashlib.sha256(b"{}").hexdigest()
    assert project.files[1].sha256 == hashlib.sha256(b"zip-data").hexdigest()
    assert project.files[2].sha256 == "-"


def test_compute_file_checksums_in_place(manager: ProjectManager):
    project = manager.load_all_projects()[0]

    manager.compute_file_checksums(project)

    assert project.files[0].sha256 == hashlib.sha256(b"newer-zip-data").hexdigest()


def test_delete_file(manager: ProjectManager, tmp_path: Path):
    target = tmp_path / "old.html"
    target.write_text("<html></html>")

    manager.delete_file(target)

    assert not target.exists()
    with pytest.raises(ProjectNotFoundError):
        manager.delete_file(target)
