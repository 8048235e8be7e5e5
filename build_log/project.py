"""
项目管理模块 - 在工作区中加载、保存、导入、导出构建记录

加载流程：
1. 解析工作区中的 README*.md / BUILD_LOG*.md
2. 扫描产物文件，为尚无文档的构建标识生成记录
3. 合并后按构建日期降序排列
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from build_log.config import DashboardConfig
from build_log.core.generator import generate_markdown
from build_log.core.models import BuildProject
from build_log.core.parser import parse_file, parse_markdown
from build_log.core.scanner import (
    compute_sha256_many,
    create_project_from_files,
    get_unique_build_identifiers,
    scan_directory,
)
from build_log.errors import ProjectNotFoundError, WorkspaceError
from build_log.fileio import write_atomic

logger = logging.getLogger(__name__)


def build_log_filename(project: BuildProject) -> str:
    """
    根据构建号生成保存文件名

    构建号为空时使用构建日期时间戳。
    """
    if project.build_number:
        return f"BUILD_LOG_{project.build_number}.md"
    stamp = datetime.combine(project.build_date, datetime.now().time())
    return f"BUILD_LOG_{stamp:%Y%m%d_%H%M%S}.md"


class ProjectManager:
    """工作区中的构建记录管理器"""

    def __init__(self, config: Optional[DashboardConfig] = None):
        self.config = config or DashboardConfig()
        self.current_workspace: Optional[Path] = None
        if self.config.workspace is not None:
            self.set_workspace(self.config.workspace)

    def set_workspace(self, directory: Path | str) -> bool:
        """
        设置工作区

        Args:
            directory: 工作区目录

        Returns:
            目录存在并已设置时返回 True
        """
        path = Path(directory).expanduser()
        if not path.is_dir():
            logger.warning(f"Workspace is not a directory: {path}")
            return False
        self.current_workspace = path.resolve()
        return True

    def _require_workspace(self) -> Path:
        if self.current_workspace is None:
            raise WorkspaceError("No workspace selected")
        return self.current_workspace

    def _markdown_files(self, workspace: Path) -> list[Path]:
        found: set[Path] = set()
        for pattern in self.config.markdown_patterns:
            found.update(p for p in workspace.glob(pattern) if p.is_file())
        return sorted(found)

    def _resolve_file_paths(self, project: BuildProject, workspace: Path) -> None:
        """为从 Markdown 解析出的文件补全绝对路径"""
        for build_file in project.files:
            if build_file.full_path or not build_file.file_name:
                continue
            candidate = workspace / build_file.file_name
            if candidate.is_file():
                build_file.full_path = str(candidate)

    def load_all_projects(self) -> list[BuildProject]:
        """
        加载工作区中的全部构建记录

        同一构建号出现在多个 Markdown 文件中时，按路径排序靠后的文件生效。

        Returns:
            按构建日期降序排列的构建记录
        """
        if self.current_workspace is None or not self.current_workspace.is_dir():
            return []
        workspace = self.current_workspace

        by_build_number: dict[str, BuildProject] = {}
        for md_file in self._markdown_files(workspace):
            try:
                project = parse_file(md_file)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to read {md_file}: {e}")
                continue

            if not project.build_number:
                logger.debug(f"No build number in {md_file.name}, skipping")
                continue

            self._resolve_file_paths(project, workspace)
            if project.build_number in by_build_number:
                previous = by_build_number[project.build_number].project_file_path
                logger.warning(
                    f"Duplicate build number {project.build_number}: "
                    f"{md_file.name} replaces {Path(previous).name}"
                )
            by_build_number[project.build_number] = project

        projects = list(by_build_number.values())

        # 尚未生成文档的构建
        extensions = self.config.artifact_extensions
        for identifier in get_unique_build_identifiers(workspace, extensions):
            if identifier in by_build_number:
                continue
            project = create_project_from_files(workspace, identifier, extensions)
            if project.build_number:
                projects.append(project)

        logger.info(f"Loaded {len(projects)} build(s) from {workspace}")
        return sorted(projects, key=lambda p: p.build_date, reverse=True)

    def create_new_project(self) -> BuildProject:
        """新建构建记录，并自动填入工作区中的产物文件"""
        project = BuildProject()
        if self.current_workspace is not None:
            project.files.extend(
                scan_directory(self.current_workspace, self.config.artifact_extensions)
            )
        return project

    def load_project(self, file_path: Path | str) -> Optional[BuildProject]:
        """解析单个 Markdown 文件，文件不存在时返回 None"""
        path = Path(file_path)
        if not path.is_file():
            return None
        return parse_file(path)

    def save_project(self, project: BuildProject) -> Path:
        """
        保存构建记录到工作区

        Args:
            project: 构建记录

        Returns:
            写入的文件路径

        Raises:
            WorkspaceError: 未设置工作区
            OSError: 写入失败
        """
        workspace = self._require_workspace()
        project.touch()

        file_path = workspace / build_log_filename(project)
        write_atomic(file_path, generate_markdown(project))
        project.project_file_path = str(file_path)

        logger.info(f"Saved {project.display_name} to {file_path}")
        return file_path

    def export_markdown(self, project: BuildProject, file_path: Path | str) -> Path:
        """导出 Markdown 到指定路径"""
        project.touch()
        path = write_atomic(file_path, generate_markdown(project))
        logger.info(f"Exported Markdown to {path}")
        return path

    def generate_preview(self, project: BuildProject) -> str:
        """生成 Markdown 预览（不修改记录）"""
        return generate_markdown(project)

    def import_markdown(self, file_path: Path | str) -> BuildProject:
        """
        导入 Markdown 文件

        Raises:
            ProjectNotFoundError: 文件不存在
        """
        path = Path(file_path)
        if not path.is_file():
            raise ProjectNotFoundError("Markdown file not found", str(path))

        project = parse_markdown(path.read_text(encoding="utf-8"))
        project.project_file_path = str(path)
        if self.current_workspace is not None:
            self._resolve_file_paths(project, self.current_workspace)
        return project

    def collect_file_checksums(self, project: BuildProject) -> dict[int, str]:
        """
        计算构建记录中所有可访问文件的 SHA256（不修改记录）

        耗时操作，应在后台线程调用。

        Returns:
            文件索引 -> 摘要
        """
        targets: dict[int, str] = {
            index: build_file.full_path
            for index, build_file in enumerate(project.files)
            if build_file.full_path and Path(build_file.full_path).is_file()
        }
        digests = compute_sha256_many(
            list(targets.values()),
            max_workers=self.config.hash_workers,
            chunk_size=self.config.hash_chunk_size,
        )
        return {index: digests[path] for index, path in targets.items()}

    @staticmethod
    def apply_file_checksums(project: BuildProject, checksums: dict[int, str]) -> None:
        """把 collect_file_checksums 的结果写回记录"""
        for index, digest in checksums.items():
            if index < len(project.files):
                project.files[index].sha256 = digest

    def compute_file_checksums(self, project: BuildProject) -> None:
        """计算并写回所有文件的 SHA256"""
        self.apply_file_checksums(project, self.collect_file_checksums(project))

    def delete_file(self, file_path: Path | str) -> None:
        """
        删除导出的文件

        Raises:
            ProjectNotFoundError: 文件不存在
            OSError: 删除失败
        """
        path = Path(file_path)
        if not path.is_file():
            raise ProjectNotFoundError("File not found", str(path))
        path.unlink()
        logger.info(f"Deleted {path}")
