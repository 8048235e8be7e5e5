"""
会话模块 - 与界面无关的仪表盘状态

BuildSession 保存当前工作区、构建列表、选中的构建和状态栏信息，
并把耗时操作交给 TaskRunner 在后台执行。

忙碌标志：
- 忙碌时拒绝新的耗时操作
- 完成回调在 finally 中清除忙碌标志，失败时同样会清除
"""

import concurrent.futures
import logging
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from build_log.config import DashboardConfig
from build_log.core.models import AppUpdate, BuildFile, BuildProject, KnownIssue
from build_log.core.validator import missing_fields
from build_log.errors import BuildLogError, describe_error
from build_log.exporters import HtmlExporter, PdfExporter
from build_log.project import ProjectManager
from build_log.tasks import TaskRunner

logger = logging.getLogger(__name__)

T = TypeVar("T")

READY_MESSAGE = "Ready"
NO_BUILDS_MESSAGE = "No valid build files found (.zip/.json). Please select a valid workspace."


def _distinct_names(values: list[str]) -> list[str]:
    """去除空值，不区分大小写去重，按字母排序"""
    seen: set[str] = set()
    names: list[str] = []
    for value in values:
        name = value.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        names.append(name)
    return sorted(names)


def _remove_item(items: list[T], item: T) -> bool:
    """按对象身份移除列表元素"""
    for index, existing in enumerate(items):
        if existing is item:
            del items[index]
            return True
    return False


class BuildSession:
    """
    构建日志仪表盘会话

    Attributes:
        builds: 当前工作区的构建记录
        selected_build: 当前选中的构建
        workspace_path: 工作区目录
        status_message: 状态栏信息
        busy_message: 忙碌提示
        is_busy: 是否有耗时操作正在执行
        last_error: 最近一次后台操作的异常（成功时为 None）
        is_saved: 当前构建是否已保存
        preview_content: Markdown 预览
        preview_images: PDF 预览图（PNG）
        built_by_history: 已出现过的构建人
        reviewed_by_history: 已出现过的审核人
    """

    def __init__(
        self,
        manager: Optional[ProjectManager] = None,
        runner: Optional[TaskRunner] = None,
        config: Optional[DashboardConfig] = None,
    ):
        self.config = config or (manager.config if manager else DashboardConfig())
        self.manager = manager or ProjectManager(self.config)
        self.runner = runner or TaskRunner()
        self.html_exporter = HtmlExporter()
        self.pdf_exporter = PdfExporter()

        self.builds: list[BuildProject] = []
        self.selected_build: Optional[BuildProject] = None
        self.workspace_path: Optional[Path] = self.manager.current_workspace
        self.status_message = READY_MESSAGE
        self.busy_message = ""
        self.is_busy = False
        self.is_saved = False
        self.last_error: Optional[BaseException] = None
        self.preview_content = ""
        self.preview_images: list[bytes] = []
        self.built_by_history: list[str] = []
        self.reviewed_by_history: list[str] = []

    # ============================================================
    # 忙碌标志
    # ============================================================

    def _begin(self, message: str) -> bool:
        if self.is_busy:
            logger.debug(f"Busy ({self.busy_message}), refusing: {message}")
            return False
        self.is_busy = True
        self.busy_message = message
        self.last_error = None
        self.status_message = message
        return True

    def _end(self) -> None:
        self.is_busy = False
        self.busy_message = ""

    def _run_background(
        self,
        message: str,
        fn: Callable[..., Any],
        *args: Any,
        on_success: Callable[[Any], None],
        on_error: Callable[[BaseException], None],
    ) -> Optional[concurrent.futures.Future]:
        """在后台执行 fn，回调结束时清除忙碌标志"""
        if not self._begin(message):
            return None

        def _success(result: Any) -> None:
            try:
                on_success(result)
            finally:
                self._end()

        def _error(error: BaseException) -> None:
            try:
                self.last_error = error
                on_error(error)
            finally:
                self._end()

        return self.runner.submit(fn, *args, on_success=_success, on_error=_error)

    def wait(self, future: Optional[concurrent.futures.Future] = None) -> None:
        """等待后台任务结束并执行完成回调"""
        self.runner.wait(future)

    def close(self) -> None:
        self.runner.shutdown()

    # ============================================================
    # 工作区
    # ============================================================

    def open_workspace(self, directory: Path | str) -> Optional[concurrent.futures.Future]:
        """设置工作区并开始加载构建"""
        if not self.manager.set_workspace(directory):
            self.status_message = f"Error: Workspace is not a directory: {directory}"
            return None
        self.workspace_path = self.manager.current_workspace
        return self.load_builds()

    def load_builds(self) -> Optional[concurrent.futures.Future]:
        """在后台加载工作区中的全部构建"""
        if self.workspace_path is None:
            return None

        def _loaded(projects: list[BuildProject]) -> None:
            self.builds = list(projects)
            if self.builds:
                self.select_build(self.builds[0])
                self.status_message = f"Loaded {len(self.builds)} build(s)"
                self.refresh_engineer_history()
            else:
                self.workspace_path = None
                self.selected_build = None
                self.status_message = NO_BUILDS_MESSAGE

        def _failed(error: BaseException) -> None:
            self.workspace_path = None
            self.status_message = f"Error: {describe_error(error)}"

        return self._run_background(
            "Loading builds...",
            self.manager.load_all_projects,
            on_success=_loaded,
            on_error=_failed,
        )

    def select_build(self, project: Optional[BuildProject]) -> None:
        self.selected_build = project
        self.is_saved = False
        self.preview_images = []
        self.update_preview()

    def select_build_number(self, build_number: str) -> Optional[BuildProject]:
        """按构建号选中构建，找不到时返回 None"""
        for build in self.builds:
            if build.build_number == build_number:
                self.select_build(build)
                return build
        return None

    def new_build(self) -> BuildProject:
        """新建构建并选中"""
        project = self.manager.create_new_project()
        self.builds.insert(0, project)
        self.select_build(project)
        return project

    # ============================================================
    # 保存和导出
    # ============================================================

    def missing_fields(self) -> list[str]:
        """当前构建缺失的必填字段"""
        if self.selected_build is None:
            return []
        return missing_fields(self.selected_build)

    def _check_required(self) -> bool:
        missing = self.missing_fields()
        if missing:
            self.status_message = f"Required fields missing: {', '.join(missing)}"
            return False
        return True

    def save_build(self) -> bool:
        """保存当前构建到工作区"""
        if self.selected_build is None or not self._check_required():
            return False
        if not self._begin("Saving..."):
            return False

        try:
            self.manager.save_project(self.selected_build)
            self.is_saved = True
            self.status_message = "Saved successfully"
            return True
        except (OSError, BuildLogError) as e:
            self.is_saved = False
            self.status_message = f"Save failed: {describe_error(e)}"
            return False
        finally:
            self._end()

    def _export(self, file_path: Path | str, export: Callable[[BuildProject, Path | str], Path]) -> bool:
        if self.selected_build is None or not self._check_required():
            return False
        if not self._begin("Exporting..."):
            return False

        try:
            path = export(self.selected_build, file_path)
            self.status_message = f"Exported to {Path(path).name}"
            return True
        except (OSError, BuildLogError) as e:
            self.status_message = f"Export failed: {describe_error(e)}"
            return False
        finally:
            self._end()

    def export_markdown(self, file_path: Path | str) -> bool:
        return self._export(file_path, self.manager.export_markdown)

    def export_html(self, file_path: Path | str) -> bool:
        return self._export(file_path, self.html_exporter.export)

    def export_pdf(self, file_path: Path | str) -> Optional[concurrent.futures.Future]:
        """在后台生成 PDF 文件"""
        build = self.selected_build
        if build is None or not self._check_required():
            return None

        def _exported(path: Path) -> None:
            self.status_message = f"Exported to {Path(path).name}"

        def _failed(error: BaseException) -> None:
            self.status_message = f"Export failed: {describe_error(error)}"

        return self._run_background(
            "Generating PDF...",
            self.pdf_exporter.generate,
            build,
            file_path,
            on_success=_exported,
            on_error=_failed,
        )

    def generate_pdf_preview(self, dpi: Optional[int] = None) -> Optional[concurrent.futures.Future]:
        """在后台生成 PDF 预览图"""
        build = self.selected_build
        if build is None:
            return None

        def _generated(images: list[bytes]) -> None:
            self.preview_images = images
            self.status_message = f"Generated {len(images)} preview page(s)"

        def _failed(error: BaseException) -> None:
            self.preview_images = []
            self.status_message = f"Preview generation failed: {describe_error(error)}"

        return self._run_background(
            "Generating preview...",
            self.pdf_exporter.generate_preview_images,
            build,
            dpi or self.config.preview_dpi,
            on_success=_generated,
            on_error=_failed,
        )

    def import_markdown(self, file_path: Path | str) -> Optional[BuildProject]:
        """导入 Markdown 文件并插入到列表顶部"""
        if not self._begin("Importing..."):
            return None

        try:
            project = self.manager.import_markdown(file_path)
        except (OSError, UnicodeDecodeError) as e:
            self.status_message = f"Import failed: {describe_error(e)}"
            return None
        finally:
            self._end()

        self.builds.insert(0, project)
        self.select_build(project)
        self.status_message = "Imported successfully"
        self.refresh_engineer_history()
        return project

    def compute_checksums(self) -> Optional[concurrent.futures.Future]:
        """在后台计算当前构建所有文件的 SHA256"""
        build = self.selected_build
        if build is None:
            return None

        def _computed(checksums: dict[int, str]) -> None:
            self.manager.apply_file_checksums(build, checksums)
            self.status_message = "Checksums computed"
            if build is self.selected_build:
                self.update_preview()

        def _failed(error: BaseException) -> None:
            self.status_message = f"Error: {describe_error(error)}"

        return self._run_background(
            "Computing checksums...",
            self.manager.collect_file_checksums,
            build,
            on_success=_computed,
            on_error=_failed,
        )

    def delete_file(self, file_path: Path | str) -> bool:
        """删除导出的文件（.md / .html / .pdf）"""
        path = Path(file_path)
        try:
            self.manager.delete_file(path)
        except OSError as e:
            self.status_message = f"Delete failed: {describe_error(e)}"
            return False
        self.status_message = f"Deleted {path.name}"
        return True

    # ============================================================
    # 预览和输入历史
    # ============================================================

    def update_preview(self) -> str:
        if self.selected_build is None:
            self.preview_content = ""
        else:
            self.preview_content = self.manager.generate_preview(self.selected_build)
        return self.preview_content

    def refresh_engineer_history(self) -> None:
        """从已加载的构建中收集构建人和审核人"""
        self.built_by_history = _distinct_names([b.built_by for b in self.builds])
        self.reviewed_by_history = _distinct_names([b.reviewed_by for b in self.builds])

    # ============================================================
    # 列表编辑
    # ============================================================

    def add_app_update(self) -> Optional[AppUpdate]:
        if self.selected_build is None:
            return None
        update = AppUpdate(
            app_name="New App",
            path="packages/apps/",
            version="1.0.0",
            changes="Description",
        )
        self.selected_build.app_updates.append(update)
        self.is_saved = False
        return update

    def remove_app_update(self, update: AppUpdate) -> bool:
        if self.selected_build is None:
            return False
        removed = _remove_item(self.selected_build.app_updates, update)
        self.is_saved = self.is_saved and not removed
        return removed

    def add_known_issue(self) -> Optional[KnownIssue]:
        if self.selected_build is None:
            return None
        issue = KnownIssue(issue="New Issue", severity="Medium", status="Open", workaround="-")
        self.selected_build.known_issues.append(issue)
        self.is_saved = False
        return issue

    def remove_known_issue(self, issue: KnownIssue) -> bool:
        if self.selected_build is None:
            return False
        removed = _remove_item(self.selected_build.known_issues, issue)
        self.is_saved = self.is_saved and not removed
        return removed

    def add_file(self) -> Optional[BuildFile]:
        if self.selected_build is None:
            return None
        build_file = BuildFile(file_name="new_file.zip", file_size="0 B")
        self.selected_build.files.append(build_file)
        self.is_saved = False
        return build_file

    def remove_file(self, build_file: BuildFile) -> bool:
        if self.selected_build is None:
            return False
        removed = _remove_item(self.selected_build.files, build_file)
        self.is_saved = self.is_saved and not removed
        return removed
