"""
CLI 入口模块 - 使用 Typer 构建命令行界面

命令围绕一个工作区（存放镜像产物和构建日志的目录）：
1. list / show / validate 浏览和检查构建记录
2. new / save / import 创建、保存、导入 Markdown
3. export / preview 导出 Markdown、HTML、PDF 和 PDF 预览图
4. checksums / delete 计算文件哈希、删除导出的文件
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from build_log.config import DashboardConfig, load_config
from build_log.core import (
    create_project_from_files,
    generate_markdown,
    validate_project,
)
from build_log.errors import BuildLogError, describe_error
from build_log.fileio import write_atomic
from build_log.project import ProjectManager
from build_log.reporters import JsonReporter, RichReporter
from build_log.session import BuildSession

logger = logging.getLogger(__name__)

# 创建 Typer 应用实例
app = typer.Typer(
    name="buildlog",
    help="Build Log Dashboard: Android OS image build documentation.",
    add_completion=False,
)

# Rich Console 用于输出
console = Console()

# 支持的导出格式
EXPORT_FORMATS = ("md", "html", "pdf")


@dataclass
class CliState:
    """全局选项"""
    config: DashboardConfig = field(default_factory=DashboardConfig)
    verbose: bool = False


def configure_logging(level: int = logging.WARNING) -> None:
    """使用 Rich handler 配置日志（输出到 stderr）"""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


def fail(message: str) -> NoReturn:
    """输出错误并以退出码 1 结束"""
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


def get_reporter(format: str):
    """获取对应格式的报告器"""
    if format == "json":
        return JsonReporter()
    if format == "rich":
        return RichReporter(console)
    fail(f"Unknown format: {format}")


def resolve_workspace(state: CliState, workspace: Optional[Path]) -> Path:
    """命令行参数优先，其次是配置文件，最后是当前目录"""
    path = workspace or state.config.workspace or Path.cwd()
    path = Path(path).expanduser().resolve()
    if not path.exists():
        fail(f"Path does not exist: {path}")
    if not path.is_dir():
        fail(f"Path is not a directory: {path}")
    return path


def open_session(state: CliState, workspace: Optional[Path]) -> BuildSession:
    """打开工作区并等待构建加载完成"""
    session = BuildSession(config=state.config)
    session.wait(session.open_workspace(resolve_workspace(state, workspace)))
    if session.last_error is not None:
        session.close()
        fail(session.status_message)
    if state.verbose:
        console.print(f"[dim]{session.status_message}[/dim]")
    return session


def open_build(state: CliState, workspace: Optional[Path], build_number: str) -> BuildSession:
    """打开工作区并选中指定构建"""
    session = open_session(state, workspace)
    if session.select_build_number(build_number) is None:
        session.close()
        fail(f"Build not found: {build_number}")
    return session


def finish(session: BuildSession, ok: bool) -> None:
    """关闭会话，输出状态信息并设置退出码"""
    session.close()
    if ok:
        console.print(f"[green]✓[/green] {session.status_message}")
    else:
        fail(session.status_message)


WorkspaceOption = typer.Option(
    None,
    "--workspace",
    "-w",
    help="Workspace directory (defaults to config or current directory)",
)

FormatOption = typer.Option(
    "rich",
    "--format",
    "-f",
    help="Output format: rich (default) or json",
)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to buildlog.toml",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show detailed output",
    ),
) -> None:
    """Build Log Dashboard command line."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    try:
        ctx.obj = CliState(config=load_config(config), verbose=verbose)
    except BuildLogError as e:
        fail(describe_error(e))


@app.command("list")
def list_builds(
    ctx: typer.Context,
    workspace: Optional[Path] = typer.Argument(None, help="Workspace directory"),
    format: str = FormatOption,
) -> None:
    """
    List all builds in a workspace.

    Examples:
        buildlog list
        buildlog list ./images --format json
    """
    reporter = get_reporter(format)
    session = open_session(ctx.obj, workspace)
    session.close()
    reporter.report_builds(session.builds)


@app.command()
def show(
    ctx: typer.Context,
    build_number: str = typer.Argument(..., help="Build number"),
    workspace: Optional[Path] = WorkspaceOption,
    format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="Output format: rich (default), json or markdown",
    ),
) -> None:
    """Show a single build."""
    session = open_build(ctx.obj, workspace, build_number)
    session.close()
    if format == "markdown":
        typer.echo(session.preview_content, nl=False)
        return
    get_reporter(format).report_build(session.selected_build)


@app.command()
def validate(
    ctx: typer.Context,
    build_number: str = typer.Argument(..., help="Build number"),
    workspace: Optional[Path] = WorkspaceOption,
    format: str = FormatOption,
) -> None:
    """
    Check that a build has every required field.

    Exits with code 1 when fields are missing.
    """
    reporter = get_reporter(format)
    session = open_build(ctx.obj, workspace, build_number)
    session.close()

    result = validate_project(session.selected_build)
    reporter.report(result, build_number)
    raise typer.Exit(0 if result.is_valid else 1)


@app.command()
def new(
    ctx: typer.Context,
    identifier: Optional[str] = typer.Argument(
        None,
        help="Build identifier from artifact filenames (e.g. AAL-AA-07009-01.20260130.062740)",
    ),
    workspace: Optional[Path] = WorkspaceOption,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the draft to a file instead of stdout",
    ),
) -> None:
    """
    Create a draft build log.

    With an identifier the draft is filled from the matching artifacts,
    otherwise it lists every artifact in the workspace.
    """
    state: CliState = ctx.obj
    path = resolve_workspace(state, workspace)

    if identifier:
        project = create_project_from_files(path, identifier, state.config.artifact_extensions)
        if not project.files:
            fail(f"No artifacts found for identifier: {identifier}")
    else:
        manager = ProjectManager(state.config)
        manager.set_workspace(path)
        project = manager.create_new_project()

    markdown = generate_markdown(project)
    if output is None:
        typer.echo(markdown, nl=False)
        return

    try:
        write_atomic(output, markdown)
    except OSError as e:
        fail(f"Failed to write {output}: {describe_error(e)}")
    console.print(f"[green]✓[/green] Draft written to {output}")


@app.command()
def save(
    ctx: typer.Context,
    build_number: str = typer.Argument(..., help="Build number"),
    workspace: Optional[Path] = WorkspaceOption,
) -> None:
    """Write a build to BUILD_LOG_<build number>.md in the workspace."""
    session = open_build(ctx.obj, workspace, build_number)
    ok = session.save_build()
    if ok and ctx.obj.verbose:
        console.print(f"[dim]{session.selected_build.project_file_path}[/dim]")
    finish(session, ok)


@app.command()
def export(
    ctx: typer.Context,
    build_number: str = typer.Argument(..., help="Build number"),
    output: Path = typer.Argument(..., help="Output file"),
    workspace: Optional[Path] = WorkspaceOption,
    format: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="md, html or pdf (defaults to the output suffix)",
    ),
) -> None:
    """
    Export a build as Markdown, HTML or PDF.

    Examples:
        buildlog export AAL-AA-07009-01 BUILD_LOG_AAL-AA-07009-01.pdf
        buildlog export AAL-AA-07009-01 out.txt --format md
    """
    export_format = format or output.suffix.lstrip(".").lower()
    if export_format == "markdown":
        export_format = "md"
    if export_format not in EXPORT_FORMATS:
        fail(f"Unknown export format: {export_format or output.name}")

    session = open_build(ctx.obj, workspace, build_number)
    if export_format == "md":
        ok = session.export_markdown(output)
    elif export_format == "html":
        ok = session.export_html(output)
    else:
        future = session.export_pdf(output)
        session.wait(future)
        ok = future is not None and session.last_error is None
    finish(session, ok)


@app.command("import")
def import_markdown(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Markdown file to import"),
    format: str = FormatOption,
) -> None:
    """Parse a Markdown build log and show the result."""
    reporter = get_reporter(format)
    session = BuildSession(config=ctx.obj.config)
    project = session.import_markdown(file)
    session.close()
    if project is None:
        fail(session.status_message)
    reporter.report_build(project)


@app.command()
def checksums(
    ctx: typer.Context,
    build_number: str = typer.Argument(..., help="Build number"),
    workspace: Optional[Path] = WorkspaceOption,
    write: bool = typer.Option(
        False,
        "--write",
        help="Save the build log with the computed checksums",
    ),
) -> None:
    """Compute SHA256 checksums for a build's files."""
    session = open_build(ctx.obj, workspace, build_number)
    session.wait(session.compute_checksums())
    if session.last_error is not None:
        finish(session, False)

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("File Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("SHA256")
    for build_file in session.selected_build.files:
        table.add_row(build_file.file_name, build_file.file_size, build_file.sha256)
    console.print(table)

    if write:
        finish(session, session.save_build())
    else:
        finish(session, True)


@app.command()
def preview(
    ctx: typer.Context,
    build_number: str = typer.Argument(..., help="Build number"),
    output_dir: Path = typer.Argument(..., help="Directory for PNG pages"),
    workspace: Optional[Path] = WorkspaceOption,
    dpi: Optional[int] = typer.Option(
        None,
        "--dpi",
        help="Resolution (defaults to preview_dpi from config)",
    ),
) -> None:
    """Render the PDF pages of a build as PNG images."""
    session = open_build(ctx.obj, workspace, build_number)
    session.wait(session.generate_pdf_preview(dpi))
    if session.last_error is not None:
        finish(session, False)

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        for page, image in enumerate(session.preview_images, 1):
            write_atomic(output_dir / f"page-{page}.png", image)
    except OSError as e:
        session.close()
        fail(f"Failed to write preview: {describe_error(e)}")
    finish(session, True)


@app.command()
def delete(
    file: Path = typer.Argument(..., help="Exported file to delete (.md, .html, .pdf)"),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask for confirmation",
    ),
) -> None:
    """Delete an exported build log file."""
    if not yes and not typer.confirm(f"Delete {file}?"):
        raise typer.Exit(0)

    session = BuildSession()
    finish(session, session.delete_file(file))


@app.command()
def version() -> None:
    """Show the version of Build Log Dashboard."""
    from build_log import __version__
    console.print(f"[bold]Build Log Dashboard[/bold] v{__version__}")


if __name__ == "__main__":
    app()
