"""
Rich 终端报告器 - 使用 Rich 库输出彩色终端格式

包括构建列表表格、单个构建的 Markdown 渲染和验证结果。
"""

from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from build_log.core.generator import DATE_FORMAT, generate_markdown
from build_log.core.models import BuildProject
from build_log.core.validator import Issue, ValidationResult


class RichReporter:
    """Rich 终端报告器"""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def report(self, result: ValidationResult, target: str) -> None:
        """输出验证结果"""
        self.console.print()
        self.console.print("─" * 80, style="dim")
        self.console.print(
            "📋 Build Log Validation 📋",
            style="bold cyan",
            justify="center",
        )
        self.console.print("─" * 80, style="dim")

        self._print_summary(result, target)
        if result.issues:
            self._print_issues(result.issues)
        self.console.print()

    def report_builds(self, builds: list[BuildProject]) -> None:
        """输出构建列表"""
        if not builds:
            self.console.print("[yellow]No builds found[/yellow]")
            return

        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Build Number", style="cyan")
        table.add_column("Date")
        table.add_column("Device")
        table.add_column("Type")
        table.add_column("Android", justify="right")
        table.add_column("Files", justify="right")
        table.add_column("Source", style="dim")

        for build in builds:
            source = Path(build.project_file_path).name if build.project_file_path else "(from files)"
            table.add_row(
                build.build_number,
                f"{build.build_date:{DATE_FORMAT}}",
                build.device or "-",
                build.build_type,
                build.android_version or "-",
                str(len(build.files)),
                source,
            )

        self.console.print(table)
        self.console.print(f"[dim]{len(builds)} build(s)[/dim]")

    def report_build(self, project: BuildProject) -> None:
        """以渲染后的 Markdown 输出单个构建"""
        self.console.print(Markdown(generate_markdown(project)))

    def _print_summary(self, result: ValidationResult, target: str) -> None:
        errors = result.stats.get("errors", 0)
        pending = result.stats.get("pending_tests", 0)

        content = Text()
        if result.is_valid:
            content.append("✅ Ready to save and export\n\n", style="bold green")
            color = "green"
        else:
            content.append(f"❌ {errors} required field(s) missing\n", style="bold red")
            if pending:
                content.append(f"{pending} test(s) still pending\n", style="yellow")
            content.append("\n")
            color = "red"
        content.append(f"Build: {target}", style="dim")

        self.console.print(Panel(
            content,
            title="[bold]Validation[/bold]",
            border_style=color,
        ))

    def _print_issues(self, issues: list[Issue]) -> None:
        self.console.print()
        self.console.print("[bold]◆ Missing fields[/bold]")
        self.console.print()

        for i, issue in enumerate(issues, 1):
            if issue.severity == "error":
                icon = "❌"
                style = "red"
            else:
                icon = "⚠️"
                style = "yellow"

            self.console.print(f"  {i}. [{style}]{icon} {issue.field_name}[/{style}]")
            if issue.suggestion:
                self.console.print(f"     [dim]→ {issue.suggestion}[/dim]")
