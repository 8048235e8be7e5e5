"""
Markdown 生成器模块 - 把 BuildProject 序列化为固定结构的 Markdown

输出是确定性的，生成过程不会失败。文档结构即持久化格式，
解析器 (build_log.core.parser) 依赖这里的标题和表格布局。

注意：表格单元格中的 "|" 不做转义（与已有文件保持兼容）。
"""

from collections import Counter

from build_log.core.models import BuildProject

# 测试结果对应的 emoji
RESULT_EMOJI = {
    "Pass": "✅",
    "Fail": "❌",
    "Pending": "⏳",
    "Skipped": "⏭️",
}
UNKNOWN_RESULT_EMOJI = "❓"

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# 变更日志中的自由文本小节（标题, 字段名），顺序即输出顺序
CHANGELOG_TEXT_SECTIONS = [
    ("System Modifications", "system_modifications"),
    ("Kernel/Driver Changes", "kernel_driver_changes"),
    ("Configuration Changes", "configuration_changes"),
    ("Removed Components", "removed_components"),
]


def format_bullets(text: str) -> list[str]:
    """
    把多行文本转换为列表项

    按换行拆分，丢弃空行，每行去掉首尾空白后加上 "- " 前缀。
    """
    return [f"- {line.strip()}" for line in text.split("\n") if line.strip()]


def result_emoji(result: str) -> str:
    """测试结果对应的 emoji"""
    return RESULT_EMOJI.get(result, UNKNOWN_RESULT_EMOJI)


def _table(header: list[str], rows: list[list[str]]) -> list[str]:
    lines = ["| " + " | ".join(header) + " |"]
    lines.append("|" + "|".join("-" * (len(h) + 2) for h in header) + "|")
    for row in rows:
        lines.append("| " + " | ".join(row) + " |")
    return lines


def _build_info(project: BuildProject) -> list[str]:
    rows = [
        ["**Build Number**", f"`{project.build_number}`"],
        ["**Build Date**", f"{project.build_date:{DATE_FORMAT}}"],
        ["**Device**", project.device],
        ["**Build Type**", project.build_type],
        ["**Android Version**", project.android_version],
        ["**Security Patch**", project.security_patch],
        ["**Kernel Version**", project.kernel_version],
        ["**Previous Build**", project.previous_build],
    ]
    return ["## Build Information", "", *_table(["Property", "Value"], rows), ""]


def _files(project: BuildProject) -> list[str]:
    rows = [
        [f"`{f.file_name}`", f.file_size, f"`{f.sha256}`"]
        for f in project.files
    ]
    return ["## Files", "", *_table(["File", "Size", "SHA256"], rows), ""]


def _changelog(project: BuildProject) -> list[str]:
    lines = ["## Changelog", ""]

    if project.app_updates:
        rows = [
            [app.app_name, f"`{app.path}`", app.version, app.changes, app.description]
            for app in project.app_updates
        ]
        lines += ["### App Updates", ""]
        lines += _table(["App", "Path", "Version", "Changes", "Description"], rows)
        lines.append("")

        # 重名应用各自输出详情块（可能为空），解析时按顺序对应
        counts = Counter(app.app_name for app in project.app_updates)
        for app in project.app_updates:
            details = [f"- {d.strip()}" for d in app.details if d.strip()]
            if not details and counts[app.app_name] == 1:
                continue
            lines += [f"#### {app.app_name} Details", "", *details, ""]

    for title, attr in CHANGELOG_TEXT_SECTIONS:
        text = getattr(project, attr)
        if not text.strip():
            continue
        lines += [f"### {title}", "", *format_bullets(text), ""]

    return lines


def _known_issues(project: BuildProject) -> list[str]:
    if not project.known_issues:
        return []
    rows = [
        [i.issue, i.severity, i.status, i.workaround]
        for i in project.known_issues
    ]
    return [
        "## Known Issues", "",
        *_table(["Issue", "Severity", "Status", "Workaround"], rows),
        "",
    ]


def _testing_status(project: BuildProject) -> list[str]:
    if not project.test_results:
        return []
    rows = [
        [t.test_name, f"{result_emoji(t.result)} {t.result}", t.notes]
        for t in project.test_results
    ]
    return ["## Testing Status", "", *_table(["Test", "Result", "Notes"], rows), ""]


def _release(project: BuildProject) -> list[str]:
    lines = [
        "## Dependencies",
        "",
        f"- **Bootloader Version**: {project.bootloader_version}",
        f"- **Compatible OTA Builds**: {project.compatible_ota_builds}",
        "",
        "## Recommended For",
        "",
        # 内部测试始终输出为已勾选，与历史文件保持一致
        "- [x] Internal Testing",
        f"- [{'x' if project.customer_release else ' '}] Customer Release",
    ]
    if project.specific_customer.strip():
        lines.append(f"- **Specific Customer**: {project.specific_customer}")
    lines.append("")

    if project.customer_release_notes.strip():
        lines += ["## Customer Release Notes", "", project.customer_release_notes, ""]

    lines += [
        "## Build Engineer",
        "",
        f"- **Built by**: {project.built_by}",
        f"- **Reviewed by**: {project.reviewed_by}",
    ]
    if project.approved_for_release_date is not None:
        lines.append(
            f"- **Approved for release**: {project.approved_for_release_date:{DATE_FORMAT}}"
        )
    lines.append("")
    return lines


def generate_markdown(project: BuildProject) -> str:
    """
    生成构建日志 Markdown

    Args:
        project: 构建记录

    Returns:
        Markdown 文本（每行以 "\\n" 结尾）
    """
    lines = [f"# Android OS Image Build Log - {project.build_number}", ""]
    lines += _build_info(project)
    lines += _files(project)
    lines += _changelog(project)
    lines += _known_issues(project)
    lines += _testing_status(project)
    lines += _release(project)
    lines += ["---", f"*Last updated: {project.last_updated:{DATETIME_FORMAT}}*"]
    return "\n".join(lines) + "\n"
