"""
Markdown 解析器模块 - 从构建日志 Markdown 重建 BuildProject

尽力而为的解析：不会抛出异常，无法识别的内容直接跳过，字段保留默认值。
既能读取 generator 生成的文件，也能读取手工编辑过的文件。

解析是对行的一次折叠：每一行根据当前状态 (ParserState) 分派到对应的处理函数，
处理函数把结果累加到 BuildProject 上，并返回新的状态。
"""

import logging
import re
from dataclasses import dataclass, replace
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional

from build_log.core.models import (
    AppUpdate,
    BuildFile,
    BuildProject,
    KnownIssue,
    TestResult,
)

logger = logging.getLogger(__name__)


# ============================================================
# 模式和常量
# ============================================================

# 测试结果中的 emoji（⏭️ 由两个码点组成，都放进字符类）
RESULT_EMOJI_PATTERN = re.compile(r'[✅❌⏳⏭️❓]\s*')

BOLD_PATTERN = re.compile(r'\*{1,2}')

LAST_UPDATED_PATTERN = re.compile(r'^\*Last updated:\s*(.+?)\*\s*$')

APP_DETAILS_PATTERN = re.compile(r'^####\s+(.*?)\s+Details\s*$')

BOOTLOADER_PATTERN = re.compile(r'Bootloader Version\*{0,2}:\s*(.+)$')
COMPATIBLE_OTA_PATTERN = re.compile(r'Compatible OTA[^:]*:\s*(.+)$')
SPECIFIC_CUSTOMER_PATTERN = re.compile(r'Specific Customer\*{0,2}:\s*(.+)$')
BUILT_BY_PATTERN = re.compile(r'Built by\*{0,2}:\s*(.+)$')
REVIEWED_BY_PATTERN = re.compile(r'Reviewed by\*{0,2}:\s*(.+)$')
APPROVED_PATTERN = re.compile(r'Approved for release\*{0,2}:\s*(.+)$')

# 变更日志自由文本小节 -> 字段名
CHANGELOG_TEXT_FIELDS = {
    "System Modifications": "system_modifications",
    "Kernel/Driver Changes": "kernel_driver_changes",
    "Configuration Changes": "configuration_changes",
    "Removed Components": "removed_components",
}

# Build Information 表格属性 -> 字段名（build date 单独处理）
BUILD_INFO_FIELDS = {
    "build number": "build_number",
    "device": "device",
    "build type": "build_type",
    "android version": "android_version",
    "security patch": "security_patch",
    "kernel version": "kernel_version",
    "previous build": "previous_build",
}

_DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
]

_DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%Y%m%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%B %d, %Y",
    "%d %B %Y",
]


# ============================================================
# 解析状态
# ============================================================

@dataclass(frozen=True)
class ParserState:
    """
    行扫描状态

    Attributes:
        section: 最近的 "## " 标题
        subsection: 最近的 "### " 标题（遇到新的 "## " 时清空）
        table_row: 当前表格中已读取的行数（非表格行时归零）
        detail_index: 当前 "#### {app} Details" 指向的应用下标
        detail_cursor: 下一个详情块从哪个应用下标开始匹配
    """
    section: str = ""
    subsection: str = ""
    table_row: int = 0
    detail_index: Optional[int] = None
    detail_cursor: int = 0


# ============================================================
# 工具函数
# ============================================================

def parse_datetime(value: str) -> Optional[datetime]:
    """
    宽松地解析日期时间

    Args:
        value: 日期时间字符串

    Returns:
        datetime；无法解析时返回 None
    """
    value = value.strip()
    if not value:
        return None

    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass

    for fmt in _DATETIME_FORMATS + _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def parse_date(value: str) -> Optional[date]:
    """宽松地解析日期，无法解析时返回 None"""
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def split_table_row(line: str) -> list[str]:
    """
    拆分表格行

    只去掉首尾竖线外侧的空单元格，内部的空单元格保留，
    这样空列（如空的备注）不会导致后续列错位。
    """
    cells = [cell.strip() for cell in line.strip().split("|")]
    if cells and cells[0] == "":
        cells = cells[1:]
    if cells and cells[-1] == "":
        cells = cells[:-1]
    return cells


def clean_cell(content: str) -> str:
    """去掉 Markdown 格式（**、*、`）"""
    content = BOLD_PATTERN.sub("", content.strip())
    return content.replace("`", "").strip()


def _extract(pattern: re.Pattern, line: str) -> Optional[str]:
    match = pattern.search(line)
    return match.group(1).strip() if match else None


# ============================================================
# 各小节的处理函数
# ============================================================

def _parse_build_info_row(cells: list[str], project: BuildProject) -> None:
    if len(cells) < 2:
        return

    prop = clean_cell(cells[0]).lower()
    value = clean_cell(cells[1])

    if prop == "build date":
        parsed = parse_date(value)
        if parsed:
            project.build_date = parsed
        else:
            logger.debug(f"Skipping unparseable build date: {value!r}")
    elif prop in BUILD_INFO_FIELDS:
        setattr(project, BUILD_INFO_FIELDS[prop], value)


def _parse_file_row(cells: list[str], project: BuildProject) -> None:
    if len(cells) < 3:
        return
    project.files.append(BuildFile(
        file_name=clean_cell(cells[0]),
        file_size=clean_cell(cells[1]),
        sha256=clean_cell(cells[2]),
    ))


def _parse_app_update_row(cells: list[str], project: BuildProject) -> None:
    if len(cells) < 4:
        return
    project.app_updates.append(AppUpdate(
        app_name=clean_cell(cells[0]),
        path=clean_cell(cells[1]),
        version=clean_cell(cells[2]),
        changes=clean_cell(cells[3]),
        description=clean_cell(cells[4]) if len(cells) > 4 else "",
    ))


def _parse_known_issue_row(cells: list[str], project: BuildProject) -> None:
    if len(cells) < 4:
        return
    project.known_issues.append(KnownIssue(
        issue=clean_cell(cells[0]),
        severity=clean_cell(cells[1]),
        status=clean_cell(cells[2]),
        workaround=clean_cell(cells[3]),
    ))


def _parse_test_result_row(cells: list[str], project: BuildProject) -> None:
    if len(cells) < 3:
        return
    result = RESULT_EMOJI_PATTERN.sub("", clean_cell(cells[1])).strip()
    project.test_results.append(TestResult(
        test_name=clean_cell(cells[0]),
        result=result,
        notes=clean_cell(cells[2]),
    ))


# 表格小节：(section, subsection) -> (表头标识, 行处理函数)
TableHandler = Callable[[list[str], BuildProject], None]
TABLE_SECTIONS: dict[tuple[str, str], tuple[str, TableHandler]] = {
    ("Files", ""): ("file", _parse_file_row),
    ("Changelog", "App Updates"): ("app", _parse_app_update_row),
    ("Known Issues", ""): ("issue", _parse_known_issue_row),
    ("Testing Status", ""): ("test", _parse_test_result_row),
}


def _parse_table_line(line: str, state: ParserState, project: BuildProject) -> None:
    """处理一行表格（分隔行除外）"""
    cells = split_table_row(line)
    if not cells:
        return

    if state.section == "Build Information":
        _parse_build_info_row(cells, project)
        return

    key = (state.section, state.subsection if state.section == "Changelog" else "")
    if key not in TABLE_SECTIONS:
        return

    header_label, handler = TABLE_SECTIONS[key]
    # 表格第一行若包含表头关键字，视为表头
    if state.table_row == 0 and header_label in cells[0].lower():
        return
    handler(cells, project)


def _find_detail_app(name: str, state: ParserState, project: BuildProject) -> Optional[int]:
    """
    查找 "#### {name} Details" 对应的应用下标

    详情块按应用顺序出现，先从游标往后找同名应用；
    找不到时（手写文档顺序不一致）退回到最后一个同名应用。
    """
    apps = project.app_updates
    for index in range(state.detail_cursor, len(apps)):
        if apps[index].app_name == name:
            return index
    for index in reversed(range(len(apps))):
        if apps[index].app_name == name:
            return index
    logger.debug(f"Details for unknown app ignored: {name!r}")
    return None


def _parse_app_detail_line(line: str, state: ParserState, project: BuildProject) -> None:
    detail = line[2:].strip()
    if detail:
        project.app_updates[state.detail_index].details.append(detail)


def _parse_dependency_line(line: str, project: BuildProject) -> None:
    if "Bootloader Version" in line:
        value = _extract(BOOTLOADER_PATTERN, line)
        if value is not None:
            project.bootloader_version = value
    elif "Compatible OTA" in line:
        value = _extract(COMPATIBLE_OTA_PATTERN, line)
        if value is not None:
            project.compatible_ota_builds = value


def _parse_recommended_for_line(line: str, project: BuildProject) -> None:
    if "Internal Testing" in line:
        project.internal_testing = "[x]" in line
    elif "Customer Release" in line and "Specific" not in line:
        project.customer_release = "[x]" in line
    elif "Specific Customer" in line:
        value = _extract(SPECIFIC_CUSTOMER_PATTERN, line)
        if value is not None:
            project.specific_customer = value


def _parse_build_engineer_line(line: str, project: BuildProject) -> None:
    if "Built by" in line:
        value = _extract(BUILT_BY_PATTERN, line)
        if value is not None:
            project.built_by = value
    elif "Reviewed by" in line:
        value = _extract(REVIEWED_BY_PATTERN, line)
        if value is not None:
            project.reviewed_by = value
    elif "Approved for release" in line:
        value = _extract(APPROVED_PATTERN, line)
        approved = parse_date(value) if value else None
        if approved:
            project.approved_for_release_date = approved
        else:
            logger.debug(f"Skipping unparseable approval date: {value!r}")


# ============================================================
# 折叠
# ============================================================

def parse_line(state: ParserState, line: str, project: BuildProject) -> ParserState:
    """
    处理一行，返回新的状态

    Args:
        state: 当前状态
        line: 当前行（已去掉行尾 \\r）
        project: 累加结果的构建记录

    Returns:
        处理该行之后的状态
    """
    # 标题
    if line.startswith("## "):
        return ParserState(section=line[3:].strip())
    if line.startswith("### "):
        return replace(state, subsection=line[4:].strip(), table_row=0, detail_index=None)

    section, subsection = state.section, state.subsection
    is_table_row = line.startswith("|")

    # 发布说明原样保留，其中的表格行也不例外
    if section == "Customer Release Notes":
        if line.strip():
            project.customer_release_notes += line + "\n"

    elif is_table_row and "---" not in line:
        _parse_table_line(line, state, project)

    elif section == "Changelog" and subsection == "App Updates":
        match = APP_DETAILS_PATTERN.match(line)
        if match:
            index = _find_detail_app(clean_cell(match.group(1)), state, project)
            if index is None:
                return replace(state, table_row=0, detail_index=None)
            cursor = max(state.detail_cursor, index + 1)
            return replace(state, table_row=0, detail_index=index, detail_cursor=cursor)
        if line.startswith("- ") and state.detail_index is not None:
            _parse_app_detail_line(line, state, project)

    elif section == "Changelog" and subsection in CHANGELOG_TEXT_FIELDS:
        if line.startswith("- "):
            attr = CHANGELOG_TEXT_FIELDS[subsection]
            setattr(project, attr, getattr(project, attr) + line[2:].strip() + "\n")

    elif section == "Dependencies" and line.startswith("- "):
        _parse_dependency_line(line, project)

    elif section == "Recommended For":
        _parse_recommended_for_line(line, project)

    elif section == "Build Engineer" and line.startswith("- "):
        _parse_build_engineer_line(line, project)

    # 页脚可能出现在任何位置
    if line.startswith("*Last updated:"):
        value = _extract(LAST_UPDATED_PATTERN, line)
        parsed = parse_datetime(value) if value else None
        if parsed:
            project.last_updated = parsed

    return replace(state, table_row=state.table_row + 1 if is_table_row else 0)


def parse_markdown(content: str) -> BuildProject:
    """
    解析构建日志 Markdown

    Args:
        content: Markdown 内容

    Returns:
        BuildProject；内容无法识别时返回字段均为默认值的记录
    """
    project = BuildProject()
    # 表格会提供自己的测试项，清空默认项
    project.test_results.clear()

    state = ParserState()
    for raw_line in content.split("\n"):
        state = parse_line(state, raw_line.rstrip("\r"), project)

    for attr in CHANGELOG_TEXT_FIELDS.values():
        setattr(project, attr, getattr(project, attr).strip())
    project.customer_release_notes = project.customer_release_notes.strip()

    return project


def parse_file(file_path: Path | str) -> BuildProject:
    """
    解析 Markdown 文件

    Args:
        file_path: 文件路径

    Returns:
        BuildProject；文件不存在时返回默认记录（构建号为空）

    无法解码的字节替换为 U+FFFD，其余内容照常解析。

    Raises:
        OSError: 文件存在但无法读取
    """
    path = Path(file_path)
    if not path.is_file():
        return BuildProject()

    project = parse_markdown(path.read_text(encoding="utf-8", errors="replace"))
    project.project_file_path = str(path)
    return project
