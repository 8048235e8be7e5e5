"""
核心扫描函数

扫描工作区目录中的构建产物，解析文件名并按构建标识分组。
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from build_log.core.models import BuildFile, BuildProject, HASH_PLACEHOLDER
from build_log.core.scanner.patterns import (
    ARTIFACT_EXTENSIONS,
    FILENAME_DATE_FORMAT,
    FILENAME_PATTERN,
    SIZE_UNITS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedFileName:
    """
    解析后的产物文件名

    Attributes:
        device: 设备名（如 gpn600_001）
        build_number: 构建号（如 AAL-AA-07009-01）
        date: 日期 YYYYMMDD
        time: 时间（纯数字）
    """
    device: str
    build_number: str
    date: str
    time: str

    @property
    def identifier(self) -> str:
        """构建标识：{build_number}.{date}.{time}"""
        return f"{self.build_number}.{self.date}.{self.time}"


def format_file_size(size_bytes: int) -> str:
    """
    格式化文件大小

    每次除以 1024 直到小于 1024，保留最多两位小数并去掉末尾的 0。

    Args:
        size_bytes: 字节数

    Returns:
        可读字符串，如 "0 B"、"1.5 KB"、"1 MB"
    """
    order = 0
    size = float(size_bytes)

    while size >= 1024 and order < len(SIZE_UNITS) - 1:
        order += 1
        size /= 1024

    text = f"{size:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[order]}"


def _is_artifact(path: Path, extensions: tuple[str, ...]) -> bool:
    """判断是否为构建产物（扩展名不区分大小写）"""
    suffix = path.suffix.lower()
    return path.is_file() and suffix in {ext.lower() for ext in extensions}


def _list_artifacts(directory: Path, extensions: tuple[str, ...]) -> list[Path]:
    """列出目录下（不递归）的构建产物，按文件名排序"""
    if not directory.is_dir():
        return []
    return sorted(
        (p for p in directory.iterdir() if _is_artifact(p, extensions)),
        key=lambda p: p.name,
    )


def scan_directory(
    directory: Path | str,
    extensions: tuple[str, ...] = ARTIFACT_EXTENSIONS,
) -> list[BuildFile]:
    """
    扫描目录中的构建产物

    Args:
        directory: 工作区目录
        extensions: 产物扩展名

    Returns:
        BuildFile 列表；目录不存在时返回空列表
    """
    directory = Path(directory)
    files: list[BuildFile] = []

    for path in _list_artifacts(directory, extensions):
        try:
            size = path.stat().st_size
        except OSError as e:
            logger.warning(f"Failed to stat {path}: {e}")
            continue
        files.append(BuildFile(
            file_name=path.name,
            file_size=format_file_size(size),
            sha256=HASH_PLACEHOLDER,
            full_path=str(path.resolve()),
        ))

    return files


def parse_filename(file_name: str) -> Optional[ParsedFileName]:
    """
    解析产物文件名

    Args:
        file_name: 文件名（不含目录）

    Returns:
        ParsedFileName；不匹配时返回 None
    """
    match = FILENAME_PATTERN.match(file_name)
    if not match:
        return None

    return ParsedFileName(
        device=match.group("device"),
        build_number=match.group("build_number"),
        date=match.group("date"),
        time=match.group("time"),
    )


def get_unique_build_identifiers(
    directory: Path | str,
    extensions: tuple[str, ...] = ARTIFACT_EXTENSIONS,
) -> list[str]:
    """
    获取目录中所有唯一的构建标识

    Args:
        directory: 工作区目录
        extensions: 产物扩展名

    Returns:
        去重后按字典序降序排列的标识列表（即最新的在前）
    """
    identifiers: set[str] = set()

    for path in _list_artifacts(Path(directory), extensions):
        parsed = parse_filename(path.name)
        if parsed is None:
            logger.debug(f"Skipping file with unrecognized name: {path.name}")
            continue
        identifiers.add(parsed.identifier)

    return sorted(identifiers, reverse=True)


def create_project_from_files(
    directory: Path | str,
    identifier: str,
    extensions: tuple[str, ...] = ARTIFACT_EXTENSIONS,
) -> BuildProject:
    """
    根据构建标识从产物文件创建构建记录

    设备名转换：gpn600_001 -> GPN600-001（大写，下划线改为连字符）。
    构建号设为完整标识 {build_number}.{date}.{time}。

    Args:
        directory: 工作区目录
        identifier: 构建标识
        extensions: 产物扩展名

    Returns:
        BuildProject；没有匹配文件时返回默认记录（构建号为空）
    """
    project = BuildProject()

    matching: list[tuple[BuildFile, ParsedFileName]] = []
    for build_file in scan_directory(directory, extensions):
        parsed = parse_filename(build_file.file_name)
        if parsed is not None and parsed.identifier == identifier:
            matching.append((build_file, parsed))

    if not matching:
        return project

    _, first = matching[0]
    project.device = first.device.replace("_", "-").upper()
    project.build_number = first.identifier
    try:
        project.build_date = datetime.strptime(first.date, FILENAME_DATE_FORMAT).date()
    except ValueError:
        logger.debug(f"Invalid date in file name: {first.date}")

    project.files.extend(build_file for build_file, _ in matching)
    project.is_auto_completed = True
    return project
