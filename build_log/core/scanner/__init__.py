"""
Scanner 模块 - 扫描工作区中的构建产物

模块化结构：
- patterns.py: 文件名正则和常量
- core.py: 扫描、文件名解析、按标识分组
- hashing.py: SHA256 计算（后台线程调用）
"""

from build_log.core.scanner.patterns import (
    FILENAME_PATTERN,
    ARTIFACT_EXTENSIONS,
)
from build_log.core.scanner.core import (
    ParsedFileName,
    format_file_size,
    scan_directory,
    parse_filename,
    get_unique_build_identifiers,
    create_project_from_files,
)
from build_log.core.scanner.hashing import (
    compute_sha256,
    compute_sha256_many,
)

__all__ = [
    # Patterns
    "FILENAME_PATTERN",
    "ARTIFACT_EXTENSIONS",
    # Core
    "ParsedFileName",
    "format_file_size",
    "scan_directory",
    "parse_filename",
    "get_unique_build_identifiers",
    "create_project_from_files",
    # Hashing
    "compute_sha256",
    "compute_sha256_many",
]
