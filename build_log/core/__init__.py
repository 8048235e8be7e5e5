"""
Core Layer - 核心层

包含数据模型、Markdown 生成器/解析器、产物扫描器和验证器。
"""

from build_log.core.models import (
    BuildProject,
    BuildFile,
    AppUpdate,
    KnownIssue,
    TestResult,
    BUILD_TYPE_OPTIONS,
    SEVERITY_OPTIONS,
    STATUS_OPTIONS,
    RESULT_OPTIONS,
    SEEDED_TESTS,
    HASH_PLACEHOLDER,
)
from build_log.core.generator import generate_markdown
from build_log.core.parser import (
    parse_markdown,
    parse_file,
    parse_date,
    parse_datetime,
)
from build_log.core.scanner import (
    ParsedFileName,
    format_file_size,
    scan_directory,
    parse_filename,
    get_unique_build_identifiers,
    create_project_from_files,
    compute_sha256,
)
from build_log.core.validator import (
    Validator,
    Issue,
    ValidationResult,
    validate_project,
    missing_fields,
    is_valid,
)

__all__ = [
    # models
    "BuildProject",
    "BuildFile",
    "AppUpdate",
    "KnownIssue",
    "TestResult",
    "BUILD_TYPE_OPTIONS",
    "SEVERITY_OPTIONS",
    "STATUS_OPTIONS",
    "RESULT_OPTIONS",
    "SEEDED_TESTS",
    "HASH_PLACEHOLDER",
    # generator / parser
    "generate_markdown",
    "parse_markdown",
    "parse_file",
    "parse_date",
    "parse_datetime",
    # scanner
    "ParsedFileName",
    "format_file_size",
    "scan_directory",
    "parse_filename",
    "get_unique_build_identifiers",
    "create_project_from_files",
    "compute_sha256",
    # validator
    "Validator",
    "Issue",
    "ValidationResult",
    "validate_project",
    "missing_fields",
    "is_valid",
]
