"""
配置模块 - 从 TOML 文件加载工具配置

查找顺序：
1. 显式指定的路径（--config）
2. 当前目录下的 buildlog.toml
3. 内置默认值

配置项位于 [buildlog] 表下，例如：

    [buildlog]
    workspace = "/data/images"
    preview_dpi = 200
"""

import logging
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

from build_log.errors import ConfigError

logger = logging.getLogger(__name__)

# 默认配置文件名
CONFIG_FILE_NAME = "buildlog.toml"

# 配置表名
CONFIG_TABLE = "buildlog"


@dataclass
class DashboardConfig:
    """
    工具配置

    Attributes:
        workspace: 默认工作区目录
        preview_dpi: PDF 预览图分辨率
        hash_chunk_size: 计算 SHA256 时的读取块大小（字节）
        hash_workers: 并行计算哈希的线程数
        artifact_extensions: 视为构建产物的扩展名
        markdown_patterns: 加载工作区时解析的 Markdown 文件模式
    """
    workspace: Optional[Path] = None
    preview_dpi: int = 150
    hash_chunk_size: int = 1024 * 1024
    hash_workers: int = 4
    artifact_extensions: tuple[str, ...] = (".zip", ".json")
    markdown_patterns: tuple[str, ...] = ("README*.md", "BUILD_LOG*.md")


# 各配置项期望的 TOML 类型
_EXPECTED_TYPES: dict[str, type] = {
    "workspace": str,
    "preview_dpi": int,
    "hash_chunk_size": int,
    "hash_workers": int,
    "artifact_extensions": list,
    "markdown_patterns": list,
}


def _coerce(name: str, value: Any) -> Any:
    """把 TOML 值转换为配置字段类型"""
    expected = _EXPECTED_TYPES[name]
    # bool 是 int 的子类，需要单独排除
    if not isinstance(value, expected) or isinstance(value, bool):
        raise ConfigError(
            f"Invalid value for '{name}': expected {expected.__name__}, got {type(value).__name__}"
        )

    if name == "workspace":
        return Path(value).expanduser()
    if expected is list:
        if not all(isinstance(item, str) for item in value):
            raise ConfigError(f"Invalid value for '{name}': expected a list of strings")
        return tuple(value)
    if value <= 0:
        raise ConfigError(f"Invalid value for '{name}': must be positive")
    return value


def config_from_dict(data: dict[str, Any]) -> DashboardConfig:
    """
    从字典构建配置

    Args:
        data: [buildlog] 表的内容

    Returns:
        DashboardConfig 对象

    Raises:
        ConfigError: 配置值类型错误
    """
    known = {f.name for f in fields(DashboardConfig)}
    values: dict[str, Any] = {}

    for name, value in data.items():
        if name not in known:
            logger.warning(f"Ignoring unknown config key: {name}")
            continue
        values[name] = _coerce(name, value)

    if "artifact_extensions" in values:
        values["artifact_extensions"] = tuple(
            ext if ext.startswith(".") else f".{ext}"
            for ext in values["artifact_extensions"]
        )

    return DashboardConfig(**values)


def load_config(path: Optional[Path] = None) -> DashboardConfig:
    """
    加载配置

    Args:
        path: 配置文件路径；为 None 时查找当前目录下的 buildlog.toml

    Returns:
        DashboardConfig 对象

    Raises:
        ConfigError: 指定的文件不存在，或内容不是合法 TOML
    """
    if path is None:
        candidate = Path.cwd() / CONFIG_FILE_NAME
        if not candidate.is_file():
            return DashboardConfig()
        path = candidate
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        content = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e

    logger.debug(f"Loaded config from {path}")
    table = content.get(CONFIG_TABLE, {})
    if not isinstance(table, dict):
        raise ConfigError(f"[{CONFIG_TABLE}] must be a table in {path}")
    return config_from_dict(table)
