"""
CLI Layer - 命令行接口层

提供 buildlog 命令行入口。
"""

from build_log.cli.app import app, configure_logging, version

__all__ = [
    "app",
    "configure_logging",
    "version",
]
