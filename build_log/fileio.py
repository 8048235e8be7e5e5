"""
文件写入工具

所有导出都是整文件覆盖：先写入同目录下的临时文件，再原子替换目标文件，
写入中途失败不会留下半截文件。
"""

import os
import tempfile
from pathlib import Path


def write_atomic(path: Path | str, data: str | bytes) -> Path:
    """
    原子地写入文件

    Args:
        path: 目标路径
        data: 文本（按 UTF-8 写入）或字节

    Returns:
        目标路径

    Raises:
        OSError: 写入或替换失败
    """
    path = Path(path)
    payload = data.encode("utf-8") if isinstance(data, str) else data

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    return path
