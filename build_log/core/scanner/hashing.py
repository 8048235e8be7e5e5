"""
文件哈希计算

大文件计算 SHA256 耗时较长，调用方必须在后台线程中调用这些函数。
"""

import concurrent.futures
import hashlib
import logging
from pathlib import Path

from build_log.core.models import HASH_PLACEHOLDER

logger = logging.getLogger(__name__)

# 默认读取块大小 (1MB)
DEFAULT_CHUNK_SIZE = 1024 * 1024


def compute_sha256(path: Path | str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """
    计算文件的 SHA256

    Args:
        path: 文件路径
        chunk_size: 每次读取的字节数

    Returns:
        小写十六进制摘要；文件不存在时返回 "-"
    """
    path = Path(path)
    if not path.is_file():
        return HASH_PLACEHOLDER

    digest = hashlib.sha256()
    with path.open("rb") as f:
        while chunk := f.read(chunk_size):
            digest.update(chunk)
    return digest.hexdigest()


def compute_sha256_many(
    paths: list[Path | str],
    max_workers: int = 4,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> dict[str, str]:
    """
    并行计算多个文件的 SHA256

    Args:
        paths: 文件路径列表
        max_workers: 线程数
        chunk_size: 每次读取的字节数

    Returns:
        路径字符串 -> 摘要 的映射
    """
    results: dict[str, str] = {}
    if not paths:
        return results

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_path = {
            executor.submit(compute_sha256, path, chunk_size): str(path)
            for path in paths
        }
        for future in concurrent.futures.as_completed(future_to_path):
            path = future_to_path[future]
            results[path] = future.result()
            logger.debug(f"SHA256 {path}: {results[path]}")

    return results
