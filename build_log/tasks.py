"""
后台任务执行器

耗时操作（加载工作区、计算哈希、生成 PDF）在单个后台线程中执行，
完成回调排队后由交互线程通过 process_pending() 执行，
因此绑定到界面的状态只会在交互线程中被修改。

不支持取消和超时：任务要么运行完成，要么失败。
"""

import concurrent.futures
import functools
import logging
import queue
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]


class TaskRunner:
    """单工作线程的任务执行器"""

    def __init__(self, max_workers: int = 1):
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="build-log-worker",
        )
        self._pending: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> concurrent.futures.Future:
        """
        在后台线程执行 fn

        回调在任务返回前入队，所以 future 完成后回调一定已经可以被处理。

        Args:
            fn: 要执行的函数
            *args: 参数
            on_success: 成功回调（在交互线程执行）
            on_error: 失败回调（在交互线程执行）

        Returns:
            Future
        """
        def _task() -> Any:
            try:
                result = fn(*args)
            except Exception as e:
                logger.debug(f"Background task {getattr(fn, '__name__', fn)} failed: {e}")
                if on_error is not None:
                    self._pending.put(functools.partial(on_error, e))
                raise
            if on_success is not None:
                self._pending.put(functools.partial(on_success, result))
            return result

        return self._executor.submit(_task)

    def process_pending(self) -> int:
        """
        在当前（交互）线程执行所有已排队的回调

        Returns:
            执行的回调数量
        """
        count = 0
        while True:
            try:
                callback = self._pending.get_nowait()
            except queue.Empty:
                return count
            callback()
            count += 1

    def wait(self, future: Optional[concurrent.futures.Future]) -> int:
        """
        等待任务结束并处理回调

        任务本身的异常已经交给 on_error，这里不会再次抛出。
        """
        if future is not None:
            concurrent.futures.wait([future])
        return self.process_pending()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
        self.process_pending()
