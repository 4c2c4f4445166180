# hornschunck_flow/core/scheduler.py

from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Tuple

from .errors import InvalidArgument


class RowBandScheduler:
    """
    行带调度器：把 [min_y, max_y) 切成至多 rows_per_unit 行的连续行带，
    每个行带提交一个并发任务，全部完成后才返回（fork-join）。

    行带互不相交且覆盖全部行。各行带之间不读写彼此的输出，
    因此执行顺序不影响结果；返回前的屏障是正确性所必需的。
    """

    def __init__(self, rows_per_unit: int = 1, max_workers: Optional[int] = None):
        if rows_per_unit < 1:
            raise InvalidArgument(f"rows_per_unit 必须 >= 1，得到 {rows_per_unit}")
        self.rows_per_unit = rows_per_unit
        self.max_workers = max_workers or None
        self._executor: Optional[ThreadPoolExecutor] = None

    def bands(self, min_y: int, max_y: int) -> List[Tuple[int, int]]:
        result = []
        lower = min_y
        while lower < max_y:
            upper = min(lower + self.rows_per_unit, max_y)
            result.append((lower, upper))
            lower = upper
        return result

    def run(self, min_y: int, max_y: int, work: Callable[[int, int], None]):
        """对每个行带调用 work(lo, hi)，阻塞直到全部完成；任一任务出错即整体中止并抛出。"""
        bands = self.bands(min_y, max_y)
        if not bands:
            return
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                                thread_name_prefix="row-band")
        futures = [self._executor.submit(work, lo, hi) for lo, hi in bands]
        wait(futures)
        for future in futures:
            future.result()

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()


def run_row_bands(scheduler: Optional[RowBandScheduler], min_y: int, max_y: int,
                  work: Callable[[int, int], None]):
    """用给定调度器执行一个阶段；未提供时临时创建一个默认调度器（每行一个任务）。"""
    if scheduler is not None:
        scheduler.run(min_y, max_y, work)
        return
    with RowBandScheduler() as temporary:
        temporary.run(min_y, max_y, work)
