# hornschunck_flow/timer.py

import time
from contextlib import contextmanager
from typing import Dict

class SimpleTimer:
    """按名稱累計各計算階段（導數、Jacobi 掃描、幅值、輸出）的耗時。"""
    def __init__(self):
        self.totals: Dict[str, float] = {}
        self.counts: Dict[str, int] = {}
        self.start_times: Dict[str, float] = {}

    def start(self, name: str):
        self.start_times[name] = time.perf_counter()

    def stop(self, name: str) -> float:
        """停止計時並累加；未啟動的名稱返回 0。"""
        if name not in self.start_times:
            return 0.0
        elapsed = time.perf_counter() - self.start_times.pop(name)
        self.totals[name] = self.totals.get(name, 0.0) + elapsed
        self.counts[name] = self.counts.get(name, 0) + 1
        return elapsed

    @contextmanager
    def record(self, name: str):
        """使用 'with' 語句計時；區塊拋出例外時同樣記錄。"""
        self.start(name)
        try:
            yield
        finally:
            self.stop(name)

    def summary(self) -> Dict[str, Dict[str, float]]:
        return {
            name: {'total': total, 'count': self.counts[name], 'mean': total / self.counts[name]}
            for name, total in self.totals.items()
        }

    def report(self):
        print("\n--- 計時器分析報告 ---")
        summary = self.summary()
        if not summary:
            print("沒有任何計時記錄。")
            return
        # 按照總耗時排序
        for name, entry in sorted(summary.items(), key=lambda item: item[1]['total'], reverse=True):
            print(f"[{name}]: 總耗時 {entry['total']:.4f} 秒 / {entry['count']} 次 (平均 {entry['mean']:.4f} 秒/次)")
        print("------------------------\n")
