from __future__ import annotations

import time


class BudgetTimer:
    """Wall-clock timer for one analysis run.

    The budget is advisory: an overrun is reported, the result is still returned.
    """

    def __init__(self, time_budget_ms: int | None = None) -> None:
        self.time_budget_ms = time_budget_ms
        self.started_at = time.perf_counter()

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000.0

    def exceeded(self) -> bool:
        if self.time_budget_ms is None:
            return False
        return self.elapsed_ms() > float(self.time_budget_ms)

    def overrun_ms(self) -> float:
        if self.time_budget_ms is None:
            return 0.0
        return max(0.0, self.elapsed_ms() - float(self.time_budget_ms))
