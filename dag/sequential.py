"""
Sequential Scheduler - one step at a time, smallest ready step first.
顺序调度器 —— 一次完成一个步骤，就绪步骤中字母序最小者优先。
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from dag.frontier import ready
from dag.graph import CycleDetectedError, TaskGraph
from dag.state_machine import TaskStateMachine
from schema import ScheduleResult, TaskStatus

logger = logging.getLogger(__name__)


class SequentialScheduler:
    """
    Single-worker greedy scheduler.
    单工人贪心调度器。

    Each round:
      1. Compute the ready frontier
      2. Stop if it is empty
      3. Take the lexicographically smallest ready step
      4. Remove it from the graph (unblocking its dependents)
      5. Append it to the completion order

    每一轮：
      1. 计算就绪前沿
      2. 前沿为空则结束
      3. 选取字母序最小的就绪步骤
      4. 将其从图中移除（解除后继的阻塞）
      5. 追加到完成顺序
    """

    def __init__(self, on_event: Callable[[str, Any], None] | None = None):
        self._emit = on_event or (lambda *_: None)
        self._sm = TaskStateMachine()

    def run(self, graph: TaskGraph) -> ScheduleResult:
        """Schedule a private copy of `graph`; the caller's graph is untouched."""
        work = graph.copy()
        order: list[str] = []

        while True:
            frontier = ready(work)
            if not frontier:
                break
            step = frontier[0]
            task = work.get(step)
            self._sm.transition(task, TaskStatus.READY)
            self._sm.transition(task, TaskStatus.DONE)
            work.remove(step)
            order.append(step)
            self._emit("completed", {"step": step, "order": "".join(order)})

        if not work.is_empty():
            raise CycleDetectedError(
                f"No ready steps after {''.join(order) or 'nothing'}; "
                f"remaining steps form a cycle: {''.join(work.task_ids())}",
                blocked=work.task_ids(),
            )

        result = ScheduleResult(order="".join(order))
        logger.info("[Sequential] Completion order: %s", result.order)
        return result

    def order(self, graph: TaskGraph) -> str:
        """Completion order as a string, e.g. 'CABDFE'."""
        return self.run(graph).order
