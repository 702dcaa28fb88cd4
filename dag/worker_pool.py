"""
Worker Pool Scheduler - simulates N workers assembling the sleigh in lockstep.
工人池调度器 —— 模拟 N 个工人以锁步方式并行组装雪橇。

This is a discrete-time simulation, not real parallelism: workers are
bookkeeping slots advanced one tick (one second) at a time.
这是离散时间仿真，并非真正的并行：工人只是记账用的槽位，每次推进一个 tick（一秒）。

  Per tick:
    1. Decrement: every busy worker's remaining time drops by 1
    2. Complete:  workers reaching exactly 0 finish and become idle
    3. Retire:    finished steps are removed from the graph in one batch
    4. Assign:    idle workers, in slot order, take the smallest ready steps
    5. Advance:   the clock moves forward by 1

  每个 tick：
    1. 递减：所有忙碌工人的剩余时间减 1
    2. 完成：剩余时间恰好为 0 的工人完成任务并变为空闲
    3. 退役：已完成的步骤一次性批量从图中移除
    4. 分配：空闲工人按槽位顺序领取字母序最小的就绪步骤
    5. 推进：时钟前进 1

A step assigned at tick T with duration d finishes on tick T + d; it is never
decremented in the tick that assigned it.
在第 T 个 tick 分配、时长为 d 的步骤恰好在第 T + d 个 tick 完成；分配当拍不会被递减。
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from dag.duration import StepDuration
from dag.frontier import ready
from dag.graph import CycleDetectedError, TaskGraph
from dag.state_machine import TaskStateMachine
from schema import ScheduleResult, SchedulerConfig, TaskStatus, TickSnapshot, WorkerSlot

logger = logging.getLogger(__name__)


class WorkerPoolScheduler:
    """
    N-worker discrete-tick simulator producing the total elapsed time.
    N 工人离散 tick 仿真器，计算完成全部步骤的总耗时。
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        duration: Callable[[str], int] | None = None,
        on_event: Callable[[str, Any], None] | None = None,
        record_timeline: bool = False,
    ):
        """
        Args:
            config: Worker count, base duration and iteration cap.
                    Defaults to SchedulerConfig.production().
            duration: Optional duration function; defaults to
                      StepDuration(config.base_duration).
            on_event: Optional callback(event, data) for UI/logging.
            record_timeline: Collect one TickSnapshot per second.

            config:   工人数、基础时长与迭代上限，默认生产配置。
            duration: 可选的时长函数，默认 StepDuration(config.base_duration)。
            on_event: 可选事件回调 callback(事件名, 数据)。
            record_timeline: 是否逐秒记录工人时间线。
        """
        self._config = config or SchedulerConfig.production()
        self._duration = duration or StepDuration(self._config.base_duration)
        self._emit = on_event or (lambda *_: None)
        self._record_timeline = record_timeline
        self._sm = TaskStateMachine()

    # ------------------------------------------------------------------
    # Main simulation loop
    # 主仿真循环
    # ------------------------------------------------------------------

    def run(self, graph: TaskGraph) -> ScheduleResult:
        """
        Simulate the pool on a private copy of `graph` until every step is done.
        在 `graph` 的副本上运行仿真，直到所有步骤完成。
        """
        work = graph.copy()
        slots = [WorkerSlot(index=i) for i in range(self._config.worker_count)]
        # 单工人恰好用时 sum(durations)，无环输入不会触及该上限
        max_ticks = self._config.max_ticks or sum(self._duration(step) for step in work.task_ids())
        order: list[str] = []
        timeline: list[TickSnapshot] = []
        elapsed = 0

        self._sm.promote_ready(list(work))
        self._assign(work, slots, elapsed)
        self._snapshot(timeline, elapsed, slots, order)

        while not work.is_empty() or any(not slot.is_idle for slot in slots):
            if all(slot.is_idle for slot in slots):
                # 图未清空但没有任何工人在工作 —— 剩余步骤互相阻塞
                raise CycleDetectedError(
                    f"Workers idle at second {elapsed} with steps left: {''.join(work.task_ids())}",
                    blocked=work.task_ids(),
                )
            if elapsed >= max_ticks:
                raise CycleDetectedError(
                    f"Simulation exceeded {max_ticks} ticks; instructions likely contain a cycle",
                    blocked=work.task_ids(),
                )

            # --- 1-2. Decrement + complete ---
            # --- 1-2. 递减 + 完成 ---
            finished: list[str] = []
            for slot in slots:
                if slot.is_idle:
                    continue
                slot.remaining -= 1
                if slot.remaining == 0:
                    finished.append(slot.release())

            # --- 3. Retire in one batch ---
            # --- 3. 批量退役 ---
            for step in sorted(finished):
                self._sm.transition(work.get(step), TaskStatus.DONE)
                work.remove(step)
                order.append(step)
                self._emit("completed", {"step": step, "second": elapsed + 1})
            self._sm.promote_ready(list(work))

            # --- 4. Assign idle workers ---
            # --- 4. 为空闲工人分配任务 ---
            self._assign(work, slots, elapsed + 1)

            # --- 5. Advance the clock ---
            # --- 5. 推进时钟 ---
            elapsed += 1
            self._snapshot(timeline, elapsed, slots, order)
            self._emit("tick", {"second": elapsed, "workers": [slot.task_id for slot in slots]})

        logger.info(
            "[WorkerPool] %d workers finished %s in %d seconds",
            len(slots), "".join(order), elapsed,
        )
        return ScheduleResult(order="".join(order), elapsed=elapsed, timeline=timeline)

    def elapsed_time(self, graph: TaskGraph) -> int:
        """Total seconds until every step is complete."""
        return self.run(graph).elapsed

    # ------------------------------------------------------------------
    # Helpers
    # 辅助方法
    # ------------------------------------------------------------------

    def _assign(self, work: TaskGraph, slots: list[WorkerSlot], second: int) -> None:
        """
        Fill idle slots, in slot order, with the smallest unassigned ready steps.
        按槽位顺序，用字母序最小的未分配就绪步骤填充空闲工人。
        """
        running = [slot.task_id for slot in slots if not slot.is_idle]
        candidates = iter(ready(work, excluded=running))
        for slot in slots:
            if not slot.is_idle:
                continue
            step = next(candidates, None)
            if step is None:
                break
            duration = self._duration(step)
            if duration < 1:
                raise ValueError(f"Duration of step {step!r} must be >= 1, got {duration}")
            task = work.get(step)
            self._sm.transition(task, TaskStatus.RUNNING)
            slot.assign(step, duration)
            logger.debug("[WorkerPool] t=%d worker %d <- %s (%ds)", second, slot.index, step, duration)
            self._emit("assigned", {"step": step, "worker": slot.index, "second": second, "duration": duration})

    def _snapshot(
        self,
        timeline: list[TickSnapshot],
        second: int,
        slots: list[WorkerSlot],
        order: list[str],
    ) -> None:
        if self._record_timeline:
            timeline.append(TickSnapshot(
                second=second,
                workers=[slot.task_id for slot in slots],
                done="".join(order),
            ))
