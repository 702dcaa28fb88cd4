"""
Task State Machine - the lifecycle of one sleigh-kit step.
任务状态机 —— 单个雪橇组装步骤的生命周期。

A step waits on its prerequisites (PENDING), becomes startable once the last
one is retired (READY), is held by a worker while its clock runs down
(RUNNING), and is finally retired from the graph (DONE). The sequential
scheduler completes a step the instant it picks it, so it goes READY -> DONE.
步骤先等待前置完成（PENDING），最后一个前置退役后可以开始（READY），
被工人领取后倒计时（RUNNING），最终从图中退役（DONE）。
顺序调度器选中即完成，因此直接 READY -> DONE。

    PENDING ──> READY ──> RUNNING ──> DONE   (worker pool / 工人池)
                      ──────────────> DONE   (sequential / 顺序调度)
"""

from __future__ import annotations

import logging
from typing import Callable

from schema import Task, TaskStatus

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """A step was moved out of order, e.g. handed to a worker before it was READY."""
    pass


VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.READY},
    TaskStatus.READY:   {TaskStatus.RUNNING, TaskStatus.DONE},
    TaskStatus.RUNNING: {TaskStatus.DONE},
    TaskStatus.DONE:    set(),
}


class TaskStateMachine:
    """
    Moves steps through their lifecycle for both schedulers.
    为两种调度器推进步骤的生命周期。

    A step is only ever in one status, so "waiting", "startable" and "on a
    worker" can't disagree the way separate ready/processing collections could.
    每个步骤任一时刻只有一种状态，不会像分散的就绪列表/处理中映射那样出现不一致。
    """

    def __init__(self, on_transition: Callable[[str, TaskStatus, TaskStatus], None] | None = None):
        """
        Args:
            on_transition: Optional callback(step, old_status, new_status).
            on_transition: 可选回调 callback(步骤, 旧状态, 新状态)。
        """
        self._on_transition = on_transition

    def can_transition(self, task: Task, new_status: TaskStatus) -> bool:
        return new_status in VALID_TRANSITIONS.get(task.status, set())

    def transition(self, task: Task, new_status: TaskStatus) -> None:
        """
        Move `task` to `new_status`; out-of-order moves raise InvalidTransitionError.
        将 `task` 推进到 `new_status`；顺序错误时抛出 InvalidTransitionError。
        """
        if not self.can_transition(task, new_status):
            allowed = sorted(s.value for s in VALID_TRANSITIONS.get(task.status, set()))
            raise InvalidTransitionError(
                f"Step '{task.id}' is {task.status.value} and cannot become {new_status.value} "
                f"(allowed: {', '.join(allowed) or 'none'})"
            )

        old_status = task.status
        task.status = new_status
        logger.debug("[SM] %s: %s -> %s", task.id, old_status.value, new_status.value)

        if self._on_transition:
            self._on_transition(task.id, old_status, new_status)

    def promote_ready(self, tasks: list[Task]) -> None:
        """
        Mark every waiting step whose prerequisites have all been retired as READY.
        将前置已全部退役的等待步骤标记为 READY。
        """
        for task in tasks:
            if task.status == TaskStatus.PENDING and not task.prerequisites:
                self.transition(task, TaskStatus.READY)
