"""
Pydantic data models for the sleigh scheduler.
Defines the core data structures shared by the parser, graph and schedulers.
雪橇调度器的 Pydantic 数据模型。
定义了贯穿 parser、graph、scheduler 各层的核心数据结构。
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

import config


# ======================================================================
# Input models
# 输入模型
# ======================================================================

class Constraint(BaseModel):
    """
    One "must be finished before" instruction: `prerequisite` -> `dependent`.
    一条「必须先完成」约束：`prerequisite` 完成后 `dependent` 才能开始。
    """
    prerequisite: str = Field(description="Step that must finish first")  # 前置步骤
    dependent: str = Field(description="Step that waits for it")          # 依赖步骤

    def as_pair(self) -> tuple[str, str]:
        return self.prerequisite, self.dependent


# ======================================================================
# Graph models
# 图模型
# ======================================================================

class TaskStatus(str, Enum):
    """
    Task lifecycle states, managed by TaskStateMachine.
    任务生命周期状态，由 TaskStateMachine 强制管理合法转移。

    Transition graph:
    转移图：
        PENDING -> READY -> RUNNING -> DONE
                         -> DONE            (sequential scheduler, zero-duration completion)
    """
    PENDING = "pending"   # 等待前置步骤完成
    READY = "ready"       # 前置已全部完成，等待分配
    RUNNING = "running"   # 已分配给工人，正在倒计时
    DONE = "done"         # 已完成（终态）


class Task(BaseModel):
    """
    A single step in the instruction graph.
    指令图中的单个步骤。

    `handle` is the task's stable index in the graph arena (first-seen order).
    `handle` 是任务在图 arena 中的稳定整数索引（按首次出现顺序分配）。
    """
    id: str = Field(description="Single-symbol step identifier, e.g. 'C'")
    handle: int = Field(default=0, ge=0)
    prerequisites: set[str] = Field(default_factory=set)  # 尚未完成的前置步骤
    dependents: set[str] = Field(default_factory=set)     # 等待本步骤的后继步骤
    status: TaskStatus = TaskStatus.PENDING


# ======================================================================
# Simulation models
# 仿真模型
# ======================================================================

class WorkerSlot(BaseModel):
    """
    One simulated worker. `task_id is None` means the worker is idle.
    一个模拟工人。`task_id is None` 表示空闲。
    """
    index: int
    task_id: str | None = None
    remaining: int = 0

    @property
    def is_idle(self) -> bool:
        return self.task_id is None

    def assign(self, task_id: str, duration: int) -> None:
        self.task_id = task_id
        self.remaining = duration

    def release(self) -> str | None:
        task_id, self.task_id, self.remaining = self.task_id, None, 0
        return task_id


class TickSnapshot(BaseModel):
    """
    One row of the worker timeline: who is working at the start of `second`.
    工人时间线的一行：第 `second` 秒开始时每个工人在做什么。
    """
    second: int
    workers: list[str | None]
    done: str = ""

    def render_workers(self) -> list[str]:
        return [w if w is not None else "." for w in self.workers]


class ScheduleResult(BaseModel):
    """
    Outcome of a scheduler run.
    一次调度运行的结果。
    """
    order: str = ""                                                 # 完成顺序
    elapsed: int = 0                                                # 总耗时（tick 数）
    timeline: list[TickSnapshot] = Field(default_factory=list)      # 仅在 record_timeline=True 时填充


class SchedulerConfig(BaseModel):
    """
    Worker pool configuration. Production and calibration presets are
    provided as factories.
    工人池配置，提供 production / calibration 两种预设。
    """
    worker_count: int = Field(default=5, ge=1, description="Number of concurrent worker slots")
    base_duration: int = Field(default=60, ge=0, description="Constant added to every task duration")
    max_ticks: int | None = Field(default=None, ge=1, description="Iteration cap; None derives it from the graph")

    @classmethod
    def production(cls) -> SchedulerConfig:
        return cls(
            worker_count=config.WORKER_COUNT,
            base_duration=config.BASE_DURATION,
            max_ticks=config.MAX_TICKS or None,
        )

    @classmethod
    def calibration(cls) -> SchedulerConfig:
        """Settings of the worked example: 2 workers, A=1 ... Z=26."""
        return cls(
            worker_count=config.CALIBRATION_WORKER_COUNT,
            base_duration=config.CALIBRATION_BASE_DURATION,
        )
