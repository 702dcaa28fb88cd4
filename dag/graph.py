"""
TaskGraph - Directed Acyclic Graph of instruction steps.
TaskGraph —— 指令步骤的有向无环图。

The TaskGraph holds:
  - an arena of Task records, indexed by a stable integer handle
  - an id -> handle index of the tasks that are still in the graph
  - an indegree counter per handle, kept in sync with `prerequisites`

TaskGraph 包含：
  - Task 记录的 arena，按稳定的整数 handle 索引
  - 仍在图中的任务 id -> handle 索引
  - 每个 handle 的入度计数，与 `prerequisites` 保持同步

Key operations:
  - from_constraints(): build the graph from (prerequisite, dependent) pairs
  - remove():           retire a completed task, unblocking its dependents
  - topological_sort(): Kahn's algorithm with alphabetical tie-break
  - critical_path_length(): duration-weighted longest path

核心操作：
  - from_constraints():      由（前置, 后继）约束对构建图
  - remove():                移除已完成的任务，解除其后继的阻塞
  - topological_sort():      Kahn 算法，按字母序打破平局
  - critical_path_length():  按时长加权的最长路径（关键路径）
"""

from __future__ import annotations

import heapq
import logging
from typing import Callable, Iterable, Iterator, Union

from schema import Constraint, Task, TaskStatus

logger = logging.getLogger(__name__)

Pair = Union[Constraint, tuple[str, str]]


class CycleDetectedError(Exception):
    """
    Raised when the instructions contain a cycle, so some steps can never start.
    当指令中存在环、导致部分步骤永远无法开始时抛出。
    """

    def __init__(self, message: str, blocked: Iterable[str] = ()):
        super().__init__(message)
        self.blocked = sorted(blocked)


class TaskGraph:
    """
    Instruction graph with per-task prerequisite/dependent sets.
    带有前置/后继集合的指令图。

    The graph only shrinks: tasks are removed once they complete, and
    removal strips them from every neighbour's sets.
    图只会收缩：任务完成后被移除，并从所有相邻任务的集合中剔除。
    """

    def __init__(self) -> None:
        self._arena: list[Task] = []          # handle -> Task（移除后仍保留，handle 永不复用）
        self._index: dict[str, int] = {}      # 仍在图中的任务：id -> handle
        self._indegree: list[int] = []        # handle -> 剩余前置数

    # ------------------------------------------------------------------
    # Construction
    # 构建
    # ------------------------------------------------------------------

    @classmethod
    def from_constraints(cls, pairs: Iterable[Pair], validate: bool = False) -> TaskGraph:
        """
        Build a graph from ordered (prerequisite, dependent) pairs.
        由有序的（前置, 后继）约束对构建图。

        Duplicate pairs are idempotent. Acyclicity is a precondition; pass
        `validate=True` to check it up front and raise CycleDetectedError.
        重复约束是幂等的。无环是前置条件；传入 validate=True 会预先校验并抛出 CycleDetectedError。
        """
        graph = cls()
        count = 0
        for pair in pairs:
            prerequisite, dependent = pair.as_pair() if isinstance(pair, Constraint) else pair
            graph.add_edge(prerequisite, dependent)
            count += 1

        logger.info("[Graph] Built %s from %d constraints", graph.summary(), count)
        if validate:
            graph.check_acyclic()
        return graph

    def add_task(self, task_id: str) -> Task:
        """Return the task for `task_id`, creating it if needed."""
        handle = self._index.get(task_id)
        if handle is not None:
            return self._arena[handle]
        task = Task(id=task_id, handle=len(self._arena))
        self._arena.append(task)
        self._indegree.append(0)
        self._index[task_id] = task.handle
        return task

    def add_edge(self, prerequisite: str, dependent: str) -> None:
        """
        Record that `prerequisite` must finish before `dependent` can begin.
        记录 `prerequisite` 必须在 `dependent` 开始前完成。
        """
        before = self.add_task(prerequisite)
        after = self.add_task(dependent)
        if prerequisite in after.prerequisites:
            logger.debug("[Graph] Edge %s -> %s already exists, skipping", prerequisite, dependent)
            return
        before.dependents.add(dependent)
        after.prerequisites.add(prerequisite)
        self._indegree[after.handle] += 1

    # ------------------------------------------------------------------
    # Queries
    # 查询
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> dict[str, Task]:
        """Tasks still in the graph, keyed by id."""
        return {task_id: self._arena[handle] for task_id, handle in self._index.items()}

    def get(self, task_id: str) -> Task:
        return self._arena[self._index[task_id]]

    def task_ids(self) -> list[str]:
        return sorted(self._index)

    def indegree(self, task_id: str) -> int:
        return self._indegree[self._index[task_id]]

    def is_empty(self) -> bool:
        return not self._index

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._index

    def __iter__(self) -> Iterator[Task]:
        for handle in self._index.values():
            yield self._arena[handle]

    # ------------------------------------------------------------------
    # Mutation
    # 变更
    # ------------------------------------------------------------------

    def remove(self, task_id: str) -> Task:
        """
        Retire `task_id`: drop it from the graph and from its neighbours' sets.
        移除 `task_id`：从图中删除，并从相邻任务的集合中剔除。

        Dependents whose last prerequisite this was become ready.
        若这是某后继的最后一个前置，该后继即变为就绪。
        """
        handle = self._index.pop(task_id)
        task = self._arena[handle]
        for dependent_id in task.dependents:
            dependent_handle = self._index.get(dependent_id)
            if dependent_handle is None:
                continue
            self._arena[dependent_handle].prerequisites.discard(task_id)
            self._indegree[dependent_handle] -= 1
        for prerequisite_id in task.prerequisites:
            prerequisite_handle = self._index.get(prerequisite_id)
            if prerequisite_handle is not None:
                self._arena[prerequisite_handle].dependents.discard(task_id)
        logger.debug("[Graph] Removed %s (%d left)", task_id, len(self._index))
        return task

    def copy(self) -> TaskGraph:
        """Deep copy, so a scheduler run never mutates the caller's graph."""
        clone = TaskGraph()
        clone._arena = [task.model_copy(deep=True) for task in self._arena]
        clone._index = dict(self._index)
        clone._indegree = list(self._indegree)
        return clone

    # ------------------------------------------------------------------
    # Graph algorithms
    # 图算法
    # ------------------------------------------------------------------

    def topological_sort(self) -> list[str]:
        """
        Kahn's algorithm — returns task ids in a valid execution order,
        smallest ready id first. On a cycle the order is partial.

        Kahn 算法 —— 返回合法的拓扑顺序，就绪任务中字母序最小者优先。
        存在环时返回不完整的顺序。
        """
        in_degree = {task_id: self._indegree[handle] for task_id, handle in self._index.items()}
        heap = [task_id for task_id, degree in in_degree.items() if degree == 0]
        heapq.heapify(heap)
        result: list[str] = []

        while heap:
            task_id = heapq.heappop(heap)
            result.append(task_id)
            for dependent_id in self.get(task_id).dependents:
                if dependent_id not in in_degree:
                    continue
                in_degree[dependent_id] -= 1
                if in_degree[dependent_id] == 0:
                    heapq.heappush(heap, dependent_id)

        if len(result) != len(self._index):
            logger.warning("[Graph] Cycle detected! Topological sort incomplete.")
        return result

    def check_acyclic(self) -> None:
        """Raise CycleDetectedError if some task can never become ready."""
        order = self.topological_sort()
        if len(order) == len(self._index):
            return
        blocked = set(self._index) - set(order)
        raise CycleDetectedError(
            f"Instructions contain a cycle; steps never ready: {''.join(sorted(blocked))}",
            blocked=blocked,
        )

    def critical_path_length(self, duration: Callable[[str], int]) -> int:
        """
        Length of the duration-weighted longest path from any source to any sink.
        从任意源点到任意汇点的时长加权最长路径长度。

        No schedule, whatever its worker count, can finish faster than this.
        无论工人数多少，任何调度都不可能比它更快完成。
        """
        finish: dict[str, int] = {}
        for task_id in self.topological_sort():
            task = self.get(task_id)
            start = max((finish[p] for p in task.prerequisites if p in finish), default=0)
            finish[task_id] = start + duration(task_id)
        return max(finish.values(), default=0)

    # ------------------------------------------------------------------
    # Display helpers
    # 展示辅助方法
    # ------------------------------------------------------------------

    def summary(self) -> str:
        """
        One-line summary for logging, e.g. TaskGraph[7 tasks: 1 ready, 6 pending].
        生成单行状态摘要，用于日志输出。
        """
        ready = sum(1 for task in self if not task.prerequisites and task.status != TaskStatus.RUNNING)
        running = sum(1 for task in self if task.status == TaskStatus.RUNNING)
        parts = [f"{ready} ready", f"{len(self) - ready - running} pending"]
        if running:
            parts.insert(1, f"{running} running")
        return f"TaskGraph[{len(self)} tasks: {', '.join(parts)}]"
