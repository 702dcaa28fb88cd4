"""
Ready frontier - which steps can start right now.
就绪前沿 —— 当前可以开始的步骤。

The frontier is derived, never stored: it is recomputed from the graph after
every removal. A full rescan is O(tasks), which is plenty for a 26-letter
alphabet; the graph's indegree counters allow an incremental index instead.
前沿是派生数据，从不存储：每次移除后都从图中重新计算。
全量扫描为 O(tasks)，对 26 个字母绰绰有余；图中的入度计数也允许改为增量索引。
"""

from __future__ import annotations

from typing import Iterable

from dag.graph import TaskGraph


def ready(graph: TaskGraph, excluded: Iterable[str] = ()) -> list[str]:
    """
    Return ids of tasks with no unfinished prerequisites, ascending,
    skipping those in `excluded` (already assigned to a worker).
    返回前置已全部完成的任务 ID（升序），跳过 `excluded` 中已分配给工人的任务。
    """
    skip = set(excluded)
    return sorted(
        task.id for task in graph
        if not task.prerequisites and task.id not in skip
    )
