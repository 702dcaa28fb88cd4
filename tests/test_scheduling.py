"""
调度能力测试 — 测试分别体现：
  1. 指令图构建 (GraphBuilder)
  2. 就绪前沿 (ReadyFrontier)
  3. 单工人顺序调度 (SequentialScheduler)
  4. 工人池仿真 (WorkerPoolScheduler)
  5. 调度性质：单调性、关键路径下界、确定性
  6. 环检测 (Cycle detection)

运行方式:
    pytest tests/test_scheduling.py -v

所有测试都使用谜题描述中的示例指令，或由固定种子生成的随机 DAG。
"""

from __future__ import annotations

import random
import string

import pytest

from dag.duration import StepDuration
from dag.frontier import ready
from dag.graph import CycleDetectedError, TaskGraph
from dag.sequential import SequentialScheduler
from dag.worker_pool import WorkerPoolScheduler
from schema import Constraint, SchedulerConfig, Task, TaskStatus, WorkerSlot


# ======================================================================
# Helper: 谜题中的示例指令
#
#       -->A--->B--
#      /    \      \
#     C      -->D----->E
#      \           /
#       ---->F-----
# ======================================================================

EXAMPLE_PAIRS = [
    ("C", "A"),
    ("C", "F"),
    ("A", "B"),
    ("A", "D"),
    ("B", "E"),
    ("D", "E"),
    ("F", "E"),
]


def _example_graph() -> TaskGraph:
    return TaskGraph.from_constraints(EXAMPLE_PAIRS)


def _pool(workers: int, base: int = 0, **kwargs) -> WorkerPoolScheduler:
    return WorkerPoolScheduler(SchedulerConfig(worker_count=workers, base_duration=base), **kwargs)


def _random_pairs(seed: int, size: int = 12, density: float = 0.25) -> list[tuple[str, str]]:
    """生成随机 DAG：在随机排列上只保留「前 -> 后」方向的边，保证无环."""
    rng = random.Random(seed)
    letters = list(string.ascii_uppercase[:size])
    rng.shuffle(letters)
    return [
        (letters[i], letters[j])
        for i in range(size)
        for j in range(i + 1, size)
        if rng.random() < density
    ]


# ======================================================================
# Test 1: 指令图构建
# ======================================================================


class TestGraphBuilder:
    """验证 TaskGraph.from_constraints 的前置/后继记账."""

    def test_every_step_has_a_task(self):
        graph = _example_graph()
        assert graph.task_ids() == ["A", "B", "C", "D", "E", "F"]
        assert len(graph) == 6

    def test_prerequisites_and_dependents_are_consistent(self):
        graph = _example_graph()
        for task in graph:
            for dependent in task.dependents:
                assert task.id in graph.get(dependent).prerequisites, (
                    f"{task.id} 列出 {dependent} 为后继，但 {dependent} 未列出 {task.id} 为前置"
                )
        assert graph.get("E").prerequisites == {"B", "D", "F"}
        assert graph.get("C").dependents == {"A", "F"}

    def test_indegree_matches_prerequisites(self):
        graph = _example_graph()
        for task in graph:
            assert graph.indegree(task.id) == len(task.prerequisites)

    def test_handles_follow_first_seen_order(self):
        graph = _example_graph()
        handles = {task.id: task.handle for task in graph}
        assert handles == {"C": 0, "A": 1, "F": 2, "B": 3, "D": 4, "E": 5}

    def test_duplicate_edges_are_idempotent(self):
        graph = TaskGraph.from_constraints(EXAMPLE_PAIRS + EXAMPLE_PAIRS[:3] + [("F", "E")])
        assert graph.indegree("E") == 3
        assert SequentialScheduler().order(graph) == "CABDFE"
        assert _pool(2).elapsed_time(graph) == 15

    def test_accepts_constraint_models(self):
        constraints = [Constraint(prerequisite=a, dependent=b) for a, b in EXAMPLE_PAIRS]
        graph = TaskGraph.from_constraints(constraints)
        assert graph.get("A").prerequisites == {"C"}

    def test_remove_unblocks_dependents(self):
        graph = _example_graph()
        graph.remove("C")
        assert "C" not in graph
        assert graph.get("A").prerequisites == set()
        assert graph.get("F").prerequisites == set()
        assert graph.indegree("A") == 0

    def test_copy_is_independent(self):
        graph = _example_graph()
        clone = graph.copy()
        clone.remove("C")
        assert "C" in graph
        assert graph.get("A").prerequisites == {"C"}

    def test_topological_sort_prefers_smallest(self):
        assert _example_graph().topological_sort() == list("CABDFE")

    def test_critical_path_length(self):
        # C(3) -> F(6) -> E(5) = 14 是最长的时长加权路径
        assert _example_graph().critical_path_length(StepDuration(0)) == 14
        assert TaskGraph().critical_path_length(StepDuration(0)) == 0

    def test_summary(self):
        assert _example_graph().summary() == "TaskGraph[6 tasks: 1 ready, 5 pending]"


# ======================================================================
# Test 2: 就绪前沿
# ======================================================================


class TestReadyFrontier:

    def test_initial_frontier(self):
        assert ready(_example_graph()) == ["C"]

    def test_frontier_is_sorted_after_removal(self):
        graph = _example_graph()
        graph.remove("C")
        assert ready(graph) == ["A", "F"]
        graph.remove("A")
        assert ready(graph) == ["B", "D", "F"]

    def test_excluded_steps_are_skipped(self):
        graph = _example_graph()
        graph.remove("C")
        assert ready(graph, excluded={"A"}) == ["F"]
        assert ready(graph, excluded=["A", "F"]) == []

    def test_empty_graph(self):
        assert ready(TaskGraph()) == []


# ======================================================================
# Test 3: 单工人顺序调度
# ======================================================================


class TestSequentialScheduler:

    def test_example_order(self):
        assert SequentialScheduler().order(_example_graph()) == "CABDFE"

    def test_does_not_mutate_input(self):
        graph = _example_graph()
        SequentialScheduler().order(graph)
        assert len(graph) == 6
        assert all(task.status == TaskStatus.PENDING for task in graph)

    def test_events_follow_order(self):
        events = []
        SequentialScheduler(on_event=lambda e, d: events.append((e, d["step"]))).run(_example_graph())
        assert [step for _, step in events] == list("CABDFE")

    @pytest.mark.parametrize("seed", range(10))
    def test_order_is_topological(self, seed):
        pairs = _random_pairs(seed)
        order = SequentialScheduler().order(TaskGraph.from_constraints(pairs))
        position = {step: i for i, step in enumerate(order)}
        for before, after in pairs:
            assert position[before] < position[after], f"{before} 必须排在 {after} 之前"

    def test_empty_graph(self):
        assert SequentialScheduler().order(TaskGraph()) == ""


# ======================================================================
# Test 4: 工人池仿真
# ======================================================================


class TestWorkerPoolScheduler:

    def test_example_elapsed_time(self):
        """2 名工人、基础时长 0：示例需要 15 秒."""
        assert _pool(2).elapsed_time(_example_graph()) == 15

    def test_calibration_config(self):
        scheduler = WorkerPoolScheduler(SchedulerConfig.calibration())
        assert scheduler.elapsed_time(_example_graph()) == 15

    def test_example_timeline_matches_puzzle_table(self):
        result = _pool(2, record_timeline=True).run(_example_graph())
        rows = [(s.second, "".join(s.render_workers()), s.done) for s in result.timeline]
        assert rows == [
            (0, "C.", ""),
            (1, "C.", ""),
            (2, "C.", ""),
            (3, "AF", "C"),
            (4, "BF", "CA"),
            (5, "BF", "CA"),
            (6, "DF", "CAB"),
            (7, "DF", "CAB"),
            (8, "DF", "CAB"),
            (9, "D.", "CABF"),
            (10, "E.", "CABFD"),
            (11, "E.", "CABFD"),
            (12, "E.", "CABFD"),
            (13, "E.", "CABFD"),
            (14, "E.", "CABFD"),
            (15, "..", "CABFDE"),
        ]
        assert result.order == "CABFDE"

    def test_timeline_not_recorded_by_default(self):
        assert _pool(2).run(_example_graph()).timeline == []

    def test_production_durations(self):
        # 60 + 序号：关键路径 C-A-D-E = 63 + 61 + 64 + 65 = 253
        graph = _example_graph()
        assert _pool(1, base=60).elapsed_time(graph) == 381
        assert _pool(2, base=60).elapsed_time(graph) == 258
        assert _pool(5, base=60).elapsed_time(graph) == 253

    def test_custom_duration_function(self):
        scheduler = WorkerPoolScheduler(
            SchedulerConfig(worker_count=2, base_duration=0),
            duration=lambda step: 1,
        )
        # 每步 1 秒：C | A F | B D | E
        assert scheduler.elapsed_time(_example_graph()) == 4

    def test_non_positive_duration_rejected(self):
        scheduler = WorkerPoolScheduler(SchedulerConfig(worker_count=1), duration=lambda step: 0)
        with pytest.raises(ValueError):
            scheduler.elapsed_time(_example_graph())

    def test_empty_graph(self):
        assert _pool(3).elapsed_time(TaskGraph()) == 0

    def test_remaining_time_lives_on_the_worker_slot(self):
        """剩余时长只记录在 WorkerSlot 上，Task 只保存状态."""
        assert "remaining" not in Task.model_fields
        slot = WorkerSlot(index=0)
        slot.assign("F", 6)
        assert (slot.task_id, slot.remaining, slot.is_idle) == ("F", 6, False)
        assert slot.release() == "F"
        assert (slot.task_id, slot.remaining, slot.is_idle) == (None, 0, True)

    def test_does_not_mutate_input(self):
        graph = _example_graph()
        _pool(2).run(graph)
        assert len(graph) == 6
        assert all(task.status == TaskStatus.PENDING for task in graph)

    def test_task_finishes_exactly_duration_after_assignment(self):
        assigned: dict[str, int] = {}
        completed: dict[str, int] = {}

        def on_event(event, data):
            if event == "assigned":
                assigned[data["step"]] = data["second"]
            elif event == "completed":
                completed[data["step"]] = data["second"]

        _pool(2, on_event=on_event).run(_example_graph())
        duration = StepDuration(0)
        for step, start in assigned.items():
            assert completed[step] == start + duration(step), f"{step} 应在第 {start + duration(step)} 秒完成"


# ======================================================================
# Test 5: 调度性质
# ======================================================================


class TestSchedulingProperties:

    @pytest.mark.parametrize("seed", range(10))
    def test_single_worker_sums_durations_in_sequential_order(self, seed):
        graph = TaskGraph.from_constraints(_random_pairs(seed))
        duration = StepDuration(0)
        result = _pool(1).run(graph)
        sequential = SequentialScheduler().order(graph)
        assert result.order == sequential, "单工人时完成顺序应与顺序调度一致"
        assert result.elapsed == sum(duration(step) for step in sequential)

    @pytest.mark.parametrize("base", [0, 60])
    def test_more_workers_never_slower_on_example(self, base):
        graph = _example_graph()
        times = [_pool(k, base=base).elapsed_time(graph) for k in range(1, 7)]
        assert times == sorted(times, reverse=True), f"工人数增加时耗时不应增加: {times}"

    def test_independent_chain_gains_nothing_from_workers(self):
        graph = TaskGraph.from_constraints([("A", "B"), ("B", "C"), ("C", "D")])
        assert {_pool(k).elapsed_time(graph) for k in (1, 2, 5)} == {1 + 2 + 3 + 4}

    @pytest.mark.parametrize("seed", range(10))
    @pytest.mark.parametrize("workers", [1, 2, 5])
    def test_critical_path_lower_bound(self, seed, workers):
        graph = TaskGraph.from_constraints(_random_pairs(seed))
        bound = graph.critical_path_length(StepDuration(60))
        assert _pool(workers, base=60).elapsed_time(graph) >= bound

    def test_enough_workers_reach_critical_path(self):
        graph = _example_graph()
        assert _pool(6).elapsed_time(graph) == graph.critical_path_length(StepDuration(0))

    @pytest.mark.parametrize("seed", range(5))
    def test_runs_are_deterministic(self, seed):
        graph = TaskGraph.from_constraints(_random_pairs(seed, size=20))
        first = _pool(3, record_timeline=True).run(graph)
        second = _pool(3, record_timeline=True).run(graph)
        assert first == second
        assert SequentialScheduler().order(graph) == SequentialScheduler().order(graph)

    @pytest.mark.parametrize("seed", range(10))
    def test_no_step_assigned_before_prerequisites_retire(self, seed):
        pairs = _random_pairs(seed)
        graph = TaskGraph.from_constraints(pairs)
        done: set[str] = set()

        def on_event(event, data):
            if event == "completed":
                done.add(data["step"])
            elif event == "assigned":
                missing = graph.get(data["step"]).prerequisites - done
                assert not missing, f"{data['step']} 在 {missing} 完成前被分配"

        _pool(3, on_event=on_event).run(graph)
        assert done == set(graph.task_ids())

    def test_smallest_ready_steps_fill_free_slots_first(self):
        """A 完成后 B、C、D、E 同时就绪，2 名工人应先领取 B 和 C."""
        graph = TaskGraph.from_constraints([("A", "D"), ("A", "B"), ("A", "E"), ("A", "C")])
        result = _pool(2, record_timeline=True).run(graph)
        workers = {s.second: s.workers for s in result.timeline}
        assert workers[1] == ["B", "C"]
        assert workers[3] == ["D", "C"]
        assert workers[4] == ["D", "E"]
        assert result.elapsed == 9


# ======================================================================
# Test 6: 环检测
# ======================================================================


class TestCycleDetection:

    def test_validate_rejects_cycle(self):
        with pytest.raises(CycleDetectedError) as exc_info:
            TaskGraph.from_constraints([("A", "B"), ("B", "C"), ("C", "B")], validate=True)
        assert exc_info.value.blocked == ["B", "C"]

    def test_self_loop_is_a_cycle(self):
        with pytest.raises(CycleDetectedError):
            TaskGraph.from_constraints([("A", "A")], validate=True)

    def test_validate_accepts_dag(self):
        TaskGraph.from_constraints(EXAMPLE_PAIRS, validate=True)

    def test_sequential_scheduler_raises_on_cycle(self):
        graph = TaskGraph.from_constraints([("A", "B"), ("B", "C"), ("C", "B")])
        with pytest.raises(CycleDetectedError) as exc_info:
            SequentialScheduler().order(graph)
        assert exc_info.value.blocked == ["B", "C"]

    def test_worker_pool_raises_on_cycle(self):
        graph = TaskGraph.from_constraints([("A", "B"), ("B", "A")])
        with pytest.raises(CycleDetectedError):
            _pool(2).elapsed_time(graph)

    def test_tick_cap_exceeded(self):
        scheduler = WorkerPoolScheduler(SchedulerConfig(worker_count=2, base_duration=0, max_ticks=10))
        with pytest.raises(CycleDetectedError):
            scheduler.elapsed_time(_example_graph())

    def test_default_cap_equals_single_worker_time(self):
        """默认上限为 sum(durations)：单工人恰好用满，不会误判为环."""
        duration = StepDuration(0)
        total = sum(duration(step) for step in "ABCDEF")
        assert _pool(1).elapsed_time(_example_graph()) == total
        exact = WorkerPoolScheduler(SchedulerConfig(worker_count=1, base_duration=0, max_ticks=total))
        assert exact.elapsed_time(_example_graph()) == total
        short = WorkerPoolScheduler(SchedulerConfig(worker_count=1, base_duration=0, max_ticks=total - 1))
        with pytest.raises(CycleDetectedError):
            short.elapsed_time(_example_graph())
