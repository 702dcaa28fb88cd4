"""
DAG module - Core engine for step scheduling.
DAG 模块 —— 步骤调度的核心引擎。

Components:
  - graph.py:         TaskGraph data structure and graph algorithms
  - frontier.py:      Ready frontier (steps that can start now)
  - state_machine.py: Task lifecycle state machine
  - duration.py:      Step duration function (base offset + letter ordinal)
  - sequential.py:    Single-worker scheduler (completion order)
  - worker_pool.py:   N-worker discrete-tick simulation (elapsed time)

模块组成：
  - graph.py:         TaskGraph 数据结构与图算法（拓扑排序、关键路径等）
  - frontier.py:      就绪前沿（当前可以开始的步骤）
  - state_machine.py: 任务生命周期状态机（强制合法状态转移）
  - duration.py:      步骤时长函数（基础偏移 + 字母序号）
  - sequential.py:    单工人调度器（完成顺序）
  - worker_pool.py:   N 工人离散 tick 仿真（总耗时）
"""

from dag.graph import CycleDetectedError, TaskGraph    # 步骤有向无环图
from dag.frontier import ready                          # 就绪前沿
from dag.state_machine import InvalidTransitionError, TaskStateMachine  # 任务状态机
from dag.duration import StepDuration                   # 步骤时长
from dag.sequential import SequentialScheduler          # 顺序调度器
from dag.worker_pool import WorkerPoolScheduler         # 工人池调度器
