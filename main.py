"""
Sleigh Scheduler - command line entry point.
雪橇调度器 —— 命令行入口。

Reads the sleigh-kit instructions, then prints:
  - the single-worker completion order (smallest ready step first)
  - the time a pool of workers needs to finish every step
读取雪橇组装说明，然后输出：
  - 单工人完成顺序（就绪步骤中字母序最小者优先）
  - 工人池完成全部步骤所需的时间

Usage / 用法:
    python main.py [path] [--calibration] [--timeline] [-v]
"""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

import config
from dag.graph import CycleDetectedError, TaskGraph
from dag.sequential import SequentialScheduler
from dag.worker_pool import WorkerPoolScheduler
from parsers.instructions import InstructionParseError, load_instructions
from schema import ScheduleResult, SchedulerConfig

console = Console()


# ======================================================================
# Timeline Visualization
# 时间线可视化
# ======================================================================

def _build_timeline_table(result: ScheduleResult, worker_count: int) -> Table:
    """
    Per-second table in the layout of the puzzle statement:
    Second | Worker 1 | Worker 2 | ... | Done
    按谜题描述的格式逐秒展示：秒 | 工人 1 | 工人 2 | ... | 已完成
    """
    table = Table(title="Worker Timeline", border_style="cyan")
    table.add_column("Second", justify="right", style="bold")
    for i in range(worker_count):
        table.add_column(f"Worker {i + 1}", justify="center")
    table.add_column("Done", style="green")

    for snap in result.timeline:
        cells = [f"[yellow]{w}[/yellow]" if w != "." else "[dim].[/dim]" for w in snap.render_workers()]
        table.add_row(str(snap.second), *cells, snap.done)
    return table


# ======================================================================
# Main
# 主函数
# ======================================================================

def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging with rich handler.
    使用 Rich 处理器配置日志系统。
    verbose=True 时启用 DEBUG 级别，显示每次分配与移除。
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
    )


def run(path: str, calibration: bool = False, show_timeline: bool = False) -> int:
    """
    Solve both parts for the instruction file at `path`. Returns an exit code.
    对 `path` 指令文件求解两部分，返回进程退出码。
    """
    settings = SchedulerConfig.calibration() if calibration else SchedulerConfig.production()

    try:
        constraints = load_instructions(path)
        graph = TaskGraph.from_constraints(constraints, validate=True)
        order = SequentialScheduler().order(graph)
        result = WorkerPoolScheduler(settings, record_timeline=show_timeline).run(graph)
    except FileNotFoundError:
        console.print(f"[red]Error: instruction file not found: {path}[/red]")
        return 1
    except (InstructionParseError, CycleDetectedError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        return 1

    mode = "calibration" if calibration else "production"
    console.print(Panel(
        f"Steps: [bold]{len(graph)}[/bold]   Constraints: [bold]{len(constraints)}[/bold]\n"
        f"Part 1 - completion order: [bold green]{order}[/bold green]\n"
        f"Part 2 - {settings.worker_count} workers, base {settings.base_duration}s: "
        f"[bold green]{result.elapsed}[/bold green] seconds",
        title=f"[bold blue]Sleigh Assembly ({mode})[/bold blue]",
        border_style="blue",
    ))
    if show_timeline:
        console.print(_build_timeline_table(result, settings.worker_count))
    return 0


def main() -> None:
    """
    程序入口：解析命令行参数。
    - 位置参数：指令文件路径（默认 config.INPUT_PATH）
    - --calibration：使用示例配置（2 名工人，基础时长 0）
    - --timeline：打印逐秒工人时间线
    - -v / --verbose：启用调试日志
    """
    verbose = "--verbose" in sys.argv or "-v" in sys.argv
    setup_logging(verbose)

    # 过滤掉以 - 开头的选项参数，保留位置参数
    args = [a for a in sys.argv[1:] if not a.startswith("-")]
    path = args[0] if args else config.INPUT_PATH
    sys.exit(run(
        path,
        calibration="--calibration" in sys.argv,
        show_timeline="--timeline" in sys.argv,
    ))


if __name__ == "__main__":
    main()
