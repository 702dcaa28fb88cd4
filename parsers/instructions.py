"""
Instruction Parser - turns sleigh-kit instructions into precedence constraints.
指令解析器 —— 将雪橇组装说明转换为先后约束。

Each record has the literal form:
每条记录的固定格式：

    Step C must be finished before step A can begin.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from schema import Constraint

logger = logging.getLogger(__name__)

# 编译一次，复用多次
_INSTRUCTION_PATTERN = re.compile(
    r"^Step ([A-Za-z]) must be finished before step ([A-Za-z]) can begin\.$"
)


class InstructionParseError(ValueError):
    """
    Raised when a record does not match the instruction format.
    当记录不符合指令格式时抛出。
    """

    def __init__(self, line: str, line_number: int | None = None):
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}malformed instruction {line!r}")
        self.line = line
        self.line_number = line_number


def parse_instruction(line: str, line_number: int | None = None) -> Constraint:
    """
    Parse one record into a Constraint.
    将单条记录解析为 Constraint。
    """
    match = _INSTRUCTION_PATTERN.match(line.strip())
    if match is None:
        raise InstructionParseError(line, line_number)
    return Constraint(prerequisite=match.group(1), dependent=match.group(2))


def parse_instructions(lines: Iterable[str]) -> list[Constraint]:
    """
    Parse records in order, skipping blank lines.
    按顺序解析所有记录，跳过空行。
    """
    constraints = [
        parse_instruction(line, number)
        for number, line in enumerate(lines, start=1)
        if line.strip()
    ]
    logger.debug("[Parser] Parsed %d instructions", len(constraints))
    return constraints


def load_instructions(path: str | Path) -> list[Constraint]:
    """Read a UTF-8 instruction file and parse it."""
    text = Path(path).read_text(encoding="utf-8")
    logger.info("[Parser] Loading instructions from %s", path)
    return parse_instructions(text.splitlines())
