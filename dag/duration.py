"""
Step durations: a fixed base offset plus the step's position in the alphabet.
步骤时长：固定偏移量 + 步骤在字母表中的位置。
"""

from __future__ import annotations

import string


class StepDuration:
    """
    Callable `duration(step) = base_offset + ordinal(step)`.
    可调用对象：`duration(step) = base_offset + ordinal(step)`。

    With the production offset of 60, step A takes 61 seconds and Z takes 86;
    with the calibration offset of 0, A takes 1 and Z takes 26.
    生产偏移 60 时 A=61 秒、Z=86 秒；校准偏移 0 时 A=1、Z=26。
    """

    def __init__(self, base_offset: int = 60, alphabet: str = string.ascii_uppercase):
        if base_offset < 0:
            raise ValueError(f"base_offset must be >= 0, got {base_offset}")
        self.base_offset = base_offset
        self._alphabet = alphabet

    def ordinal(self, step: str) -> int:
        """1-based position of `step` in the alphabet (case-insensitive for letters)."""
        position = self._alphabet.find(step)
        if position < 0:
            position = self._alphabet.find(step.upper())
        if len(step) != 1 or position < 0:
            raise ValueError(f"Unknown step symbol {step!r}")
        return position + 1

    def __call__(self, step: str) -> int:
        return self.base_offset + self.ordinal(step)

    def __repr__(self) -> str:
        return f"StepDuration(base_offset={self.base_offset})"
