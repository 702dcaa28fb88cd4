"""
Parsers package - instruction records to precedence constraints.
解析器包 —— 将指令记录转换为先后约束。
"""

from .instructions import InstructionParseError, load_instructions, parse_instruction, parse_instructions

__all__ = [
    "InstructionParseError",
    "load_instructions",
    "parse_instruction",
    "parse_instructions",
]
