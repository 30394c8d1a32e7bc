"""Compilation of syntax trees into derivative-evaluating callables."""

from .code_generator import CompiledFunction, CompileError, compile_node

__all__ = [
    "CompiledFunction",
    "CompileError",
    "compile_node",
]
