"""Router module for transcript extraction."""

from .interpreter import TaskInterpreter, InterpreterConfig, extract

__all__ = ["TaskInterpreter", "InterpreterConfig", "extract"]
