"""Rendering of graded audit results."""

from .generator import Reporter, exit_code, summary_line

__all__ = ["Reporter", "exit_code", "summary_line"]
