"""Tokenwise - token budgeting, compaction and cost tracking for LLM gateways."""

__version__ = "0.1.0"
__author__ = "Tokenwise Team"
__description__ = "Keep multi-agent LLM conversations inside a finite context window"

__all__ = ["__version__", "__author__", "__description__"]
