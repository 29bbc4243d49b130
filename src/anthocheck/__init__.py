"""anthocheck - consistency checker for Markdown anthologies."""

__version__ = "0.3.0"
