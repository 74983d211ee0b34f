"""gramark: markdown-aware grammar checking with exact offset mapping."""

__version__ = "0.1.0"
