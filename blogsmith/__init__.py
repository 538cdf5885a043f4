"""Markdown blog pipeline: static builds and on-demand serving."""

__version__ = "0.1.0"
