"""Animus plugins: install pipeline and status registry for host extensions."""

__version__ = "0.1.0"
