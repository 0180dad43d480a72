"""Launcher core: plugin registry, extensions, RPC control, history, icon lookup and reports."""

__version__ = "0.1.0"