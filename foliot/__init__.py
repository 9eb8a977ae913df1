"""
Foliot: terminal-based time tracking per namespace.

Clock in and out of named namespaces, add entries after the fact and
summarize the tracked time per month.
"""

__version__ = "0.3.0"
