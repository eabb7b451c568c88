"""Kasa matching engine.

Assigns meaning to imported bank transactions: spending categories, links to
manually entered expenses, internal transfer pairs and friendly transfer labels.
"""

__version__ = "0.1.0"
