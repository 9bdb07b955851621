"""
Envelope Ledger - Source Package

A small budgeting ledger that keeps money in named envelopes and moves it
between them without ever creating or destroying funds.

DESIGN PRINCIPLES:
1. Balances never go negative
2. Mutations happen one at a time, in arrival order
3. The data file is always a complete snapshot
4. Fail loudly, never silently correct
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Envelope Ledger Team"
