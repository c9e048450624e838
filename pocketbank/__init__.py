"""
Pocket Bank - Source Package

A small personal finance ledger: customer accounts with a cash balance,
an optional loan, speculative asset holdings and foreign currency wallets.

DESIGN PRINCIPLES:
1. Funds never go negative
2. Fail early, fail visibly
3. A failed operation changes nothing
4. Every committed change is on disk before it is acknowledged
5. Storage layer is swappable
"""

__version__ = "2.0.0"
__author__ = "Pocket Bank Team"
