"""
FinTrack - Core Package

The aggregation and reporting engine of a personal finance tracker.
Presentation layers call into this package; it never calls back out.

DESIGN PRINCIPLES:
1. The ledger is the only source of truth - everything else is derived
2. Derivations are pure functions over the ledger
3. One user namespace at a time, passed around explicitly
4. Every export agrees with the dashboard to the cent
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FinTrack Team"
