"""
CoinCard - Source Package

A personal ledger for money handed over in person: photograph a banknote or
receipt, let the classification service read it, correct the result and keep
it on the device.

DESIGN PRINCIPLES:
1. Model suggests → Human edits → Store persists
2. A failed analysis never blocks manual entry
3. Nothing is written without an explicit save
4. Every mutation is auditable
5. Storage substrate is swappable
"""

__version__ = "1.0.0"
__author__ = "CoinCard Team"
