"""
Treasury - Source Package

Financial tracking for a member organization: manual income/expense
transactions, and reconciliation of the cash register against the bank.

DESIGN PRINCIPLES:
1. Balances are recomputed, never stored
2. Bank balance snapshots are append-only
3. Every mutation is auditable
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Treasury Team"
