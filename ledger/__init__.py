"""
Personal Ledger - Source Package

A single-session personal ledger engine: bills recorded against
user-defined categories, budgets enforced before mutation, and
reports derived on demand from the ledger.

DESIGN PRINCIPLES:
1. Validate first, mutate second
2. Fail early, fail visibly
3. Every mutation must be auditable
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Ledger Team"
