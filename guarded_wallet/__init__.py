"""
Guarded Wallet - Source Package

A custody and authorization engine: one owner controls a pool of value,
delegates bounded spending rights, and can be replaced by a 3-of-5
guardian quorum.

DESIGN PRINCIPLES:
1. Caller identity is always explicit
2. Fail early, fail visibly, mutate nothing on failure
3. No silent corrections
4. Every operation must be auditable
5. Environment and storage are swappable
"""

__version__ = "1.0.0"
__author__ = "Guarded Wallet Team"
