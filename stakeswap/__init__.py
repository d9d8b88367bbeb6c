"""
StakeSwap: integer-only constant-product pools and a reward-per-token staking ledger.
"""

__version__ = "0.1.0"
