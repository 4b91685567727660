"""TALLY

An account-based ledger state machine. It keeps token balances, domain-name
ownership records and a simple wallet, and only mutates them through signed,
fully validated transactions whose effects are recorded as immutable events.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
