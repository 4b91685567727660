"""Contracts package.


The three rule-sets operating over `LedgerState` are defined in this package and
inherit from the base `Contract` class in `base.py`. They are re-exported here to
provide a single, convenient import path.
"""

from .base import Contract, contract_address
from .domain_registry import DomainRegistry
from .simple_wallet import SimpleWallet
from .token_ledger import TokenLedger

__all__ = [
    "Contract",
    "DomainRegistry",
    "SimpleWallet",
    "TokenLedger",
    "contract_address",
]
