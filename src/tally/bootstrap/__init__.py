"""Bootstrap (composition root) for TALLY.

Assembles a running ledger: builds the `LedgerState` from a genesis, wires the
unit of work to an event store, the processor to a verifier, and the handlers
to the message bus.

Import rules:
- Entry points import *this* package (not adapters/service_layer/interfaces/domain
  wiring directly).
- This package may import: `tally.adapters`, `tally.service_layer`,
  `tally.interfaces`, `tally.domain`, and `tally.config`.
- Inner layers must not import `tally.bootstrap`.
"""

from .bootstrap import AppContainer, bootstrap

__all__ = ["AppContainer", "bootstrap"]
