"""Entrypoints (inbound adapters) for TALLY.

Expose the application to the outside world through the CLI. Parse and validate
inputs, hand transactions to the service layer, and present results.

Dependency rule: may import `tally.bootstrap` and `tally.service_layer`; reach
into `tally.adapters` only for storage inspection and key handling.
"""
