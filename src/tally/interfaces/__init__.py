"""Interfaces (application boundary) for TALLY.

Defines framework-free application contracts: ABCs and small DTOs shared by
the service layer and adapters (key material, event log, unit of work, ID
generators, redaction). Business rules stay out of this package.

Dependency rule: may import `tally.domain` value objects and events only. It
may be imported by `tally.service_layer`, `tally.adapters`, and
`tally.bootstrap`.
"""
