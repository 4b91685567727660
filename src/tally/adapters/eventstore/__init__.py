"""Event store adapters: in-memory and SQLAlchemy implementations of `EventStore`."""
