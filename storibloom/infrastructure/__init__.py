"""Infrastructure layer: adapters, in-memory stubs, and observability."""
