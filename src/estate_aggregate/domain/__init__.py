"""Domain layer: canonical events emitted by the aggregate service.

This package defines the event primitives that subscribers depend on but
never modify.  Everything here is immutable.
"""
