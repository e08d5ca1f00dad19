"""Core shared logic for indicators, signals, and tick models.

This package contains pure business logic with no I/O dependencies
(no sockets, HTTP, or event loop). It is used by the live service
(derivedge/) and can be exercised directly from tests or notebooks.
"""
