"""Room domain services: registry, identity, lifecycle, arbitration, broadcast.

This package contains the pure room logic used by the socket handlers and
HTTP routes. Nothing in here touches Socket.IO; every operation returns the
notifications it wants delivered, keeping transport concerns separated from
core game mechanics.
"""
