"""GrindLink Hub — live assignment and user-profile boards.

A FastAPI service that stores assignments and user profiles in a
document store and pushes every newly created record to connected
clients over a WebSocket broadcast channel.
"""

__version__ = "0.1.0"
