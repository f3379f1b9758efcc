"""Broadcast event type constants.

Learn: One topic per entity-creation event. Clients filter incoming
frames on these names, so they are part of the wire contract.
"""

NEW_ASSIGNMENT = "new_assignment"
NEW_USER = "new_user"

PONG = "pong"
PING = "ping"
