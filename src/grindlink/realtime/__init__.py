"""Real-time infrastructure — broadcast channel + WebSocket.

Learn: Events flow through two hops:
1. RecordService → Broadcaster.publish (after the store write commits)
2. Broadcaster subscription → WebSocket → client (one session per tab)

Delivery is fire-and-forget: a client that is not connected when an
event is published never sees it and must rely on its initial list call.
"""
