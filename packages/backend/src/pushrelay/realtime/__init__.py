"""Real-time infrastructure — WebSocket listeners + optional Redis fan-out.

Learn: Live frames flow:
1. Router → LiveTransport.broadcast(identity, message)
2. Redis PUBLISH (multi-process) or straight to the local hub
3. Hub → every WebSocket attached to the channel named identity

Live delivery is best-effort. The recipient queue, not this package,
is what guarantees a recipient can still fetch a message later.
"""
