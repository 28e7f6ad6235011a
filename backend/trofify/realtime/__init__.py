"""Realtime transport: Socket.IO namespace, room naming, and broadcasts."""
