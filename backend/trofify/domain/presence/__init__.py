"""Presence domain exports."""

from .store import InMemoryPresenceStore, PresenceStore, RedisPresenceStore, Registration, is_online

__all__ = [
	"InMemoryPresenceStore",
	"PresenceStore",
	"RedisPresenceStore",
	"Registration",
	"is_online",
]
