"""Room names for scoped broadcasts.

Names are derived from domain identifiers with a per-feature prefix so that a
conversation id and a user id can never land in the same room.
"""

from __future__ import annotations


def conversation_room(conversation_id: str) -> str:
	return f"conversation_{conversation_id}"


def notifications_room(user_id: str) -> str:
	return f"notifications_{user_id}"
