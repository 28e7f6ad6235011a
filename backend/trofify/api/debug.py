"""Operator-facing listings of users and live connections."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from trofify.container import Container, get_container
from trofify.settings import settings


class DebugUser(BaseModel):
	id: str
	email: str
	user_type: str


class OnlineConnection(BaseModel):
	userId: str
	socketId: str


class OnlineUsers(BaseModel):
	count: int
	users: List[OnlineConnection]


async def require_debug_enabled() -> None:
	if not settings.debug_endpoints_enabled:
		raise HTTPException(status.HTTP_404_NOT_FOUND, detail="not_found")


router = APIRouter(prefix="/api/debug", tags=["debug"], dependencies=[Depends(require_debug_enabled)])


@router.get("/users", response_model=List[DebugUser])
async def list_users(container: Container = Depends(get_container)) -> List[DebugUser]:
	rows = await container.users.list_users()
	return [DebugUser(**row) for row in rows]


@router.get("/online-users", response_model=OnlineUsers)
async def online_users(container: Container = Depends(get_container)) -> OnlineUsers:
	snapshot = await container.presence.snapshot()
	users = [OnlineConnection(userId=user_id, socketId=sid) for user_id, sid in sorted(snapshot.items())]
	return OnlineUsers(count=len(users), users=users)
