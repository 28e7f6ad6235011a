"""REST surface for conversation read receipts and unread message counts."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field

from trofify.container import Container, get_container

router = APIRouter(prefix="/api", tags=["messages"])


class ReadConversationRequest(BaseModel):
	# older clients send user_id
	user_id: str = Field(min_length=1, validation_alias=AliasChoices("user_id", "userId"))


class ReadConversationResult(BaseModel):
	updated: int


class UnreadMessagesOut(BaseModel):
	count: int


@router.put("/conversations/{conversation_id}/messages/read", response_model=ReadConversationResult)
async def read_conversation(
	conversation_id: str,
	payload: ReadConversationRequest,
	container: Container = Depends(get_container),
) -> ReadConversationResult:
	updates = await container.delivery.mark_conversation_read(conversation_id, payload.user_id)
	return ReadConversationResult(updated=len(updates))


@router.get("/users/{user_id}/unread-messages", response_model=UnreadMessagesOut)
async def unread_messages(user_id: str, container: Container = Depends(get_container)) -> UnreadMessagesOut:
	return UnreadMessagesOut(count=await container.delivery.unread_count(user_id))
