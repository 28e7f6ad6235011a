"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trofify.api import debug, messages, notifications, ops
from trofify.api.errors import install_error_handlers
from trofify.container import get_container
from trofify.infra import postgres
from trofify.infra.redis import redis_client
from trofify.obs import init as obs_init
from trofify.realtime import emitter
from trofify.realtime.namespace import RealtimeNamespace
from trofify.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.storage_backend == "postgres":
		await postgres.init_pool()
	get_container()
	logger.info(
		"realtime service starting",
		extra={
			"storage_backend": settings.storage_backend,
			"presence_backend": settings.presence_backend,
			"git_commit": settings.git_commit,
		},
	)
	try:
		yield
	finally:
		await postgres.close_pool()
		if settings.uses_redis():
			await redis_client.aclose()


app = FastAPI(title="Trofify Realtime", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else ["https://www.trofify.com"]

# Starlette disallows wildcard '*' with allow_credentials=True.
if "*" in allow_origins:
	allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else ["https://www.trofify.com"]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
realtime_namespace = RealtimeNamespace()
sio.register_namespace(realtime_namespace)
emitter.set_namespace(realtime_namespace)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
obs_init(app)

app.include_router(ops.router)
app.include_router(debug.router)
app.include_router(notifications.router)
app.include_router(messages.router)
