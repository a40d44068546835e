"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from watchparty.api import ops, rooms, trivia, users
from watchparty.api.errors import install_error_handlers
from watchparty.domain.rooms.relay import RoomRelay, set_relay
from watchparty.domain.rooms.sockets import WatchPartyNamespace
from watchparty.infra import postgres
from watchparty.infra.documents import ensure_schema
from watchparty.obs import init as obs_init
from watchparty.settings import DEV_SECRET, settings

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.is_prod() and settings.secret_key == DEV_SECRET:
		LOGGER.warning("jwt_secret_default", extra={"environment": settings.environment})
	try:
		pool = await postgres.init_pool()
	except Exception:
		if settings.is_prod():
			raise
		LOGGER.warning("postgres_unavailable_using_memory_store", exc_info=True)
		pool = None
	if pool is not None:
		await ensure_schema(pool)
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Watch Party API", lifespan=lifespan)
install_error_handlers(app)
obs_init(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = [settings.frontend_url]

# Starlette disallows wildcard '*' with allow_credentials=True.
if "*" in allow_origins:
	allow_origins = [settings.frontend_url]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

# Use the same allowed origins for Socket.IO as for the REST API
client_manager = socketio.AsyncRedisManager(settings.relay_redis_url) if settings.relay_redis_url else None
sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins, client_manager=client_manager)
relay = RoomRelay(sio)
set_relay(relay)
sio.register_namespace(WatchPartyNamespace(relay))
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)

app.include_router(rooms.router, tags=["rooms"])
app.include_router(trivia.router, tags=["trivia"])
app.include_router(users.router, tags=["users"])
app.include_router(ops.router, tags=["ops"])
