"""Centralised JWT helpers for access tokens.

Uses HS256 with the application's secret key. The account service that signs
tokens is external; this module only needs to agree on the secret and claims.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import jwt
from jwt import InvalidTokenError

from watchparty.settings import settings

DEFAULT_TTL_SECONDS = 7 * 24 * 3600


def encode_access(payload: dict[str, object], *, ttl_seconds: Optional[int] = None) -> str:
	"""Encode an access token; used by tests and local tooling."""
	now = int(time.time())
	body: Dict[str, Any] = {"iat": now, "exp": now + (ttl_seconds or DEFAULT_TTL_SECONDS)}
	body.update(payload)
	return jwt.encode(body, settings.secret_key, algorithm="HS256")


def decode_access(token: str) -> dict[str, object]:
	"""Decode and validate an access token.

	Raises jwt.InvalidTokenError subclasses on failure.
	"""
	payload = jwt.decode(
		token,
		settings.secret_key,
		algorithms=["HS256"],
		leeway=5,
		options={"require": ["exp"]},
	)
	if not (payload.get("userId") or payload.get("sub")):
		raise InvalidTokenError("missing_claim:userId")
	return payload  # type: ignore[return-value]


def subject_of(payload: dict[str, object]) -> str:
	return str(payload.get("userId") or payload.get("sub"))
