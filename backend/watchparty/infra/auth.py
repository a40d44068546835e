"""Authentication helpers for FastAPI endpoints and socket handshakes.

Access tokens are HS256 JWTs signed with settings.secret_key; the subject is
carried in ``userId`` (or ``sub``). Dev headers are only honoured in development.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from watchparty.infra import jwt as jwt_helper
from watchparty.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	username: Optional[str] = None
	email: Optional[str] = None


_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser."""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		# Normalise all decode failures to invalid_token for the API surface
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	user_id = jwt_helper.subject_of(payload).strip()
	if not user_id:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	username = payload.get("username") or payload.get("name")
	email = payload.get("email")
	return AuthenticatedUser(
		id=user_id,
		username=str(username) if username is not None else None,
		email=str(email) if email is not None else None,
	)


def resolve_token_or_dev(token: Optional[str], dev_user_id: Optional[str]) -> Optional[AuthenticatedUser]:
	"""Socket handshake variant: returns None instead of raising."""
	if token:
		try:
			return verify_access_jwt(token)
		except HTTPException:
			return None
	if settings.is_dev() and dev_user_id:
		return AuthenticatedUser(id=dev_user_id)
	return None


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_name: Optional[str] = Header(default=None, alias="X-User-Name"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow simple headers. In all other environments, headers are
	ignored and a valid Bearer JWT is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	if settings.is_dev() and x_user_id:
		return AuthenticatedUser(id=x_user_id, username=x_user_name)

	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
