"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Depends

from watchparty.domain.users.service import UserService
from watchparty.infra.auth import AuthenticatedUser, get_current_user

_user_service = UserService()


async def require_user(auth_user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
	"""Authenticated caller with a provisioned user document."""
	await _user_service.ensure_user(auth_user)
	return auth_user
