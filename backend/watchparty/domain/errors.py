"""Domain errors shared by the rooms, trivia, and users services."""

from __future__ import annotations


class WatchPartyError(RuntimeError):
	status_code: int = 400
	code: str = "error"

	def __init__(self, code: str | None = None, *, status_code: int | None = None, message: str | None = None) -> None:
		code = code or self.code
		super().__init__(message or code)
		self.code = code
		if status_code is not None:
			self.status_code = status_code
		self.detail = message or code


class NotFound(WatchPartyError):
	status_code = 404
	code = "not_found"


class Forbidden(WatchPartyError):
	status_code = 403
	code = "forbidden"


class Conflict(WatchPartyError):
	# duplicate names surface as a plain 400
	status_code = 400
	code = "conflict"


class ValidationFailed(WatchPartyError):
	status_code = 400
	code = "validation_failed"


class RateLimited(WatchPartyError):
	status_code = 429
	code = "rate_limited"


class Unavailable(WatchPartyError):
	status_code = 503
	code = "service_unavailable"
