"""JSON log lines carrying the request context of the watch-party API."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from watchparty.settings import settings

_LOGGER_NAME = "watchparty"

# request_id, route, user_id, ip
_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("watchparty_log_context", default={})

# invite codes admit people into private rooms
_REDACTED_KEYS = ("token", "secret", "authorization", "invite", "email")

_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "taskName"}


def bind_context(
	*,
	request_id: Optional[str] = None,
	route: Optional[str] = None,
	user_id: Optional[str] = None,
	client_ip: Optional[str] = None,
) -> Token:
	fields = dict(_CONTEXT.get())
	for key, value in (("request_id", request_id), ("route", route), ("user_id", user_id), ("ip", client_ip)):
		if value:
			fields[key] = value
	return _CONTEXT.set(fields)


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def redact(key: str, value: Any) -> Any:
	lowered = key.lower()
	if any(marker in lowered for marker in _REDACTED_KEYS):
		return "[redacted]"
	if isinstance(value, Mapping):
		return {str(k): redact(str(k), v) for k, v in value.items()}
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per record; ``extra`` fields are merged in, redacted."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		payload.update(_CONTEXT.get())
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in vars(record).items():
			if key not in _STANDARD_ATTRS and key not in payload:
				payload[key] = redact(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Sample info records at ``LOG_SAMPLING_RATE_INFO``; other levels always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		return random.random() < settings.obs_log_sampling_rate_info


def configure_logging() -> logging.Logger:
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
