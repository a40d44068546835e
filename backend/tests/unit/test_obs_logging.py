import json
import logging

from watchparty.obs import logging as obs_logging


def _record(**extra) -> logging.LogRecord:
	record = logging.LogRecord("watchparty.rooms", logging.INFO, __file__, 1, "room_created", (), None)
	for key, value in extra.items():
		setattr(record, key, value)
	return record


def test_formatter_merges_context_and_redacts_secrets():
	token = obs_logging.bind_context(request_id="req-1", user_id="user-1")
	try:
		line = obs_logging.JSONLogFormatter().format(
			_record(room_id="room-1", invite_code="ABC123", meta={"accessToken": "t", "path": "view"})
		)
	finally:
		obs_logging.reset_context(token)

	payload = json.loads(line)
	assert payload["msg"] == "room_created"
	assert payload["request_id"] == "req-1"
	assert payload["user_id"] == "user-1"
	assert payload["room_id"] == "room-1"
	assert payload["invite_code"] == "[redacted]"
	assert payload["meta"] == {"accessToken": "[redacted]", "path": "view"}
	assert obs_logging.current_request_id() is None


def test_sampling_keeps_warnings(monkeypatch):
	monkeypatch.setattr(obs_logging.settings, "obs_log_sampling_rate_info", 0.0)
	sampler = obs_logging.InfoSamplingFilter()
	assert sampler.filter(_record()) is False
	warning = logging.LogRecord("watchparty", logging.WARNING, __file__, 1, "slow", (), None)
	assert sampler.filter(warning) is True
