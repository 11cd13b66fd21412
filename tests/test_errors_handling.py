import logging

import pytest

from wolfwave.errors import (
    AccessDenied,
    AuthError,
    ChatConnectionError,
    ConfigurationError,
    ConnectionBusyError,
    InternalError,
    NetworkError,
    ProtocolError,
)
from wolfwave.errors.handling import classify_error, log_error
from wolfwave.logging_config import error_aggregator


@pytest.mark.parametrize(
    ("error", "category"),
    [
        (NetworkError("x"), "network"),
        (ConnectionResetError("x"), "network"),
        (AuthError("x"), "auth"),
        (AccessDenied("x"), "device_auth"),
        (ProtocolError("x"), "protocol"),
        (ConnectionBusyError("x"), "connection"),
        (ConfigurationError("x"), "config"),
        (InternalError("x"), "internal"),
        (ValueError("x"), "unknown"),
    ],
)
def test_classify_error(error: Exception, category: str) -> None:
    assert classify_error(error) == category


def test_internal_error_copies_data() -> None:
    data = {"channel": "streamer"}
    err = ChatConnectionError("failed", data=data)
    data["channel"] = "changed"
    assert err.data == {"channel": "streamer"}
    assert ChatConnectionError("no data").data == {}


def test_log_error_merges_context_and_aggregates(caplog: pytest.LogCaptureFixture) -> None:
    err = ChatConnectionError("socket refused", data={"code": 4003})
    with caplog.at_level(logging.ERROR):
        log_error("Join failed", err, {"channel": "streamer"})
    assert "[CONNECTION] Join failed: socket refused" in caplog.text
    assert "code=4003" in caplog.text
    assert "channel=streamer" in caplog.text
    assert error_aggregator.get_error_summary()["connection"]["total_count"] == 1
