"""Tests for logging setup and secret scrubbing."""

import logging
from unittest.mock import MagicMock

from tigerdyno.logging_config import SUBSYSTEMS, sanitize_secrets, setup_logging


def test_sanitize_secrets_scrubs_nested_values():
    token = "MTIzNDU2Nzg5MDEyMzQ1Njc4OTA.GaBcDe.abcdefghijklmnopqrstuvwxyz0123456789"
    event = {
        "event": f"connecting with {token}",
        "headers": {"X-Auth-Token": "X-Auth-Token: abcdef0123456789abcdef"},
        "args": ["Bearer abcdefghijklmnopqrstuvwxyz", 3],
        "count": 3,
    }
    cleaned = sanitize_secrets(None, "info", event)
    assert token not in cleaned["event"]
    assert "***REDACTED***" in cleaned["event"]
    assert "abcdef0123456789abcdef" not in cleaned["headers"]["X-Auth-Token"]
    assert cleaned["args"][0] == "***REDACTED***"
    assert cleaned["args"][1] == 3
    assert cleaned["count"] == 3


def test_sanitize_secrets_leaves_ordinary_text():
    event = {"event": "command_processed", "path": "%tier create"}
    assert sanitize_secrets(None, "info", dict(event)) == event


def test_setup_logging_creates_subsystem_files(tmp_path):
    config = MagicMock()
    config.log_dir = tmp_path / "logs"
    config.logging_level = "info"
    config.logging_subsystem_levels = {"commands": "DEBUG"}
    config.logging_max_file_size_mb = 1
    config.logging_backup_count = 2

    setup_logging(config)

    assert logging.getLogger("tigerdyno.commands").level == logging.DEBUG
    assert logging.getLogger("tigerdyno.database").level == logging.INFO
    for subsystem in SUBSYSTEMS:
        handlers = logging.getLogger(f"tigerdyno.{subsystem}").handlers
        assert len(handlers) == 1
        assert handlers[0].baseFilename.endswith(f"{subsystem}.log")
    assert (tmp_path / "logs" / "tigerdyno.log").exists()
