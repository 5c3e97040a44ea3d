"""Tests for structured logging helpers."""

import json
import logging

from codehost.core.logging import StructuredFormatter, get_logger, mask_sensitive


class TestMaskSensitive:
    """Tests for sensitive value masking."""

    def test_masks_credentials(self):
        masked = mask_sensitive({
            "password": "hunter2",
            "client_secret": "0123456789abcdef",
            "access_token": "gho_0123456789",
            "address": "https://github.com",
        })

        assert masked["password"] == "[REDACTED]"
        assert masked["client_secret"] == "0123...cdef"
        assert masked["access_token"] == "gho_...6789"
        assert masked["address"] == "https://github.com"

    def test_masks_oauth_callback_parameters(self):
        masked = mask_sensitive({"code": "abc", "state": "gAAAAABlongstate", "code_host_id": 5})

        assert masked["code"] == "[REDACTED]"
        assert masked["state"] == "gAAA...tate"
        assert masked["code_host_id"] == 5

    def test_masks_nested(self):
        masked = mask_sensitive({"query": {"state": "s", "redirect_uri": "https://a"}})

        assert masked["query"] == {"state": "[REDACTED]", "redirect_uri": "https://a"}


class TestStructuredLogger:
    """Tests for keyword extra fields."""

    def test_extra_fields_reach_json_output(self):
        logger = get_logger("codehost.tests.logging")
        records = []

        class Capture(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = Capture()
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        try:
            logger.info("Code host created", code_host_id=3, client_secret="topsecretvalue")
        finally:
            logger.removeHandler(handler)

        entry = json.loads(StructuredFormatter().format(records[0]))
        assert entry["message"] == "Code host created"
        assert entry["code_host_id"] == 3
        assert entry["client_secret"] == "tops...alue"
