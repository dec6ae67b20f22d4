"""
Tests for structured logging and PII masking.
"""

import json
import logging
import sys

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.middleware.logging import (
    StructuredFormatter,
    StructuredLoggingMiddleware,
    is_sensitive_field,
    mask_headers,
    mask_sensitive_data,
    should_log_request,
)


class TestSensitiveFieldDetection:
    """Test sensitive field name detection."""

    @pytest.mark.parametrize("field_name,expected", [
        ("password", True),
        ("Password", True),
        ("token", True),
        ("personal_number", True),
        ("personalNumber", True),
        ("cookie", True),
        ("username", False),
        ("competence_id", False),
    ])
    def test_sensitive_field_patterns(self, field_name, expected):
        assert is_sensitive_field(field_name) is expected


class TestDataMasking:
    """Test masking of request data."""

    def test_sensitive_keys_redacted(self):
        masked = mask_sensitive_data({
            "username": "alice01",
            "password": "alicepass",
            "personal_number": "19811218-9876",
        })

        assert masked == {
            "username": "alice01",
            "password": "[REDACTED]",
            "personal_number": "[REDACTED]",
        }

    def test_pii_in_free_text(self):
        masked = mask_sensitive_data({"note": "alice@example.com 19811218-9876"})
        assert masked["note"] == "[EMAIL] [PERSONAL_NUMBER]"

    def test_nested_structures(self):
        masked = mask_sensitive_data({"users": [{"email": "bob@example.com"}]})
        assert masked["users"][0]["email"] == "[EMAIL]"

    def test_max_depth(self):
        data = {"a": "x"}
        for _ in range(12):
            data = {"a": data}
        assert "[MAX_DEPTH_EXCEEDED]" in json.dumps(mask_sensitive_data(data))

    def test_header_masking(self):
        masked = mask_headers({
            "authorization": "Bearer abc.def",
            "cookie": "recruitmentAuth=abc",
            "accept": "application/json",
        })

        assert masked["authorization"] == "Bearer [REDACTED]"
        assert masked["cookie"] == "[REDACTED]"
        assert masked["accept"] == "application/json"

    @pytest.mark.parametrize("path,expected", [
        ("/health", False),
        ("/ready", False),
        ("/api/v1/applications", True),
    ])
    def test_should_log_request(self, path, expected):
        assert should_log_request(path) is expected


class TestStructuredLoggingMiddleware:
    """Test request logging."""

    @pytest.fixture
    def client(self):
        app = FastAPI()

        @app.post("/echo")
        async def echo():
            return {"ok": True}

        app.add_middleware(StructuredLoggingMiddleware, log_request_body=True)
        return TestClient(app)

    def test_request_id_generated(self, client):
        response = client.post("/echo", json={})
        assert response.headers["x-request-id"]

    def test_request_id_propagated(self, client):
        response = client.post("/echo", json={}, headers={"x-request-id": "req-42"})
        assert response.headers["x-request-id"] == "req-42"

    def test_body_logged_masked(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="core.middleware.logging"):
            client.post("/echo", json={"username": "alice01", "password": "alicepass"})

        started = [
            json.loads(record.getMessage())
            for record in caplog.records
            if '"request_started"' in record.getMessage()
        ]
        assert started[0]["body"] == {"username": "alice01", "password": "[REDACTED]"}
        assert "alicepass" not in caplog.text


class TestStructuredFormatter:
    """Test the JSON log formatter."""

    def test_formats_json(self):
        record = logging.LogRecord("app", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.request_id = "req-1"

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["request_id"] == "req-1"

    def test_json_events_embedded(self):
        message = json.dumps({"event": "request_completed", "status_code": 200})
        record = logging.LogRecord("app", logging.INFO, __file__, 1, message, (), None)

        data = json.loads(StructuredFormatter().format(record))

        assert data["event"] == {"event": "request_completed", "status_code": 200}
        assert "message" not in data

    def test_exception_masked(self):
        try:
            raise ValueError("duplicate key alice@example.com")
        except ValueError:
            record = logging.LogRecord(
                "app", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        data = json.loads(StructuredFormatter().format(record))

        assert data["exception"]["type"] == "ValueError"
        assert "alice@example.com" not in json.dumps(data)
