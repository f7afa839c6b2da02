"""Tests for configuration, error payloads and logging helpers."""
import json
import logging

import pytest
from pydantic import ValidationError

from vatledger.core.config import BaseAppSettings, ProdSettings, TestSettings as AppTestSettings
from vatledger.core.exceptions import FormattingError, LedgerQueryError, SequencerError
from vatledger.core.logger import JsonFormatter
from vatledger.core.redis_utils import cert_policy, prepare_redis_url


def test_error_payload_shape():
    payload = LedgerQueryError("t1", "timeout").to_dict()
    assert payload == {
        "error": {
            "message": "Could not read ledger for tenant t1: timeout",
            "code": "TAX320",
            "retryable": True,
            "details": {"tenant_id": "t1", "reason": "timeout"},
        }
    }


def test_sequencer_and_formatting_errors_are_not_retryable():
    assert SequencerError("receipt_counter:t1:2026").retryable is False
    assert FormattingError("bad figure", field="standard_rate").status_code == 500


def test_business_offset_validated():
    with pytest.raises(ValidationError):
        BaseAppSettings(BUSINESS_UTC_OFFSET_HOURS=15)


def test_postgres_url_normalised():
    settings = AppTestSettings(DATABASE_URL="postgres://u:p@localhost/db")
    assert settings.DATABASE_URL == "postgresql://u:p@localhost/db"


def test_prod_defaults_to_json_logs():
    assert ProdSettings(DATABASE_URL="postgresql://u:p@db/ledger").LOG_FORMAT == "json"


def test_rediss_url_gets_cert_requirements():
    url = prepare_redis_url("rediss://:secret@cache.example.com:6380/0")
    assert "ssl_cert_reqs=required" in url
    assert "ssl_ca_certs=" in url


def test_plain_redis_url_unchanged():
    assert prepare_redis_url("redis://localhost:6379/0") == "redis://localhost:6379/0"


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("vatledger.test", logging.INFO, __file__, 1, "issued %s", ("REC-2026-000001",), None)
    record.tenant_id = "t1"
    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "issued REC-2026-000001"
    assert payload["level"] == "INFO"
    assert payload["service"] == "vatledger"
    assert payload["extra"] == {"tenant_id": "t1"}


def test_json_formatter_omits_empty_extra():
    record = logging.LogRecord("vatledger.test", logging.WARNING, __file__, 1, "plain", None, None)
    assert "extra" not in json.loads(JsonFormatter().format(record))


def test_unknown_cert_policy_falls_back_to_required():
    assert cert_policy("OPTIONAL") == "optional"
    assert cert_policy("sometimes") == "required"
