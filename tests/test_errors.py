"""
Error taxonomy and logging setup.
"""

import logging

import pytest

from hl_l1.errors import (
    EncodingError,
    HyperliquidError,
    InvalidNumber,
    RemoteRejected,
    UnknownAsset,
    create_structured_error_response,
    sanitize_error_message,
    with_index,
)
from hl_l1.logs import setup_logging


class TestErrors:

    @pytest.mark.parametrize("cls,code", [
        (InvalidNumber, "INVALID_NUMBER"),
        (EncodingError, "ENCODING_ERROR"),
        (UnknownAsset, "UNKNOWN_ASSET"),
        (RemoteRejected, "REMOTE_REJECTED"),
    ])
    def test_codes(self, cls, code):
        err = cls()
        assert isinstance(err, HyperliquidError)
        assert err.error_code == code
        assert err.details == {}

    def test_with_index_keeps_kind_and_details(self):
        err = with_index(UnknownAsset("unknown asset: DOGE", {"coin": "DOGE"}), "order", 2)
        assert type(err) is UnknownAsset
        assert err.message == "failed to build order 2: unknown asset: DOGE"
        assert err.details == {"coin": "DOGE", "index": 2}

    def test_structured_response(self):
        out = create_structured_error_response(InvalidNumber("non-finite value: nan", {"value": "nan"}))
        assert out == {"error_type": "INVALID_NUMBER", "message": "non-finite value: nan", "details": {"value": "nan"}}
        assert create_structured_error_response(KeyError("x"))["error_type"] == "UNKNOWN_ERROR"

    def test_sanitize(self):
        assert "private_key" not in sanitize_error_message("bad private_key supplied")

    @pytest.mark.parametrize("message", ["PRIVATE_KEY leaked", "Private_Key leaked", "bad SECRET in env"])
    def test_sanitize_ignores_case(self, message):
        out = sanitize_error_message(message).lower()
        assert "private_key" not in out
        assert "secret" not in out
        assert "***" in out


class TestLogging:

    def test_file_rotation_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "hl.log"
        root = logging.getLogger()
        before = list(root.handlers)
        try:
            setup_logging(logging.INFO, str(log_file))
            added = [h for h in root.handlers if h not in before]
            assert len(added) == 1
            assert added[0].backupCount == 7
            logging.getLogger("hl_private").warning("[hl_private] hello")
            added[0].flush()
            assert "[hl_private] hello" in log_file.read_text(encoding="utf-8")
        finally:
            for h in root.handlers:
                if h not in before:
                    root.removeHandler(h)
                    h.close()
