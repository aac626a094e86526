"""Tests for the fetch_json HTTP primitive."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from utils.errors import HttpError, InvalidJson
from utils.http import fetch_json


def _mock_response(json_data=None, status_code: int = 200, reason: str = "OK",
                   text: str = "") -> MagicMock:
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.reason = reason
    resp.text = text
    if isinstance(json_data, Exception):
        resp.json.side_effect = json_data
    else:
        resp.json.return_value = json_data
    return resp


class TestFetchJson:
    @patch("utils.http.requests.get")
    def test_returns_decoded_body(self, mock_get):
        mock_get.return_value = _mock_response({"ok": True})
        assert fetch_json("https://api.test/x") == {"ok": True}

    @patch("utils.http.requests.get")
    def test_headers_passed_verbatim(self, mock_get):
        mock_get.return_value = _mock_response([])
        fetch_json("https://api.test/x", {"Circle-Token": "abc"})
        _, kwargs = mock_get.call_args
        assert kwargs["headers"] == {"Circle-Token": "abc"}
        assert kwargs["timeout"] is None

    @patch("utils.http.requests.get")
    def test_no_default_headers(self, mock_get):
        mock_get.return_value = _mock_response([])
        fetch_json("https://api.test/x")
        assert mock_get.call_args[1]["headers"] == {}

    @patch("utils.http.requests.get")
    def test_non_2xx_raises_http_error(self, mock_get):
        mock_get.return_value = _mock_response(status_code=403, reason="Forbidden")
        with pytest.raises(HttpError) as excinfo:
            fetch_json("https://api.test/x")
        err = excinfo.value
        assert err.status == 403
        assert err.status_text == "Forbidden"
        assert err.url == "https://api.test/x"
        assert str(err) == "HTTP 403 Forbidden for https://api.test/x"

    @patch("utils.http.requests.get")
    def test_invalid_json_raises(self, mock_get):
        mock_get.return_value = _mock_response(
            ValueError("Expecting value"), text="<html>oops</html>",
        )
        with pytest.raises(InvalidJson) as excinfo:
            fetch_json("https://api.test/x")
        assert excinfo.value.raw_body == "<html>oops</html>"

    @patch("utils.http.requests.get")
    def test_connection_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ConnectionError, match="Cannot reach"):
            fetch_json("https://api.test/x")

    @patch("utils.http.requests.get")
    def test_timeout(self, mock_get):
        mock_get.side_effect = requests.Timeout()
        with pytest.raises(TimeoutError):
            fetch_json("https://api.test/x", timeout=5)

    @patch("utils.http.requests.get")
    def test_no_retry(self, mock_get):
        mock_get.return_value = _mock_response(status_code=503, reason="Service Unavailable")
        with pytest.raises(HttpError):
            fetch_json("https://api.test/x")
        assert mock_get.call_count == 1
