"""Tests for panel_tracker/transport/requests_transport.py. The session is mocked."""

from unittest.mock import MagicMock

import pytest
import requests

from panel_tracker.transport.base import TransportError
from panel_tracker.transport.requests_transport import RequestsTransport

URL = "https://docs.google.com/spreadsheets/d/x/gviz/tq?tqx=out:csv&sheet=round1"


def _session(content: bytes = b"", status: int = 200, exc: Exception | None = None) -> MagicMock:
    session = MagicMock(spec=requests.Session)
    if exc is not None:
        session.get.side_effect = exc
        return session
    response = requests.Response()
    response.status_code = status
    response._content = content
    response.url = URL
    session.get.return_value = response
    return session


async def test_get_text_returns_body():
    session = _session(b"Name,Status\nAsha,Ongoing\n")
    transport = RequestsTransport(session)
    text = await transport.get_text(URL, 5.0)

    assert text.startswith("Name,Status")
    session.get.assert_called_once()
    _, kwargs = session.get.call_args
    assert kwargs["timeout"] == 5.0
    assert kwargs["headers"]["Accept"] == "text/csv"


async def test_get_text_strips_bom():
    transport = RequestsTransport(_session("\ufeffName\nAsha\n".encode("utf-8")))
    assert await transport.get_text(URL, 5.0) == "Name\nAsha\n"


async def test_http_error_becomes_transport_error():
    transport = RequestsTransport(_session(status=404))
    with pytest.raises(TransportError, match="HTTP 404"):
        await transport.get_text(URL, 5.0)


async def test_timeout_becomes_transport_error():
    transport = RequestsTransport(_session(exc=requests.Timeout("slow")))
    with pytest.raises(TransportError, match="timed out"):
        await transport.get_text(URL, 5.0)


async def test_connection_error_becomes_transport_error():
    transport = RequestsTransport(_session(exc=requests.ConnectionError("refused")))
    with pytest.raises(TransportError, match="refused") as exc_info:
        await transport.get_text(URL, 5.0)
    assert exc_info.value.route == "requests"


def test_close_closes_session():
    session = _session()
    RequestsTransport(session).close()
    session.close.assert_called_once()
