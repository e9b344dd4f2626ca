import json
from unittest import mock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from mock_gateway import create_app


def make_response(status_code=200, body=None, headers=None, raw=None):
    """Build a requests.Response without touching the network"""
    response = requests.Response()
    response.status_code = status_code
    if raw is not None:
        response._content = raw
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    response.headers = CaseInsensitiveDict(headers or {"Content-Type": "application/json"})
    response.encoding = "utf-8"
    return response


AUTH_BODY = {"token": "tok-123", "schema": "JWT", "expiresInMinutes": 20}


@pytest.fixture
def http_session():
    """A requests.Session stand-in whose first call answers Authentication"""
    session = mock.Mock(spec=requests.Session)
    session.request.side_effect = [make_response(200, AUTH_BODY)]
    return session


def queue_responses(session, *responses):
    """Replace the queued responses of a mocked session"""
    session.request.side_effect = list(responses)


class FlaskSession:
    """Route requests.Session calls into a Flask test client"""

    def __init__(self, app, prefix="http://gateway.test"):
        self.client = app.test_client()
        self.prefix = prefix
        self.calls = []

    def request(self, method, url, headers=None, data=None, timeout=None):
        self.calls.append((method, url, headers))
        path = url[len(self.prefix):]
        result = self.client.open(path, method=method, headers=headers, data=data)
        return make_response(result.status_code, raw=result.get_data(),
                             headers=dict(result.headers))

    def close(self):
        pass


@pytest.fixture
def gateway_app(tmp_path):
    return create_app({
        "TESTING": True,
        "MOCK_CLIENT_ID": "test-client",
        "MOCK_CLIENT_SECRET": "test-secret",
        "MOCK_BALANCE": 50,
        "MOCK_TOKEN_TTL_MINUTES": 20,
        "MOCK_DATABASE_PATH": str(tmp_path / "tokens.db"),
    })


@pytest.fixture
def gateway_session(gateway_app):
    return FlaskSession(gateway_app)
