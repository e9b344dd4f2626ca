"""
Exceptions raised by the MyMobile API client.

Every failure surfaced by the client derives from MyMobileError, so callers
can catch a single type when they do not care about the cause.
"""

from typing import Optional


class MyMobileError(Exception):
    """Base class for all client errors"""


class EncodeError(MyMobileError):
    """The request body could not be serialized to JSON"""


class TransportError(MyMobileError):
    """The HTTP exchange itself failed (connection, TLS, timeout)"""


class DecodeError(MyMobileError):
    """A successful response body could not be decoded"""


class APIError(MyMobileError):
    """The API answered with a status outside 200-299"""

    def __init__(self, message: str, status_code: int, envelope=None, headers=None):
        super().__init__(message)
        self.status_code = status_code
        self.envelope = envelope
        self.headers = headers


class AuthenticationError(MyMobileError):
    """Obtaining a bearer token from the Authentication endpoint failed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
