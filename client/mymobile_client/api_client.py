"""
MyMobile API Client Module

This module talks to the MyMobile SMS gateway REST API. A client
authenticates with its client ID and secret, receives a short lived bearer
token, and sends every further request with that token.
"""

import base64
import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Tuple

import requests
from requests.structures import CaseInsensitiveDict

from .config import DEFAULT_ENDPOINT, DEFAULT_TIMEOUT, MyMobileConfig
from .exceptions import (
    APIError, AuthenticationError, DecodeError, EncodeError, MyMobileError, TransportError
)
from .logging_config import log_sms_event
from .models import (
    AuthenticationResponse, BalanceResponse, BulkMessageRequest, BulkMessageResponse,
    GroupMessageRequest, Message, SendOptions, StandardResponse
)

logger = logging.getLogger(__name__)

DUMP_SEPARATOR = "======================================="


class AuthState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class SessionToken:
    """A bearer token and the moment it stops being valid"""

    # Full Authorization header value, "Bearer <token>"
    token: str
    expires_at: datetime

    @property
    def expired(self) -> bool:
        return datetime.now(timezone.utc) >= self.expires_at


class MyMobileAPIClient:
    """Client for the MyMobile REST API

    Construction authenticates immediately and raises AuthenticationError if
    that fails. Tokens are not refreshed automatically: call authenticate()
    again once token_expired is True.
    """

    def __init__(self, client_id: str, client_secret: str, debug: bool = False,
                 endpoint: str = DEFAULT_ENDPOINT, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        credentials = f"{client_id}:{client_secret}".encode("utf-8")
        self._authorization = "BASIC " + base64.b64encode(credentials).decode("ascii")
        self.endpoint = endpoint
        self.debug = debug
        self.timeout = timeout

        self._owns_session = session is None
        self._http = session if session is not None else requests.Session()

        self._session_token: Optional[SessionToken] = None
        self._token_lock = threading.Lock()

        try:
            self.authenticate()
        except AuthenticationError:
            self.close()
            raise

    @classmethod
    def from_config(cls, config: MyMobileConfig,
                    session: Optional[requests.Session] = None) -> "MyMobileAPIClient":
        return cls(
            config.client_id,
            config.client_secret,
            debug=config.debug,
            endpoint=config.endpoint,
            timeout=config.timeout,
            session=session,
        )

    def close(self):
        """Close the HTTP session if this client created it"""
        if self._owns_session:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def auth_state(self) -> AuthState:
        if self._session_token is None:
            return AuthState.UNAUTHENTICATED
        return AuthState.AUTHENTICATED

    @property
    def session_token(self) -> Optional[SessionToken]:
        return self._session_token

    @property
    def token_expiry(self) -> Optional[datetime]:
        session_token = self._session_token
        return session_token.expires_at if session_token else None

    @property
    def token_expired(self) -> bool:
        session_token = self._session_token
        return session_token is None or session_token.expired

    def authenticate(self) -> SessionToken:
        """Get a new bearer token for use in future requests

        Always authenticates with the client credentials. The current token
        is only replaced once the whole response has been validated.
        """
        try:
            auth, _ = self._send("GET", "Authentication", None, AuthenticationResponse,
                                 self._authorization)
        except APIError as e:
            logger.error(f"Authentication rejected by API: {e}")
            raise AuthenticationError(f"Authentication failed: {e}", status_code=e.status_code) from e
        except MyMobileError as e:
            logger.error(f"Authentication request failed: {e}")
            raise AuthenticationError(f"Authentication failed: {e}") from e

        if not isinstance(auth.token, str) or not auth.token:
            raise AuthenticationError("Authentication response did not contain a token")

        minutes = auth.expires_in_minutes
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            raise AuthenticationError(
                f"Authentication response has invalid expiresInMinutes: {minutes!r}")

        try:
            expires_at = datetime.now(timezone.utc) + timedelta(minutes=minutes)
        except OverflowError as e:
            raise AuthenticationError(
                f"Authentication response has invalid expiresInMinutes: {minutes!r}") from e

        session_token = SessionToken(token="Bearer " + auth.token, expires_at=expires_at)

        # Concurrent authenticate() calls: last writer wins
        with self._token_lock:
            self._session_token = session_token

        logger.info(f"Authenticated with MyMobile API, token valid for {minutes} minutes")
        return session_token

    def request(self, method: str, path: str, body: Any = None,
                response_model=None) -> Tuple[Any, CaseInsensitiveDict]:
        """
        Send an authenticated request to the API

        Args:
            method: HTTP method
            path: Path relative to the API endpoint, e.g. "Balance"
            body: Request body; a model with to_dict() or anything json can encode
            response_model: Class with a from_dict() classmethod to decode into

        Returns:
            Tuple of the decoded payload and the response headers

        Raises:
            EncodeError: body could not be serialized
            TransportError: the HTTP exchange failed
            APIError: status outside 200-299
            DecodeError: a successful response body could not be decoded
        """
        return self._send(method, path, body, response_model, self._authorization_header())

    def get(self, path: str, body: Any = None, response_model=None):
        return self.request("GET", path, body, response_model)

    def post(self, path: str, body: Any = None, response_model=None):
        return self.request("POST", path, body, response_model)

    def put(self, path: str, body: Any = None, response_model=None):
        return self.request("PUT", path, body, response_model)

    def patch(self, path: str, body: Any = None, response_model=None):
        return self.request("PATCH", path, body, response_model)

    def delete(self, path: str, body: Any = None, response_model=None):
        return self.request("DELETE", path, body, response_model)

    def get_balance(self) -> int:
        """Return the current account balance

        Post paid accounts always report 1000000 since no credit is deducted.
        """
        balance, _ = self.get("Balance", response_model=BalanceResponse)
        return balance.balance

    def send_bulk_messages(self, bulk_request: BulkMessageRequest) -> BulkMessageResponse:
        """Send SMS messages to multiple recipients"""
        destinations = [m.destination for m in bulk_request.messages if m.destination]
        try:
            response, _ = self.post("BulkMessages", bulk_request, BulkMessageResponse)
        except MyMobileError as e:
            log_sms_event('sms_failed', destinations=destinations, success=False, error=str(e))
            raise

        log_sms_event('sms_sent', event_id=response.event_id, destinations=destinations,
                      cost=response.cost)
        return response

    def send_group_messages(self, group_request: GroupMessageRequest) -> BulkMessageResponse:
        """Send an SMS message to every contact in one or more groups"""
        try:
            response, _ = self.post("GroupMessages", group_request, BulkMessageResponse)
        except MyMobileError as e:
            log_sms_event('sms_failed', groups=group_request.groups, success=False, error=str(e))
            raise

        log_sms_event('sms_sent', event_id=response.event_id, groups=group_request.groups,
                      cost=response.cost)
        return response

    def _authorization_header(self) -> str:
        # Client credentials are only accepted by the Authentication endpoint
        session_token = self._session_token
        if session_token is None:
            return self._authorization
        return session_token.token

    def _send(self, method, path, body, response_model, authorization):
        data = self._encode_body(body)
        url = self.endpoint + path
        headers = {
            "Authorization": authorization,
            "Content-Type": "application/json",
        }

        try:
            response = self._http.request(method, url, headers=headers, data=data,
                                          timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise TransportError(f"{method} {path} failed: {e}") from e

        if self.debug:
            self._dump_exchange(response)

        if response.status_code < 200 or response.status_code > 299:
            envelope = self._decode_envelope(response)
            message = envelope.error_message(response.status_code)
            logger.warning(f"{method} {path} returned {response.status_code}: {message}")
            raise APIError(message, response.status_code, envelope, response.headers)

        return self._decode_payload(path, response, response_model), response.headers

    @staticmethod
    def _encode_body(body) -> Optional[bytes]:
        if body is None:
            return None
        try:
            if hasattr(body, "to_dict"):
                body = body.to_dict()
            payload = json.dumps(body)
        except (AttributeError, TypeError, ValueError) as e:
            raise EncodeError(f"Failed to encode request body: {e}") from e
        if payload == "null":
            return None
        return payload.encode("utf-8")

    @staticmethod
    def _decode_envelope(response: requests.Response) -> StandardResponse:
        try:
            data = response.json()
        except ValueError:
            return StandardResponse()
        if not isinstance(data, dict):
            return StandardResponse()
        try:
            return StandardResponse.from_dict(data)
        except (AttributeError, TypeError):
            return StandardResponse(message=data.get("message") or "")

    @staticmethod
    def _decode_payload(path, response: requests.Response, response_model):
        if not response.content:
            data = {}
        else:
            try:
                data = response.json()
            except ValueError as e:
                raise DecodeError(f"Failed to decode {path} response: {e}") from e

        if response_model is None:
            return data
        if not isinstance(data, dict):
            raise DecodeError(f"Unexpected {path} response: expected an object, got {type(data).__name__}")
        try:
            return response_model.from_dict(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise DecodeError(f"Failed to decode {path} response: {e}") from e

    @staticmethod
    def _dump_exchange(response: requests.Response):
        """Print the raw request and response to stdout"""
        prepared = response.request
        if prepared is not None:
            print(f"{DUMP_SEPARATOR}\nREQUEST:")
            print(f"{prepared.method} {prepared.url}")
            for name, value in prepared.headers.items():
                print(f"{name}: {value}")
            print()
            request_body = prepared.body
            if isinstance(request_body, bytes):
                request_body = request_body.decode("utf-8", errors="replace")
            if request_body:
                print(request_body)

        print(f"{DUMP_SEPARATOR}\nRESPONSE:")
        print(f"HTTP {response.status_code} {response.reason or ''}".rstrip())
        for name, value in response.headers.items():
            print(f"{name}: {value}")
        print()
        if response.text:
            print(response.text)


def parse_config(config_path: Optional[str] = None) -> MyMobileConfig:
    """
    Read the client configuration

    Args:
        config_path: Path to the configuration file

    Returns:
        MyMobileConfig: Configuration object
    """
    return MyMobileConfig(config_path)


def get_balance(api_config: MyMobileConfig) -> int:
    """
    Get the account balance

    Args:
        api_config: MyMobile API configuration

    Returns:
        int: Remaining credits
    """
    with MyMobileAPIClient.from_config(api_config) as client:
        return client.get_balance()


def send_sms(api_config: MyMobileConfig, message: str, to_number: Optional[str] = None,
             sender_id: Optional[str] = None) -> BulkMessageResponse:
    """
    Send a single SMS message

    Args:
        api_config: MyMobile API configuration
        message: The message to send
        to_number: Recipient phone number, defaults to the configured to_number
        sender_id: Sender ID, defaults to the configured sender_id

    Returns:
        BulkMessageResponse: Response from the API
    """
    recipient = to_number or api_config.to_number
    if not recipient:
        raise ValueError("No recipient phone number given or configured")

    bulk_request = BulkMessageRequest(
        messages=[Message(content=message, destination=recipient)],
        send_options=SendOptions(sender_id=sender_id or api_config.sender_id),
    )
    with MyMobileAPIClient.from_config(api_config) as client:
        return client.send_bulk_messages(bulk_request)
