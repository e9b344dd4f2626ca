"""
MyMobile Client

A Python client library for the MyMobile SMS gateway REST API.
"""

from .api_client import (
    AuthState, MyMobileAPIClient, SessionToken, get_balance, parse_config, send_sms
)
from .config import MyMobileConfig
from .exceptions import (
    APIError, AuthenticationError, DecodeError, EncodeError, MyMobileError, TransportError
)
from .models import (
    BulkMessageRequest, BulkMessageResponse, CostBreakdown, Document, ErrorReport, Fault,
    GroupMessageRequest, Message, SendOptions, StandardError, StandardResponse
)

__all__ = [
    'MyMobileAPIClient',
    'MyMobileConfig',
    'AuthState',
    'SessionToken',
    'get_balance',
    'parse_config',
    'send_sms',
    'MyMobileError',
    'APIError',
    'AuthenticationError',
    'DecodeError',
    'EncodeError',
    'TransportError',
    'BulkMessageRequest',
    'BulkMessageResponse',
    'CostBreakdown',
    'Document',
    'ErrorReport',
    'Fault',
    'GroupMessageRequest',
    'Message',
    'SendOptions',
    'StandardError',
    'StandardResponse',
]

__version__ = "0.1.0"
