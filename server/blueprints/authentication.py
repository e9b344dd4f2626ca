"""
Authentication Blueprint for the MyMobile stub gateway

This blueprint emulates the token issuing side of the MyMobile REST API.

To register this blueprint in your Flask app:
    from blueprints.authentication import auth_bp
    app.register_blueprint(auth_bp)

Endpoints:
    GET /v1/Authentication - Exchange client credentials for a bearer token

Usage Flow:
    1. GET /v1/Authentication with "Authorization: BASIC base64(id:secret)"
    2. Send "Authorization: Bearer <token>" on every other endpoint
"""

import base64
import binascii
import logging
import secrets
from functools import wraps
from http import HTTPStatus

from flask import Blueprint, current_app, g, jsonify, request

from src.tokens import clean_expired_tokens, get_client_for_token, issue_token

# Set up logger for this module
logger = logging.getLogger(__name__)

# Create the auth blueprint
auth_bp = Blueprint('authentication', __name__, url_prefix='/v1')


def standard_error(status_code, message="", errors=None, cause=""):
    """Build a response in the API's standard error envelope"""
    body = {
        "code": status_code,
        "message": message,
        "uuid": secrets.token_hex(16),
        "object": "",
        "cause": cause,
        "status": HTTPStatus(status_code).phrase,
        "errors": errors or [],
    }
    return jsonify(body), status_code


def parse_basic_credentials(header):
    """Decode "BASIC base64(id:secret)" into (id, secret), or None"""
    scheme, _, encoded = header.partition(' ')
    if scheme.lower() != 'basic' or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError):
        return None
    if ':' not in decoded:
        return None
    client_id, secret = decoded.split(':', 1)
    return client_id, secret


def require_token(view):
    """Reject requests without a valid, unexpired bearer token"""
    @wraps(view)
    def wrapper(*args, **kwargs):
        scheme, _, token = request.headers.get('Authorization', '').partition(' ')
        client_id = None
        if scheme.lower() == 'bearer' and token:
            client_id = get_client_for_token(token.strip(), current_app.config['MOCK_DATABASE_PATH'])

        if client_id is None:
            logger.warning(f"Rejected {request.method} {request.path} from {request.remote_addr}: missing or expired token")
            return standard_error(401, "Authorization has been denied for this request.")

        g.client_id = client_id
        return view(*args, **kwargs)
    return wrapper


@auth_bp.route("/Authentication", methods=["GET"])
def authenticate():
    """Issue a bearer token for valid client credentials"""
    client_ip = request.remote_addr
    credentials = parse_basic_credentials(request.headers.get('Authorization', ''))
    if credentials is None:
        logger.warning(f"Authentication request without basic credentials from {client_ip}")
        return standard_error(401, "Authorization has been denied for this request.")

    client_id, secret = credentials
    expected_id = current_app.config['MOCK_CLIENT_ID']
    expected_secret = current_app.config['MOCK_CLIENT_SECRET']
    if not (secrets.compare_digest(client_id.encode(), expected_id.encode())
            and secrets.compare_digest(secret.encode(), expected_secret.encode())):
        logger.warning(f"Authentication failed for client '{client_id}' from {client_ip}")
        return standard_error(401, "Invalid client credentials")

    database_path = current_app.config['MOCK_DATABASE_PATH']
    ttl_minutes = current_app.config['MOCK_TOKEN_TTL_MINUTES']
    token = issue_token(client_id, database_path, ttl_minutes)
    clean_expired_tokens(database_path)

    logger.info(f"Token issued for client '{client_id}' from {client_ip}")
    return jsonify({"token": token, "schema": "JWT", "expiresInMinutes": ttl_minutes})
