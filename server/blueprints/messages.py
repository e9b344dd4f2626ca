"""
Messages Blueprint for the MyMobile stub gateway

This blueprint emulates the balance and send endpoints of the MyMobile REST
API. Nothing is delivered: sends are validated, priced at one credit per
SMS part and deducted from an in-process balance.

To register this blueprint in your Flask app:
    from blueprints.messages import messages_bp
    app.register_blueprint(messages_bp)

Endpoints:
    GET  /v1/Balance       - Current balance
    POST /v1/BulkMessages  - Send messages to individual destinations
    POST /v1/GroupMessages - Send one message to contact groups
"""

import logging
import math
import secrets
import threading

from flask import Blueprint, current_app, g, jsonify, request

from blueprints.authentication import require_token, standard_error

# Set up logger for this module
logger = logging.getLogger(__name__)

messages_bp = Blueprint('messages', __name__, url_prefix='/v1')

MAX_MESSAGES = 100
SINGLE_PART_LENGTH = 160
MULTI_PART_LENGTH = 153

_balance_lock = threading.Lock()


def count_parts(content):
    """Number of SMS parts needed for a message"""
    if len(content) <= SINGLE_PART_LENGTH:
        return 1
    return math.ceil(len(content) / MULTI_PART_LENGTH)


def field_error(name, description):
    return {"location": "body", "name": name, "description": description}


def validate_message(message, prefix, require_destination=True):
    if not isinstance(message, dict):
        return [field_error(prefix, "Message must be an object")]

    errors = []
    content = message.get('Content')
    if not content:
        errors.append(field_error(f"{prefix}.Content", "Content is required"))
    elif not isinstance(content, str):
        errors.append(field_error(f"{prefix}.Content", "Content must be a string"))
    if require_destination:
        destination = message.get('Destination')
        if not destination:
            errors.append(field_error(f"{prefix}.Destination", "Destination is required"))
        elif not isinstance(destination, str):
            errors.append(field_error(f"{prefix}.Destination", "Destination must be a string"))
    return errors


def validate_send_options(send_options):
    if send_options is not None and not isinstance(send_options, dict):
        return [field_error("SendOptions", "SendOptions must be an object")]
    return []


def charge(parts, test_mode):
    """Deduct credits for a send and return (cost, remaining balance), or
    None if the balance is too low"""
    with _balance_lock:
        balance = current_app.config['MOCK_BALANCE']
        if test_mode:
            return parts, balance
        if parts > balance:
            return None
        balance -= parts
        current_app.config['MOCK_BALANCE'] = balance
        return parts, balance


def send_response(parts, messages, network_counts, send_options):
    test_mode = bool(send_options.get('TestMode'))
    charged = charge(parts, test_mode)
    if charged is None:
        logger.warning(f"Send from client '{g.client_id}' rejected: insufficient credits")
        return standard_error(400, "Insufficient credits")

    cost, remaining = charged
    response = {
        "cost": cost,
        "remainingBalance": remaining,
        "eventId": secrets.randbelow(10**9),
        "sample": messages[0],
        "costBreakdown": [
            {"quantity": quantity, "cost": quantity, "network": network}
            for network, quantity in network_counts.items()
        ],
        "messages": len(messages),
        "parts": parts,
        "errorReport": {"noNetwork": 0, "duplicates": 0, "optedOuts": 0, "faults": []},
    }
    logger.info(f"Send accepted for client '{g.client_id}' - event {response['eventId']}, "
                f"{len(messages)} messages, {parts} parts, test_mode={test_mode}")
    return jsonify(response)


@messages_bp.route("/Balance", methods=["GET"])
@require_token
def get_balance():
    """Return the remaining credits"""
    return jsonify({"balance": current_app.config['MOCK_BALANCE']})


@messages_bp.route("/BulkMessages", methods=["POST"])
@require_token
def send_bulk_messages():
    """Accept a batch of messages to individual destinations"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return standard_error(400, "The request body must be a JSON object")

    messages = data.get('Messages')
    if not isinstance(messages, list) or not messages:
        return standard_error(400, errors=[field_error("Messages", "At least one message is required")])
    if len(messages) > MAX_MESSAGES:
        return standard_error(400, errors=[field_error("Messages", f"At most {MAX_MESSAGES} messages are allowed")])

    errors = []
    for index, message in enumerate(messages):
        errors.extend(validate_message(message, f"Messages[{index}]"))
    errors.extend(validate_send_options(data.get('SendOptions')))
    if errors:
        logger.warning(f"Bulk send from client '{g.client_id}' failed validation: {len(errors)} errors")
        return standard_error(400, errors=errors)

    parts = sum(count_parts(m['Content']) for m in messages)
    return send_response(
        parts,
        [m['Content'] for m in messages],
        {"Mock Network": parts},
        data.get('SendOptions') or {},
    )


@messages_bp.route("/GroupMessages", methods=["POST"])
@require_token
def send_group_messages():
    """Accept one message for every contact in the named groups"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return standard_error(400, "The request body must be a JSON object")

    errors = validate_message(data.get('Message'), "Message", require_destination=False)
    groups = data.get('Groups')
    if not isinstance(groups, list) or not groups:
        errors.append(field_error("Groups", "At least one group name is required"))
    elif not all(isinstance(name, str) and name for name in groups):
        errors.append(field_error("Groups", "Group names must be non-empty strings"))
    errors.extend(validate_send_options(data.get('SendOptions')))
    if errors:
        logger.warning(f"Group send from client '{g.client_id}' failed validation: {len(errors)} errors")
        return standard_error(400, errors=errors)

    # Every group holds a single stub contact
    parts = count_parts(data['Message']['Content']) * len(groups)
    return send_response(
        parts,
        [data['Message']['Content']] * len(groups),
        {"Mock Network": parts},
        data.get('SendOptions') or {},
    )
