"""
Request and response models for the MyMobile REST API.

Request models serialize to the PascalCase keys the API expects on its
send endpoints. Response models are built from the camelCase JSON the API
returns. Fields left as None are not sent.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None"""
    return {k: v for k, v in data.items() if v is not None}


def _as_list(value) -> list:
    # Some API versions return a single object where a list is documented
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    return list(value)


def _int_field(data: Dict[str, Any], key: str, default: int = 0) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{key} must be an integer, got {value!r}")
    return value


def _str_field(data: Dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {value!r}")
    return value


@dataclass
class Document:
    """Variables for a mobile document generated alongside a message"""

    # The API template name of the document template
    template: Optional[str] = None
    # Template version; the active version is used when not set
    version: Optional[int] = None
    # Password protecting the document; no authentication when not set
    password: Optional[str] = None
    # Values for the variables defined in the document template
    variables: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "Template": self.template,
            "Version": self.version,
            "Password": self.password,
            "Variables": self.variables,
        })


@dataclass
class Message:
    """A single SMS message"""

    content: str
    # MSISDN (mobile number) of the recipient. Unused for group sends.
    destination: Optional[str] = None
    # User defined ID used to correlate receipts and replies, max 100 chars
    customer_id: Optional[str] = None
    document: Optional[Document] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "Content": self.content,
            "Destination": self.destination,
            "CustomerId": self.customer_id,
            "Document": self.document.to_dict() if self.document else None,
        })


@dataclass
class SendOptions:
    """Optional settings applied to a bulk or group send

    Dates are ISO 8601 UTC strings (yyyy-mm-ddThh:mm[:ss][Z]). The sender ID
    is at most 11 characters and availability is decided by the network
    operator. With test_mode set the API validates and prices the send but
    delivers nothing.
    """

    sender_id: Optional[str] = None
    duplicate_check: Optional[str] = None
    start_delivery_utc: Optional[str] = None
    end_delivery_utc: Optional[str] = None
    reply_rule_set_name: Optional[str] = None
    campaign_name: Optional[str] = None
    cost_centre: Optional[str] = None
    check_opt_outs: Optional[bool] = None
    shorten_urls: Optional[bool] = None
    # Hours the network keeps retrying delivery
    validity_period: Optional[int] = None
    test_mode: Optional[bool] = None
    rule_name: Optional[str] = None
    reply_rule_version: Optional[int] = None
    extra_forward_emails: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "SenderId": self.sender_id,
            "DuplicateCheck": self.duplicate_check,
            "StartDeliveryUtc": self.start_delivery_utc,
            "EndDeliveryUtc": self.end_delivery_utc,
            "ReplyRuleSetName": self.reply_rule_set_name,
            "CampaignName": self.campaign_name,
            "CostCentre": self.cost_centre,
            "CheckOptOuts": self.check_opt_outs,
            "ShortenUrls": self.shorten_urls,
            "ValidityPeriod": self.validity_period,
            "TestMode": self.test_mode,
            "RuleName": self.rule_name,
            "ReplyRuleVersion": self.reply_rule_version,
            "ExtraForwardEmails": self.extra_forward_emails,
        })


@dataclass
class BulkMessageRequest:
    """A batch of 1 to 100 messages sent to individual destinations"""

    messages: List[Message] = field(default_factory=list)
    send_options: SendOptions = field(default_factory=SendOptions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "SendOptions": self.send_options.to_dict(),
            "Messages": [m.to_dict() for m in self.messages],
        }


@dataclass
class GroupMessageRequest:
    """One message sent to every contact in the named groups"""

    message: Message
    groups: List[str] = field(default_factory=list)
    send_options: SendOptions = field(default_factory=SendOptions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "SendOptions": self.send_options.to_dict(),
            "Message": self.message.to_dict(),
            "Groups": list(self.groups),
        }


@dataclass
class CostBreakdown:
    quantity: int = 0
    cost: int = 0
    network: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CostBreakdown":
        return cls(
            quantity=_int_field(data, "quantity"),
            cost=_int_field(data, "cost"),
            network=_str_field(data, "network"),
        )


@dataclass
class Fault:
    raw_destination: str = ""
    scrubbed_destination: str = ""
    customer_id: str = ""
    error_message: str = ""
    status: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Fault":
        return cls(
            raw_destination=_str_field(data, "rawDestination"),
            scrubbed_destination=_str_field(data, "scrubbedDestination"),
            customer_id=_str_field(data, "customerId"),
            error_message=_str_field(data, "errorMessage"),
            status=_str_field(data, "status"),
        )


@dataclass
class ErrorReport:
    no_network: int = 0
    duplicates: int = 0
    opted_outs: int = 0
    faults: List[Fault] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorReport":
        return cls(
            no_network=_int_field(data, "noNetwork"),
            duplicates=_int_field(data, "duplicates"),
            opted_outs=_int_field(data, "optedOuts"),
            faults=[Fault.from_dict(f) for f in _as_list(data.get("faults"))],
        )


@dataclass
class BulkMessageResponse:
    """Result of a bulk or group send

    cost excludes tax, remaining_balance is what is left after the send,
    messages counts enqueued messages and parts counts the SMS parts they
    needed. sample is an informational example of a generated message.
    """

    cost: int = 0
    remaining_balance: int = 0
    event_id: int = 0
    sample: str = ""
    cost_breakdown: List[CostBreakdown] = field(default_factory=list)
    messages: int = 0
    parts: int = 0
    error_report: ErrorReport = field(default_factory=ErrorReport)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BulkMessageResponse":
        return cls(
            cost=_int_field(data, "cost"),
            remaining_balance=_int_field(data, "remainingBalance"),
            event_id=_int_field(data, "eventId"),
            sample=_str_field(data, "sample"),
            cost_breakdown=[CostBreakdown.from_dict(c) for c in _as_list(data.get("costBreakdown"))],
            messages=_int_field(data, "messages"),
            parts=_int_field(data, "parts"),
            error_report=ErrorReport.from_dict(data.get("errorReport") or {}),
        )


@dataclass
class StandardError:
    """A field-level validation error"""

    location: str = ""
    name: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StandardError":
        return cls(
            location=data.get("location", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
        )


@dataclass
class StandardResponse:
    """The error envelope returned with every non-2xx response"""

    code: int = 0
    message: str = ""
    uuid: str = ""
    object: str = ""
    cause: str = ""
    status: str = ""
    errors: List[StandardError] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StandardResponse":
        return cls(
            code=data.get("code", 0),
            message=data.get("message") or "",
            uuid=data.get("uuid") or "",
            object=data.get("object") or "",
            cause=data.get("cause") or "",
            status=data.get("status") or "",
            errors=[StandardError.from_dict(e) for e in data.get("errors") or []],
        )

    def error_message(self, status_code: int) -> str:
        """Build the error text for a failed response

        The envelope message wins, then the field errors, then the bare
        status code.
        """
        if self.message:
            return f"{status_code}: {self.message}"
        if self.errors:
            return ", ".join(f"{e.name}: {e.description}" for e in self.errors)
        return str(status_code)


@dataclass
class BalanceResponse:
    balance: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BalanceResponse":
        return cls(balance=_int_field(data, "balance"))


@dataclass
class AuthenticationResponse:
    token: str = ""
    schema: str = ""
    expires_in_minutes: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthenticationResponse":
        return cls(
            token=_str_field(data, "token"),
            schema=_str_field(data, "schema"),
            expires_in_minutes=data.get("expiresInMinutes"),
        )
