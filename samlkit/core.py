"""Shared SAML building blocks: times, issuers, name identifiers and status."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, TypeVar

from samlkit.xmlnode import XmlElement, XmlError

T = TypeVar("T")

STATUS_SUCCESS = "urn:oasis:names:tc:SAML:2.0:status:Success"
STATUS_REQUESTER = "urn:oasis:names:tc:SAML:2.0:status:Requester"
STATUS_RESPONDER = "urn:oasis:names:tc:SAML:2.0:status:Responder"
STATUS_VERSION_MISMATCH = "urn:oasis:names:tc:SAML:2.0:status:VersionMismatch"
STATUS_AUTHN_FAILED = "urn:oasis:names:tc:SAML:2.0:status:AuthnFailed"
STATUS_INVALID_ATTR_NAME_OR_VALUE = "urn:oasis:names:tc:SAML:2.0:status:InvalidAttrNameOrValue"
STATUS_INVALID_NAME_ID_POLICY = "urn:oasis:names:tc:SAML:2.0:status:InvalidNameIDPolicy"
STATUS_NO_AUTHN_CONTEXT = "urn:oasis:names:tc:SAML:2.0:status:NoAuthnContext"
STATUS_NO_AVAILABLE_IDP = "urn:oasis:names:tc:SAML:2.0:status:NoAvailableIDP"
STATUS_NO_PASSIVE = "urn:oasis:names:tc:SAML:2.0:status:NoPassive"
STATUS_NO_SUPPORTED_IDP = "urn:oasis:names:tc:SAML:2.0:status:NoSupportedIDP"
STATUS_PARTIAL_LOGOUT = "urn:oasis:names:tc:SAML:2.0:status:PartialLogout"
STATUS_PROXY_COUNT_EXCEEDED = "urn:oasis:names:tc:SAML:2.0:status:ProxyCountExceeded"
STATUS_REQUEST_DENIED = "urn:oasis:names:tc:SAML:2.0:status:RequestDenied"
STATUS_REQUEST_UNSUPPORTED = "urn:oasis:names:tc:SAML:2.0:status:RequestUnsupported"
STATUS_REQUEST_VERSION_DEPRECATED = "urn:oasis:names:tc:SAML:2.0:status:RequestVersionDeprecated"
STATUS_REQUEST_VERSION_TOO_HIGH = "urn:oasis:names:tc:SAML:2.0:status:RequestVersionTooHigh"
STATUS_REQUEST_VERSION_TOO_LOW = "urn:oasis:names:tc:SAML:2.0:status:RequestVersionTooLow"
STATUS_RESOURCE_NOT_RECOGNIZED = "urn:oasis:names:tc:SAML:2.0:status:ResourceNotRecognized"
STATUS_TOO_MANY_RESPONSES = "urn:oasis:names:tc:SAML:2.0:status:TooManyResponses"
STATUS_UNKNOWN_ATTR_PROFILE = "urn:oasis:names:tc:SAML:2.0:status:UnknownAttrProfile"
STATUS_UNKNOWN_PRINCIPAL = "urn:oasis:names:tc:SAML:2.0:status:UnknownPrincipal"
STATUS_UNSUPPORTED_BINDING = "urn:oasis:names:tc:SAML:2.0:status:UnsupportedBinding"

_TIME_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})?$"
)
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}

# XML attribute name and dataclass field of the qualifiers shared by Issuer and NameID.
_QUALIFIERS = (
    ("NameQualifier", "name_qualifier"),
    ("SPNameQualifier", "sp_name_qualifier"),
    ("Format", "format"),
    ("SPProvidedID", "sp_provided_id"),
)


def format_time(value: datetime) -> str:
    """Format as UTC with trailing fractional zeros trimmed and a Z suffix."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    return text + "Z"


def parse_time(text: str) -> datetime:
    """Parse an xs:dateTime, with or without fractional seconds, into UTC."""
    match = _TIME_RE.match(text.strip())
    if not match:
        raise XmlError(f"cannot parse time {text!r}")
    year, month, day, hour, minute, second, frac, zone = match.groups()
    micro = int((frac or "0")[:6].ljust(6, "0"))
    tz = timezone.utc
    if zone and zone != "Z":
        sign = -1 if zone[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
    value = datetime(int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tz)
    return value.astimezone(timezone.utc)


def parse_bool(text: str) -> bool:
    """Parse the boolean spellings accepted in SAML attributes."""
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise XmlError(f"cannot parse boolean {text!r}")


def expect(node: XmlElement, local_name: str) -> None:
    """Raise XmlError unless the node has the given local name."""
    if node.local_name != local_name:
        raise XmlError(f"expected element type <{local_name}> but have <{node.local_name}>")


def attr_text(node: XmlElement, name: str) -> str:
    """Return an attribute's value, or an empty string when it is absent."""
    return node.get_attr(name) or ""


def set_attr_if(el: XmlElement, name: str, value: str) -> None:
    """Set an attribute only when the value is non-empty."""
    if value:
        el.set_attr(name, value)


def optional_child(node: XmlElement, name: str, factory: Callable[[XmlElement], T]) -> T | None:
    """Build an object from the first child with the given name, if there is one."""
    child = node.find(name)
    return factory(child) if child is not None else None


def child_list(node: XmlElement, name: str, factory: Callable[[XmlElement], T]) -> list[T]:
    """Build an object from every child with the given name."""
    return [factory(child) for child in node.find_all(name)]


def _qualified_element(tag: str, source: "Issuer | NameID") -> XmlElement:
    el = XmlElement(tag)
    for xml_name, field_name in _QUALIFIERS:
        set_attr_if(el, xml_name, getattr(source, field_name))
    el.text = source.value
    return el


def _qualified_fields(node: XmlElement) -> dict[str, str]:
    fields = {field_name: attr_text(node, xml_name) for xml_name, field_name in _QUALIFIERS}
    fields["value"] = node.text
    return fields


@dataclass
class Issuer:
    """The SAML Issuer element."""

    value: str = ""
    name_qualifier: str = ""
    sp_name_qualifier: str = ""
    format: str = ""
    sp_provided_id: str = ""

    def element(self) -> XmlElement:
        return _qualified_element("saml:Issuer", self)

    @classmethod
    def from_element(cls, node: XmlElement) -> "Issuer":
        expect(node, "Issuer")
        return cls(**_qualified_fields(node))


@dataclass
class NameID:
    """The SAML NameID element."""

    value: str = ""
    name_qualifier: str = ""
    sp_name_qualifier: str = ""
    format: str = ""
    sp_provided_id: str = ""

    def element(self) -> XmlElement:
        return _qualified_element("saml:NameID", self)

    @classmethod
    def from_element(cls, node: XmlElement) -> "NameID":
        expect(node, "NameID")
        return cls(**_qualified_fields(node))


@dataclass
class SessionIndex:
    """The SAML SessionIndex element."""

    value: str = ""

    def element(self) -> XmlElement:
        el = XmlElement("samlp:SessionIndex")
        el.set_attr("xmlns:samlp", "urn:oasis:names:tc:SAML:2.0:protocol")
        el.text = self.value
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "SessionIndex":
        expect(node, "SessionIndex")
        return cls(value=node.text)


@dataclass
class StatusCode:
    """The SAML StatusCode element, optionally nesting a second-level code."""

    value: str = ""
    status_code: "StatusCode | None" = None

    def element(self) -> XmlElement:
        el = XmlElement("samlp:StatusCode")
        el.set_attr("Value", self.value)
        if self.status_code is not None:
            el.add_child(self.status_code.element())
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "StatusCode":
        expect(node, "StatusCode")
        return cls(
            value=attr_text(node, "Value"),
            status_code=optional_child(node, "StatusCode", cls.from_element),
        )


@dataclass
class StatusMessage:
    """The SAML StatusMessage element."""

    value: str = ""

    def element(self) -> XmlElement:
        return XmlElement("samlp:StatusMessage", text=self.value)

    @classmethod
    def from_element(cls, node: XmlElement) -> "StatusMessage":
        expect(node, "StatusMessage")
        return cls(value=node.text)


@dataclass
class StatusDetail:
    """The SAML StatusDetail element, holding arbitrary child elements."""

    children: list[XmlElement] = field(default_factory=list)

    def element(self) -> XmlElement:
        return XmlElement("samlp:StatusDetail", children=list(self.children))

    @classmethod
    def from_element(cls, node: XmlElement) -> "StatusDetail":
        expect(node, "StatusDetail")
        return cls(children=list(node.children))


@dataclass
class Status:
    """The SAML Status element."""

    status_code: StatusCode = field(default_factory=StatusCode)
    status_message: StatusMessage | None = None
    status_detail: StatusDetail | None = None

    def element(self) -> XmlElement:
        el = XmlElement("samlp:Status")
        el.add_child(self.status_code.element())
        if self.status_message is not None:
            el.add_child(self.status_message.element())
        if self.status_detail is not None:
            el.add_child(self.status_detail.element())
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "Status":
        expect(node, "Status")
        return cls(
            status_code=optional_child(node, "StatusCode", StatusCode.from_element) or StatusCode(),
            status_message=optional_child(node, "StatusMessage", StatusMessage.from_element),
            status_detail=optional_child(node, "StatusDetail", StatusDetail.from_element),
        )


@dataclass
class RequestedAuthnContext:
    """Requirements on the authentication process."""

    comparison: str = ""
    authn_context_class_ref: str = ""

    def element(self) -> XmlElement:
        el = XmlElement("samlp:RequestedAuthnContext")
        el.set_attr("Comparison", self.comparison)
        el.add_child(XmlElement("saml:AuthnContextClassRef", text=self.authn_context_class_ref))
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "RequestedAuthnContext":
        expect(node, "RequestedAuthnContext")
        ref = optional_child(node, "AuthnContextClassRef", lambda child: child.text)
        return cls(comparison=attr_text(node, "Comparison"), authn_context_class_ref=ref or "")


@dataclass
class NameIDPolicy:
    """The SAML NameIDPolicy element."""

    format: str | None = None
    sp_name_qualifier: str | None = None
    allow_create: bool | None = None

    def element(self) -> XmlElement:
        el = XmlElement("samlp:NameIDPolicy")
        if self.format:
            el.set_attr("Format", self.format)
        if self.sp_name_qualifier is not None:
            el.set_attr("SPNameQualifier", self.sp_name_qualifier)
        if self.allow_create is not None:
            el.set_attr("AllowCreate", str(self.allow_create).lower())
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "NameIDPolicy":
        expect(node, "NameIDPolicy")
        allow = node.get_attr("AllowCreate")
        return cls(
            format=node.get_attr("Format"),
            sp_name_qualifier=node.get_attr("SPNameQualifier"),
            allow_create=parse_bool(allow) if allow is not None else None,
        )