"""SAML assertion elements: subjects, conditions, statements and attributes."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime

from samlkit.core import (
    Issuer,
    NameID,
    attr_text,
    child_list,
    expect,
    format_time,
    optional_child,
    parse_time,
    set_attr_if,
)
from samlkit.xmlnode import XmlElement, XmlError, canonicalize

ASSERTION_NS = "urn:oasis:names:tc:SAML:2.0:assertion"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
XS_NS = "http://www.w3.org/2001/XMLSchema"


def _optional_time(node: XmlElement, name: str) -> datetime | None:
    text = node.get_attr(name)
    return parse_time(text) if text else None


def _required_time(node: XmlElement, name: str) -> datetime:
    value = _optional_time(node, name)
    if value is None:
        raise XmlError(f"<{node.local_name}> is missing the {name} attribute")
    return value


def _set_time_if(el: XmlElement, name: str, value: datetime | None) -> None:
    if value is not None:
        el.set_attr(name, format_time(value))


def _add_children(el: XmlElement, *items: object) -> XmlElement:
    """Append the element of every item that is present, flattening lists."""
    for item in items:
        for part in item if isinstance(item, list) else [item]:
            if part is not None:
                el.add_child(part.element())
    return el


@dataclass
class Audience:
    """The SAML Audience element."""

    value: str = ""

    def element(self) -> XmlElement:
        return XmlElement("saml:Audience", text=self.value)

    @classmethod
    def from_element(cls, node: XmlElement) -> "Audience":
        expect(node, "Audience")
        return cls(value=node.text)


@dataclass
class AudienceRestriction:
    """The SAML AudienceRestriction element."""

    audience: Audience = field(default_factory=Audience)

    def element(self) -> XmlElement:
        return _add_children(XmlElement("saml:AudienceRestriction"), self.audience)

    @classmethod
    def from_element(cls, node: XmlElement) -> "AudienceRestriction":
        expect(node, "AudienceRestriction")
        return cls(audience=optional_child(node, "Audience", Audience.from_element) or Audience())


@dataclass
class OneTimeUse:
    """The SAML OneTimeUse condition."""

    def element(self) -> XmlElement:
        return XmlElement("saml:OneTimeUse")


@dataclass
class ProxyRestriction:
    """The SAML ProxyRestriction condition."""

    count: int | None = None
    audiences: list[Audience] = field(default_factory=list)

    def element(self) -> XmlElement:
        el = XmlElement("saml:ProxyRestriction")
        if self.count is not None:
            el.set_attr("Count", str(self.count))
        return _add_children(el, self.audiences)

    @classmethod
    def from_element(cls, node: XmlElement) -> "ProxyRestriction":
        expect(node, "ProxyRestriction")
        text = node.get_attr("Count")
        count = None
        if text is not None:
            try:
                count = int(text)
            except ValueError as exc:
                raise XmlError(f"cannot parse Count {text!r}") from exc
        return cls(count=count, audiences=child_list(node, "Audience", Audience.from_element))


@dataclass
class Conditions:
    """The SAML Conditions element."""

    not_before: datetime | None = None
    not_on_or_after: datetime | None = None
    audience_restrictions: list[AudienceRestriction] = field(default_factory=list)
    one_time_use: OneTimeUse | None = None
    proxy_restriction: ProxyRestriction | None = None

    def element(self) -> XmlElement:
        el = XmlElement("saml:Conditions")
        _set_time_if(el, "NotBefore", self.not_before)
        _set_time_if(el, "NotOnOrAfter", self.not_on_or_after)
        return _add_children(el, self.audience_restrictions, self.one_time_use, self.proxy_restriction)

    @classmethod
    def from_element(cls, node: XmlElement) -> "Conditions":
        expect(node, "Conditions")
        return cls(
            not_before=_optional_time(node, "NotBefore"),
            not_on_or_after=_optional_time(node, "NotOnOrAfter"),
            audience_restrictions=child_list(
                node, "AudienceRestriction", AudienceRestriction.from_element
            ),
            one_time_use=optional_child(node, "OneTimeUse", lambda _: OneTimeUse()),
            proxy_restriction=optional_child(node, "ProxyRestriction", ProxyRestriction.from_element),
        )


@dataclass
class SubjectConfirmationData:
    """The SAML SubjectConfirmationData element."""

    not_before: datetime | None = None
    not_on_or_after: datetime | None = None
    recipient: str = ""
    in_response_to: str = ""
    address: str = ""

    def element(self) -> XmlElement:
        el = XmlElement("saml:SubjectConfirmationData")
        _set_time_if(el, "NotBefore", self.not_before)
        _set_time_if(el, "NotOnOrAfter", self.not_on_or_after)
        set_attr_if(el, "Recipient", self.recipient)
        set_attr_if(el, "InResponseTo", self.in_response_to)
        set_attr_if(el, "Address", self.address)
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "SubjectConfirmationData":
        expect(node, "SubjectConfirmationData")
        return cls(
            not_before=_optional_time(node, "NotBefore"),
            not_on_or_after=_optional_time(node, "NotOnOrAfter"),
            recipient=attr_text(node, "Recipient"),
            in_response_to=attr_text(node, "InResponseTo"),
            address=attr_text(node, "Address"),
        )


@dataclass
class SubjectConfirmation:
    """The SAML SubjectConfirmation element."""

    method: str = ""
    name_id: NameID | None = None
    subject_confirmation_data: SubjectConfirmationData | None = None

    def element(self) -> XmlElement:
        el = XmlElement("saml:SubjectConfirmation")
        el.set_attr("Method", self.method)
        return _add_children(el, self.name_id, self.subject_confirmation_data)

    @classmethod
    def from_element(cls, node: XmlElement) -> "SubjectConfirmation":
        expect(node, "SubjectConfirmation")
        return cls(
            method=attr_text(node, "Method"),
            name_id=optional_child(node, "NameID", NameID.from_element),
            subject_confirmation_data=optional_child(
                node, "SubjectConfirmationData", SubjectConfirmationData.from_element
            ),
        )


@dataclass
class Subject:
    """The SAML Subject element."""

    name_id: NameID | None = None
    subject_confirmations: list[SubjectConfirmation] = field(default_factory=list)

    def element(self) -> XmlElement:
        return _add_children(XmlElement("saml:Subject"), self.name_id, self.subject_confirmations)

    @classmethod
    def from_element(cls, node: XmlElement) -> "Subject":
        expect(node, "Subject")
        return cls(
            name_id=optional_child(node, "NameID", NameID.from_element),
            subject_confirmations=child_list(
                node, "SubjectConfirmation", SubjectConfirmation.from_element
            ),
        )


@dataclass
class SubjectLocality:
    """The SAML SubjectLocality element."""

    address: str = ""
    dns_name: str = ""

    def element(self) -> XmlElement:
        el = XmlElement("saml:SubjectLocality")
        set_attr_if(el, "Address", self.address)
        set_attr_if(el, "DNSName", self.dns_name)
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "SubjectLocality":
        expect(node, "SubjectLocality")
        return cls(address=attr_text(node, "Address"), dns_name=attr_text(node, "DNSName"))


@dataclass
class AuthnContextClassRef:
    """The SAML AuthnContextClassRef element."""

    value: str = ""

    def element(self) -> XmlElement:
        return XmlElement("saml:AuthnContextClassRef", text=self.value)

    @classmethod
    def from_element(cls, node: XmlElement) -> "AuthnContextClassRef":
        expect(node, "AuthnContextClassRef")
        return cls(value=node.text)


@dataclass
class AuthnContext:
    """The SAML AuthnContext element."""

    authn_context_class_ref: AuthnContextClassRef | None = None

    def element(self) -> XmlElement:
        return _add_children(XmlElement("saml:AuthnContext"), self.authn_context_class_ref)

    @classmethod
    def from_element(cls, node: XmlElement) -> "AuthnContext":
        expect(node, "AuthnContext")
        return cls(
            authn_context_class_ref=optional_child(
                node, "AuthnContextClassRef", AuthnContextClassRef.from_element
            )
        )


@dataclass
class AuthnStatement:
    """The SAML AuthnStatement element."""

    authn_instant: datetime
    session_index: str = ""
    session_not_on_or_after: datetime | None = None
    subject_locality: SubjectLocality | None = None
    authn_context: AuthnContext = field(default_factory=AuthnContext)

    def element(self) -> XmlElement:
        el = XmlElement("saml:AuthnStatement")
        el.set_attr("AuthnInstant", format_time(self.authn_instant))
        set_attr_if(el, "SessionIndex", self.session_index)
        _set_time_if(el, "SessionNotOnOrAfter", self.session_not_on_or_after)
        return _add_children(el, self.subject_locality, self.authn_context)

    @classmethod
    def from_element(cls, node: XmlElement) -> "AuthnStatement":
        expect(node, "AuthnStatement")
        return cls(
            authn_instant=_required_time(node, "AuthnInstant"),
            session_index=attr_text(node, "SessionIndex"),
            session_not_on_or_after=_optional_time(node, "SessionNotOnOrAfter"),
            subject_locality=optional_child(node, "SubjectLocality", SubjectLocality.from_element),
            authn_context=optional_child(node, "AuthnContext", AuthnContext.from_element)
            or AuthnContext(),
        )


@dataclass
class AttributeValue:
    """The SAML AttributeValue element."""

    type: str = ""
    value: str = ""
    name_id: NameID | None = None

    def element(self) -> XmlElement:
        el = XmlElement("saml:AttributeValue")
        el.set_attr("xmlns:xsi", XSI_NS)
        el.set_attr("xmlns:xs", XS_NS)
        el.set_attr("xsi:type", self.type)
        _add_children(el, self.name_id)
        el.text = self.value
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "AttributeValue":
        expect(node, "AttributeValue")
        return cls(
            type=attr_text(node, "type"),
            value=node.text,
            name_id=optional_child(node, "NameID", NameID.from_element),
        )


@dataclass
class Attribute:
    """The SAML Attribute element."""

    friendly_name: str = ""
    name: str = ""
    name_format: str = ""
    values: list[AttributeValue] = field(default_factory=list)

    def element(self) -> XmlElement:
        el = XmlElement("saml:Attribute")
        set_attr_if(el, "FriendlyName", self.friendly_name)
        set_attr_if(el, "Name", self.name)
        set_attr_if(el, "NameFormat", self.name_format)
        return _add_children(el, self.values)

    @classmethod
    def from_element(cls, node: XmlElement) -> "Attribute":
        expect(node, "Attribute")
        return cls(
            friendly_name=attr_text(node, "FriendlyName"),
            name=attr_text(node, "Name"),
            name_format=attr_text(node, "NameFormat"),
            values=child_list(node, "AttributeValue", AttributeValue.from_element),
        )


@dataclass
class AttributeStatement:
    """The SAML AttributeStatement element."""

    attributes: list[Attribute] = field(default_factory=list)

    def element(self) -> XmlElement:
        return _add_children(XmlElement("saml:AttributeStatement"), self.attributes)

    @classmethod
    def from_element(cls, node: XmlElement) -> "AttributeStatement":
        expect(node, "AttributeStatement")
        return cls(attributes=child_list(node, "Attribute", Attribute.from_element))


@dataclass
class Assertion:
    """The SAML Assertion element."""

    issue_instant: datetime
    id: str = ""
    version: str = ""
    issuer: Issuer = field(default_factory=Issuer)
    signature: XmlElement | None = None
    subject: Subject | None = None
    conditions: Conditions | None = None
    authn_statements: list[AuthnStatement] = field(default_factory=list)
    attribute_statements: list[AttributeStatement] = field(default_factory=list)

    def element(self) -> XmlElement:
        """Return the assertion in exclusive canonical form."""
        el = XmlElement("saml:Assertion")
        el.set_attr("xmlns:saml", ASSERTION_NS)
        el.set_attr("Version", "2.0")
        el.set_attr("ID", self.id)
        el.set_attr("IssueInstant", format_time(self.issue_instant))
        el.add_child(self.issuer.element())
        if self.signature is not None:
            el.add_child(copy.deepcopy(self.signature))
        _add_children(
            el, self.subject, self.conditions, self.authn_statements, self.attribute_statements
        )
        return canonicalize(el)

    @classmethod
    def from_element(cls, node: XmlElement) -> "Assertion":
        expect(node, "Assertion")
        return cls(
            issue_instant=_required_time(node, "IssueInstant"),
            id=attr_text(node, "ID"),
            version=attr_text(node, "Version"),
            issuer=optional_child(node, "Issuer", Issuer.from_element) or Issuer(),
            signature=node.find("Signature"),
            subject=optional_child(node, "Subject", Subject.from_element),
            conditions=optional_child(node, "Conditions", Conditions.from_element),
            authn_statements=child_list(node, "AuthnStatement", AuthnStatement.from_element),
            attribute_statements=child_list(
                node, "AttributeStatement", AttributeStatement.from_element
            ),
        )