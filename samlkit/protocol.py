"""SAML protocol messages: authentication, logout and artifact exchanges."""

from __future__ import annotations

import copy
import zlib
from dataclasses import dataclass, field
from datetime import datetime

from samlkit.assertion import Assertion, Conditions, Subject
from samlkit.core import (
    Issuer,
    NameID,
    NameIDPolicy,
    RequestedAuthnContext,
    SessionIndex,
    Status,
    expect,
    format_time,
    parse_bool,
    parse_time,
)
from samlkit.xmlnode import XmlElement, XmlError

ASSERTION_NS = "urn:oasis:names:tc:SAML:2.0:assertion"
PROTOCOL_NS = "urn:oasis:names:tc:SAML:2.0:protocol"
XS_NS = "http://www.w3.org/2001/XMLSchema"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
SOAP_ENVELOPE_NS = "http://schemas.xmlsoap.org/soap/envelope/"


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _attr(node: XmlElement, name: str) -> str:
    return node.get_attr(name) or ""


def _set_if(el: XmlElement, name: str, value: str) -> None:
    if value:
        el.set_attr(name, value)


def _optional_time(node: XmlElement, name: str) -> datetime | None:
    text = node.get_attr(name)
    return parse_time(text) if text else None


def _required_time(node: XmlElement, name: str) -> datetime:
    value = _optional_time(node, name)
    if value is None:
        raise XmlError(f"<{node.local_name}> is missing the {name} attribute")
    return value


def _optional_bool(node: XmlElement, name: str) -> bool | None:
    text = node.get_attr(name)
    return parse_bool(text) if text is not None else None


def _child(node: XmlElement, local_name: str, parser):
    found = node.find(local_name)
    return parser(found) if found is not None else None


def _protocol_root(tag: str, with_xs: bool = False) -> XmlElement:
    el = XmlElement(tag)
    el.set_attr("xmlns:saml", ASSERTION_NS)
    el.set_attr("xmlns:samlp", PROTOCOL_NS)
    if with_xs:
        # Declared so that xsi:type values such as "xs:string" survive canonicalization.
        el.set_attr("xmlns:xs", XS_NS)
    return el


def _add_header(el: XmlElement, issuer: Issuer | None, signature: XmlElement | None) -> None:
    if issuer is not None:
        el.add_child(issuer.element())
    if signature is not None:
        el.add_child(copy.deepcopy(signature))


@dataclass
class AuthnRequest:
    """A request from a service provider to authenticate a user."""

    issue_instant: datetime
    id: str = ""
    version: str = ""
    destination: str = ""
    consent: str = ""
    issuer: Issuer | None = None
    signature: XmlElement | None = None
    subject: Subject | None = None
    name_id_policy: NameIDPolicy | None = None
    conditions: Conditions | None = None
    requested_authn_context: RequestedAuthnContext | None = None
    force_authn: bool | None = None
    is_passive: bool | None = None
    assertion_consumer_service_index: str = ""
    assertion_consumer_service_url: str = ""
    protocol_binding: str = ""
    attribute_consuming_service_index: str = ""
    provider_name: str = ""

    def element(self) -> XmlElement:
        el = _protocol_root("samlp:AuthnRequest")
        el.set_attr("ID", self.id)
        el.set_attr("Version", self.version)
        el.set_attr("IssueInstant", format_time(self.issue_instant))
        _set_if(el, "Destination", self.destination)
        _set_if(el, "Consent", self.consent)
        _add_header(el, self.issuer, self.signature)
        if self.subject is not None:
            el.add_child(self.subject.element())
        if self.name_id_policy is not None:
            el.add_child(self.name_id_policy.element())
        if self.conditions is not None:
            el.add_child(self.conditions.element())
        if self.requested_authn_context is not None:
            el.add_child(self.requested_authn_context.element())
        if self.force_authn is not None:
            el.set_attr("ForceAuthn", _format_bool(self.force_authn))
        if self.is_passive is not None:
            el.set_attr("IsPassive", _format_bool(self.is_passive))
        _set_if(el, "AssertionConsumerServiceIndex", self.assertion_consumer_service_index)
        _set_if(el, "AssertionConsumerServiceURL", self.assertion_consumer_service_url)
        _set_if(el, "ProtocolBinding", self.protocol_binding)
        _set_if(el, "AttributeConsumingServiceIndex", self.attribute_consuming_service_index)
        _set_if(el, "ProviderName", self.provider_name)
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "AuthnRequest":
        expect(node, "AuthnRequest")
        return cls(
            issue_instant=_required_time(node, "IssueInstant"),
            id=_attr(node, "ID"),
            version=_attr(node, "Version"),
            destination=_attr(node, "Destination"),
            consent=_attr(node, "Consent"),
            issuer=_child(node, "Issuer", Issuer.from_element),
            signature=node.find("Signature"),
            subject=_child(node, "Subject", Subject.from_element),
            name_id_policy=_child(node, "NameIDPolicy", NameIDPolicy.from_element),
            conditions=_child(node, "Conditions", Conditions.from_element),
            requested_authn_context=_child(
                node, "RequestedAuthnContext", RequestedAuthnContext.from_element
            ),
            force_authn=_optional_bool(node, "ForceAuthn"),
            is_passive=_optional_bool(node, "IsPassive"),
            assertion_consumer_service_index=_attr(node, "AssertionConsumerServiceIndex"),
            assertion_consumer_service_url=_attr(node, "AssertionConsumerServiceURL"),
            protocol_binding=_attr(node, "ProtocolBinding"),
            attribute_consuming_service_index=_attr(node, "AttributeConsumingServiceIndex"),
            provider_name=_attr(node, "ProviderName"),
        )


@dataclass
class LogoutRequest:
    """A request to destroy a user's session."""

    issue_instant: datetime
    id: str = ""
    version: str = ""
    not_on_or_after: datetime | None = None
    destination: str = ""
    issuer: Issuer | None = None
    name_id: NameID | None = None
    signature: XmlElement | None = None
    session_index: SessionIndex | None = None

    def element(self) -> XmlElement:
        el = _protocol_root("samlp:LogoutRequest")
        el.set_attr("ID", self.id)
        el.set_attr("Version", self.version)
        el.set_attr("IssueInstant", format_time(self.issue_instant))
        if self.not_on_or_after is not None:
            el.set_attr("NotOnOrAfter", format_time(self.not_on_or_after))
        _set_if(el, "Destination", self.destination)
        _add_header(el, self.issuer, self.signature)
        if self.name_id is not None:
            el.add_child(self.name_id.element())
        if self.session_index is not None:
            el.add_child(self.session_index.element())
        return el

    def to_bytes(self) -> bytes:
        """Serialize the request as UTF-8 XML."""
        return self.element().to_string().encode("utf-8")

    def deflate(self) -> bytes:
        """Return the serialized request compressed with raw DEFLATE."""
        compressor = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, -15)
        return compressor.compress(self.to_bytes()) + compressor.flush()

    @classmethod
    def from_element(cls, node: XmlElement) -> "LogoutRequest":
        expect(node, "LogoutRequest")
        return cls(
            issue_instant=_required_time(node, "IssueInstant"),
            id=_attr(node, "ID"),
            version=_attr(node, "Version"),
            not_on_or_after=_optional_time(node, "NotOnOrAfter"),
            destination=_attr(node, "Destination"),
            issuer=_child(node, "Issuer", Issuer.from_element),
            name_id=_child(node, "NameID", NameID.from_element),
            signature=node.find("Signature"),
            session_index=_child(node, "SessionIndex", SessionIndex.from_element),
        )


@dataclass
class ArtifactResolve:
    """A request to resolve an artifact into its protocol message."""

    issue_instant: datetime
    id: str = ""
    version: str = ""
    issuer: Issuer | None = None
    signature: XmlElement | None = None
    artifact: str = ""

    def element(self) -> XmlElement:
        el = _protocol_root("samlp:ArtifactResolve", with_xs=True)
        el.set_attr("ID", self.id)
        el.set_attr("Version", self.version)
        el.set_attr("IssueInstant", format_time(self.issue_instant))
        # Some identity providers require <Signature> to precede <Artifact>.
        _add_header(el, self.issuer, self.signature)
        el.add_child(XmlElement("samlp:Artifact", text=self.artifact))
        return el

    def soap_request(self) -> XmlElement:
        """Return a SOAP envelope carrying this request."""
        envelope = XmlElement("soapenv:Envelope")
        envelope.set_attr("xmlns:soapenv", SOAP_ENVELOPE_NS)
        envelope.set_attr("xmlns:xsi", XSI_NS)
        body = envelope.add_child(XmlElement("soapenv:Body"))
        body.add_child(self.element())
        return envelope

    @classmethod
    def from_element(cls, node: XmlElement) -> "ArtifactResolve":
        expect(node, "ArtifactResolve")
        artifact = node.find("Artifact")
        return cls(
            issue_instant=_required_time(node, "IssueInstant"),
            id=_attr(node, "ID"),
            version=_attr(node, "Version"),
            issuer=_child(node, "Issuer", Issuer.from_element),
            signature=node.find("Signature"),
            artifact=artifact.text if artifact is not None else "",
        )


@dataclass
class Response:
    """A response carrying a status and possibly an assertion."""

    issue_instant: datetime
    id: str = ""
    in_response_to: str = ""
    version: str = ""
    destination: str = ""
    consent: str = ""
    issuer: Issuer | None = None
    signature: XmlElement | None = None
    status: Status = field(default_factory=Status)
    encrypted_assertion: XmlElement | None = None
    assertion: Assertion | None = None

    def element(self) -> XmlElement:
        el = _protocol_root("samlp:Response", with_xs=True)
        el.set_attr("ID", self.id)
        _set_if(el, "InResponseTo", self.in_response_to)
        el.set_attr("Version", self.version)
        el.set_attr("IssueInstant", format_time(self.issue_instant))
        _set_if(el, "Destination", self.destination)
        _set_if(el, "Consent", self.consent)
        _add_header(el, self.issuer, self.signature)
        el.add_child(self.status.element())
        if self.encrypted_assertion is not None:
            el.add_child(copy.deepcopy(self.encrypted_assertion))
        if self.assertion is not None:
            el.add_child(self.assertion.element())
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "Response":
        expect(node, "Response")
        return cls(
            issue_instant=_required_time(node, "IssueInstant"),
            id=_attr(node, "ID"),
            in_response_to=_attr(node, "InResponseTo"),
            version=_attr(node, "Version"),
            destination=_attr(node, "Destination"),
            consent=_attr(node, "Consent"),
            issuer=_child(node, "Issuer", Issuer.from_element),
            signature=node.find("Signature"),
            status=_child(node, "Status", Status.from_element) or Status(),
            encrypted_assertion=node.find("EncryptedAssertion"),
            assertion=_child(node, "Assertion", Assertion.from_element),
        )


@dataclass
class ArtifactResponse:
    """The answer to an ArtifactResolve, wrapping a Response."""

    issue_instant: datetime
    response: Response
    id: str = ""
    in_response_to: str = ""
    version: str = ""
    issuer: Issuer | None = None
    signature: XmlElement | None = None
    status: Status = field(default_factory=Status)

    def element(self) -> XmlElement:
        el = _protocol_root("samlp:ArtifactResponse", with_xs=True)
        el.set_attr("ID", self.id)
        _set_if(el, "InResponseTo", self.in_response_to)
        el.set_attr("Version", self.version)
        el.set_attr("IssueInstant", format_time(self.issue_instant))
        _add_header(el, self.issuer, self.signature)
        el.add_child(self.status.element())
        el.add_child(self.response.element())
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "ArtifactResponse":
        expect(node, "ArtifactResponse")
        response = node.find("Response")
        if response is None:
            raise XmlError("<ArtifactResponse> has no <Response>")
        return cls(
            issue_instant=_required_time(node, "IssueInstant"),
            response=Response.from_element(response),
            id=_attr(node, "ID"),
            in_response_to=_attr(node, "InResponseTo"),
            version=_attr(node, "Version"),
            issuer=_child(node, "Issuer", Issuer.from_element),
            signature=node.find("Signature"),
            status=_child(node, "Status", Status.from_element) or Status(),
        )


@dataclass
class LogoutResponse:
    """The answer to a LogoutRequest."""

    issue_instant: datetime
    id: str = ""
    in_response_to: str = ""
    version: str = ""
    destination: str = ""
    consent: str = ""
    issuer: Issuer | None = None
    signature: XmlElement | None = None
    status: Status = field(default_factory=Status)

    def element(self) -> XmlElement:
        el = _protocol_root("samlp:LogoutResponse")
        el.set_attr("ID", self.id)
        _set_if(el, "InResponseTo", self.in_response_to)
        el.set_attr("Version", self.version)
        el.set_attr("IssueInstant", format_time(self.issue_instant))
        _set_if(el, "Destination", self.destination)
        _set_if(el, "Consent", self.consent)
        _add_header(el, self.issuer, self.signature)
        el.add_child(self.status.element())
        return el

    @classmethod
    def from_element(cls, node: XmlElement) -> "LogoutResponse":
        expect(node, "LogoutResponse")
        return cls(
            issue_instant=_required_time(node, "IssueInstant"),
            id=_attr(node, "ID"),
            in_response_to=_attr(node, "InResponseTo"),
            version=_attr(node, "Version"),
            destination=_attr(node, "Destination"),
            consent=_attr(node, "Consent"),
            issuer=_child(node, "Issuer", Issuer.from_element),
            signature=node.find("Signature"),
            status=_child(node, "Status", Status.from_element) or Status(),
        )