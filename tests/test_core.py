from datetime import datetime, timezone

import pytest

from samlkit.core import (
    Issuer,
    NameID,
    NameIDPolicy,
    RequestedAuthnContext,
    SessionIndex,
    Status,
    StatusCode,
    StatusDetail,
    StatusMessage,
    format_time,
    parse_time,
)
from samlkit.xmlnode import XmlElement, XmlError, parse_xml


def test_format_time_whole_seconds():
    assert format_time(datetime(2020, 7, 21, 12, 30, 45, tzinfo=timezone.utc)) == "2020-07-21T12:30:45Z"


def test_parse_time_round_trip_with_fraction():
    value = parse_time("2015-12-01T01:57:51.375Z")
    assert value == datetime(2015, 12, 1, 1, 57, 51, 375000, tzinfo=timezone.utc)
    assert format_time(value) == "2015-12-01T01:57:51.375Z"


def test_parse_time_rejects_garbage():
    with pytest.raises(XmlError):
        parse_time("yesterday")


def test_name_id_format_empty():
    assert NameIDPolicy(format="").element().to_string() == "<samlp:NameIDPolicy/>"


def test_name_id_policy_round_trip():
    policy = NameIDPolicy(format="f", sp_name_qualifier="q", allow_create=True)
    el = policy.element()
    assert el.get_attr("AllowCreate") == "true"
    assert NameIDPolicy.from_element(parse_xml(el.to_string())) == policy


def test_requested_authn_context():
    el = RequestedAuthnContext(comparison="comparison").element()
    assert el.to_string() == (
        '<samlp:RequestedAuthnContext Comparison="comparison">'
        "<saml:AuthnContextClassRef/></samlp:RequestedAuthnContext>"
    )


def test_issuer_and_name_id():
    assert Issuer(value="uri:issuer").element().to_string() == "<saml:Issuer>uri:issuer</saml:Issuer>"
    assert NameID(value="name-id").element().to_string() == "<saml:NameID>name-id</saml:NameID>"


def test_issuer_round_trip():
    issuer = Issuer(value="uri:issuer", format="fmt", name_qualifier="nq")
    assert Issuer.from_element(parse_xml(issuer.element().to_string())) == issuer


def test_session_index():
    assert SessionIndex(value="index").element().to_string() == (
        '<samlp:SessionIndex xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol">index</samlp:SessionIndex>'
    )


def test_status_element():
    status = Status(status_code=StatusCode(value="value"))
    assert status.element().to_string() == '<samlp:Status><samlp:StatusCode Value="value"/></samlp:Status>'


def test_status_round_trip_full():
    status = Status(
        status_code=StatusCode(value="a", status_code=StatusCode(value="b")),
        status_message=StatusMessage(value="msg"),
        status_detail=StatusDetail(children=[XmlElement("x:Detail", text="d")]),
    )
    parsed = Status.from_element(parse_xml(status.element().to_string()))
    assert parsed.status_code == status.status_code
    assert parsed.status_message == status.status_message
    assert parsed.status_detail.children[0].to_string() == "<x:Detail>d</x:Detail>"


def test_wrong_element_rejected():
    with pytest.raises(XmlError, match="expected element type <Issuer> but have <hello>"):
        Issuer.from_element(parse_xml("<hello>World!</hello>"))