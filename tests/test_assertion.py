from datetime import datetime, timezone

import pytest

from samlkit.assertion import (
    Assertion,
    Attribute,
    AttributeStatement,
    AttributeValue,
    Audience,
    AudienceRestriction,
    AuthnContext,
    AuthnContextClassRef,
    AuthnStatement,
    Conditions,
    OneTimeUse,
    ProxyRestriction,
    Subject,
    SubjectConfirmation,
    SubjectConfirmationData,
    SubjectLocality,
)
from samlkit.core import Issuer, NameID
from samlkit.xmlnode import XmlElement, XmlError, parse_xml

UTC = timezone.utc


def test_attribute_xml_round_trip():
    expected = Attribute(
        friendly_name="TestFriendlyName",
        name="TestName",
        name_format="urn:oasis:names:tc:SAML:2.0:attrname-format:basic",
        values=[AttributeValue(type="xs:string", value="test")],
    )
    x = expected.element().to_string()
    assert x == (
        '<saml:Attribute FriendlyName="TestFriendlyName" Name="TestName" '
        'NameFormat="urn:oasis:names:tc:SAML:2.0:attrname-format:basic">'
        '<saml:AttributeValue xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xmlns:xs="http://www.w3.org/2001/XMLSchema" xsi:type="xs:string">test'
        "</saml:AttributeValue></saml:Attribute>"
    )
    assert Attribute.from_element(parse_xml(x)) == expected


def test_authn_statement_xml_round_trip():
    expected = AuthnStatement(
        authn_instant=datetime(2020, 7, 21, 12, 30, 45, tzinfo=UTC),
        session_index="index",
        session_not_on_or_after=datetime(2020, 7, 22, 15, 0, 0, tzinfo=UTC),
    )
    x = expected.element().to_string()
    assert x == (
        '<saml:AuthnStatement AuthnInstant="2020-07-21T12:30:45Z" SessionIndex="index" '
        'SessionNotOnOrAfter="2020-07-22T15:00:00Z"><saml:AuthnContext/></saml:AuthnStatement>'
    )
    assert AuthnStatement.from_element(parse_xml(x)) == expected


def test_authn_statement_without_session_not_on_or_after():
    expected = AuthnStatement(
        authn_instant=datetime(2020, 7, 21, 12, 30, 45, tzinfo=UTC),
        session_index="index",
    )
    x = expected.element().to_string()
    assert x == (
        '<saml:AuthnStatement AuthnInstant="2020-07-21T12:30:45Z" SessionIndex="index">'
        "<saml:AuthnContext/></saml:AuthnStatement>"
    )
    actual = AuthnStatement.from_element(parse_xml(x))
    assert actual == expected
    assert actual.session_not_on_or_after is None


def test_authn_statement_missing_instant_raises():
    with pytest.raises(XmlError):
        AuthnStatement.from_element(parse_xml("<saml:AuthnStatement/>"))


def test_authn_statement_with_locality_and_class_ref_round_trip():
    stmt = AuthnStatement(
        authn_instant=datetime(2020, 1, 1, tzinfo=UTC),
        subject_locality=SubjectLocality(address="10.0.0.1", dns_name="host.example.com"),
        authn_context=AuthnContext(AuthnContextClassRef("urn:ctx")),
    )
    x = stmt.element().to_string()
    assert '<saml:SubjectLocality Address="10.0.0.1" DNSName="host.example.com"/>' in x
    assert "<saml:AuthnContextClassRef>urn:ctx</saml:AuthnContextClassRef>" in x
    assert AuthnStatement.from_element(parse_xml(x)) == stmt


def test_audience_restriction_element():
    x = AudienceRestriction(Audience("https://sp.example.com")).element().to_string()
    assert x == (
        "<saml:AudienceRestriction><saml:Audience>https://sp.example.com"
        "</saml:Audience></saml:AudienceRestriction>"
    )
    assert AudienceRestriction.from_element(parse_xml(x)).audience.value == "https://sp.example.com"


def test_one_time_use_element():
    assert OneTimeUse().element().to_string() == "<saml:OneTimeUse/>"


def test_proxy_restriction_round_trip():
    proxy = ProxyRestriction(count=3, audiences=[Audience("a"), Audience("b")])
    x = proxy.element().to_string()
    assert x == (
        '<saml:ProxyRestriction Count="3"><saml:Audience>a</saml:Audience>'
        "<saml:Audience>b</saml:Audience></saml:ProxyRestriction>"
    )
    assert ProxyRestriction.from_element(parse_xml(x)) == proxy


def test_proxy_restriction_bad_count():
    with pytest.raises(XmlError):
        ProxyRestriction.from_element(parse_xml('<saml:ProxyRestriction Count="x"/>'))


def test_conditions_omits_missing_times():
    assert Conditions().element().to_string() == "<saml:Conditions/>"


def test_conditions_round_trip():
    cond = Conditions(
        not_before=datetime(2015, 12, 1, 1, 0, tzinfo=UTC),
        not_on_or_after=datetime(2015, 12, 1, 2, 0, tzinfo=UTC),
        audience_restrictions=[AudienceRestriction(Audience("https://sp.example.com"))],
        one_time_use=OneTimeUse(),
        proxy_restriction=ProxyRestriction(count=1),
    )
    x = cond.element().to_string()
    assert x.startswith(
        '<saml:Conditions NotBefore="2015-12-01T01:00:00Z" NotOnOrAfter="2015-12-01T02:00:00Z">'
    )
    assert Conditions.from_element(parse_xml(x)) == cond


def test_subject_confirmation_data_attribute_order():
    data = SubjectConfirmationData(
        not_on_or_after=datetime(2015, 12, 1, 1, 57, 51, 375000, tzinfo=UTC),
        recipient="https://sp.example.com/acs",
        in_response_to="id-1",
    )
    x = data.element().to_string()
    assert x == (
        '<saml:SubjectConfirmationData NotOnOrAfter="2015-12-01T01:57:51.375Z" '
        'Recipient="https://sp.example.com/acs" InResponseTo="id-1"/>'
    )
    assert SubjectConfirmationData.from_element(parse_xml(x)) == data


def test_subject_round_trip():
    subject = Subject(
        name_id=NameID(value="user", format="urn:fmt"),
        subject_confirmations=[
            SubjectConfirmation(
                method="urn:oasis:names:tc:SAML:2.0:cm:bearer",
                subject_confirmation_data=SubjectConfirmationData(recipient="r"),
            )
        ],
    )
    x = subject.element().to_string()
    assert x.startswith('<saml:Subject><saml:NameID Format="urn:fmt">user</saml:NameID>')
    assert Subject.from_element(parse_xml(x)) == subject


def test_attribute_value_with_name_id():
    value = AttributeValue(name_id=NameID(value="abc", format="urn:fmt"))
    parsed = AttributeValue.from_element(parse_xml(value.element().to_string()))
    assert parsed == AttributeValue(type="", value="", name_id=NameID(value="abc", format="urn:fmt"))


def test_attribute_wrong_element_raises():
    with pytest.raises(XmlError):
        Attribute.from_element(parse_xml("<hello>World!</hello>"))


def test_assertion_canonical_element():
    assertion = Assertion(
        issue_instant=datetime(2020, 7, 21, 12, 30, 45, tzinfo=UTC),
        id="id-1",
        issuer=Issuer(value="https://idp.example.com"),
    )
    assert assertion.element().to_string() == (
        '<saml:Assertion xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion" ID="id-1" '
        'IssueInstant="2020-07-21T12:30:45Z" Version="2.0">'
        "<saml:Issuer>https://idp.example.com</saml:Issuer></saml:Assertion>"
    )


def test_assertion_version_is_always_2_0():
    assertion = Assertion(issue_instant=datetime(2020, 1, 1, tzinfo=UTC), version="1.0")
    assert assertion.element().get_attr("Version") == "2.0"


def test_assertion_drops_unused_xs_namespace():
    assertion = Assertion(
        issue_instant=datetime(2020, 1, 1, tzinfo=UTC),
        attribute_statements=[
            AttributeStatement([Attribute(name="n", values=[AttributeValue("xs:string", "v")])])
        ],
    )
    value_el = assertion.element().find("AttributeStatement").find("Attribute").find("AttributeValue")
    assert "xmlns:xs" not in value_el.attrs
    assert value_el.attrs["xmlns:xsi"] == "http://www.w3.org/2001/XMLSchema-instance"
    assert value_el.attrs["xsi:type"] == "xs:string"


def test_assertion_round_trip():
    assertion = Assertion(
        issue_instant=datetime(2015, 12, 1, 1, 57, 9, tzinfo=UTC),
        id="id-9",
        version="2.0",
        issuer=Issuer(value="https://idp.example.com"),
        subject=Subject(name_id=NameID(value="user")),
        conditions=Conditions(audience_restrictions=[AudienceRestriction(Audience("aud"))]),
        authn_statements=[AuthnStatement(authn_instant=datetime(2015, 12, 1, tzinfo=UTC))],
        attribute_statements=[
            AttributeStatement([Attribute(name="cn", values=[AttributeValue("xs:string", "Me")])])
        ],
    )
    parsed = Assertion.from_element(parse_xml(assertion.element().to_string()))
    assert parsed == assertion


def test_assertion_keeps_signature_and_does_not_mutate_it():
    signature = XmlElement("ds:Signature", {"xmlns:ds": "http://www.w3.org/2000/09/xmldsig#"})
    signature.add_child(XmlElement("ds:SignedInfo"))
    assertion = Assertion(issue_instant=datetime(2020, 1, 1, tzinfo=UTC), signature=signature)
    el = assertion.element()
    parsed = Assertion.from_element(parse_xml(el.to_string()))
    assert parsed.signature is not None
    assert parsed.signature.tag == "ds:Signature"
    assert [c.tag for c in parsed.signature.children] == ["ds:SignedInfo"]
    assert signature.attrs == {"xmlns:ds": "http://www.w3.org/2000/09/xmldsig#"}


def test_assertion_missing_issue_instant_raises():
    with pytest.raises(XmlError):
        Assertion.from_element(parse_xml('<saml:Assertion ID="x"/>'))