import xml.etree.ElementTree as ET

import pytest

from samlkit.xmlnode import XmlElement, XmlError, canonicalize, parse_xml


def test_empty_element_self_closes():
    assert XmlElement("samlp:NameIDPolicy").to_string() == "<samlp:NameIDPolicy/>"


def test_attribute_order_and_text():
    el = XmlElement("saml:Issuer")
    el.set_attr("Format", "f")
    el.set_attr("NameQualifier", "n")
    el.text = "uri:issuer"
    assert el.to_string() == '<saml:Issuer Format="f" NameQualifier="n">uri:issuer</saml:Issuer>'


def test_set_attr_replaces_in_place():
    el = XmlElement("a")
    el.set_attr("x", "1")
    el.set_attr("y", "2")
    el.set_attr("x", "3")
    assert list(el.attrs.items()) == [("x", "3"), ("y", "2")]


def test_get_attr_by_local_name_and_missing():
    el = XmlElement("a", {"xmlns:xsi": "u", "xsi:type": "xs:string"})
    assert el.get_attr("type") == "xs:string"
    assert el.get_attr("absent") is None


def test_escaping_round_trip():
    el = XmlElement("a", {"v": 'x"<&>'}, text="1 < 2 & 3")
    parsed = parse_xml(el.to_string())
    assert parsed.get_attr("v") == 'x"<&>'
    assert parsed.text == "1 < 2 & 3"


def test_parse_round_trip_keeps_prefixes():
    text = '<samlp:Status xmlns:samlp="urn:p"><samlp:StatusCode Value="v"/></samlp:Status>'
    root = parse_xml(text)
    assert root.to_string() == text
    assert root.find("StatusCode").get_attr("Value") == "v"
    assert root.local_name == "Status" and root.prefix == "samlp"


def test_parse_no_root():
    with pytest.raises(XmlError, match="no root"):
        parse_xml(b"<!-- no xml root -->")


def test_parse_syntax_error():
    with pytest.raises(XmlError):
        parse_xml(b"<invalid xml")


def test_add_child_and_find_all():
    root = XmlElement("r")
    root.add_child(XmlElement("p:c", text="1"))
    root.add_child(XmlElement("p:c", text="2"))
    assert [c.text for c in root.find_all("c")] == ["1", "2"]


def test_from_etree():
    node = ET.fromstring('<a xmlns="urn:x" k="v">t<b/>u</a>')
    el = XmlElement.from_etree(node)
    assert el.tag == "a"
    assert el.get_attr("k") == "v"
    assert el.text == "tu"
    assert [c.tag for c in el.children] == ["b"]


def test_canonicalize_drops_unused_and_duplicate_declarations():
    root = XmlElement("saml:A", {"xmlns:saml": "urn:a", "xmlns:unused": "urn:u", "Z": "1", "B": "2"})
    child = XmlElement("saml:C", {"xmlns:saml": "urn:a"})
    root.add_child(child)
    canonicalize(root)
    assert list(root.attrs) == ["xmlns:saml", "B", "Z"]
    assert child.attrs == {}


def test_canonicalize_keeps_used_attribute_prefix():
    el = XmlElement("v", {"xsi:type": "t", "xmlns:xsi": "urn:i", "xmlns:xs": "urn:s"})
    canonicalize(el)
    assert list(el.attrs.items()) == [("xmlns:xsi", "urn:i"), ("xsi:type", "t")]