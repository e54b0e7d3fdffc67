"""A small, order-preserving XML element model with prefix-aware serialization."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from xml.parsers import expat


class XmlError(ValueError):
    """Raised when XML cannot be parsed or does not have the expected shape."""


def _escape_text(value: str) -> str:
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _escape_attr(value: str) -> str:
    return _escape_text(value).replace('"', "&quot;")


def _split(name: str) -> tuple[str, str]:
    prefix, sep, local = name.partition(":")
    return (prefix, local) if sep else ("", name)


@dataclass
class XmlElement:
    """An XML element whose names keep their literal prefixes."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: list["XmlElement"] = field(default_factory=list)

    @property
    def prefix(self) -> str:
        return _split(self.tag)[0]

    @property
    def local_name(self) -> str:
        return _split(self.tag)[1]

    def set_attr(self, name: str, value: str) -> "XmlElement":
        """Set an attribute, replacing any existing one of the same name."""
        self.attrs[name] = value
        return self

    def get_attr(self, name: str) -> str | None:
        """Return an attribute by exact name, else by local name, else None."""
        if name in self.attrs:
            return self.attrs[name]
        for key, value in self.attrs.items():
            prefix, local = _split(key)
            if key == "xmlns" or prefix == "xmlns":
                continue
            if local == name:
                return value
        return None

    def add_child(self, child: "XmlElement") -> "XmlElement":
        self.children.append(child)
        return child

    def find(self, local_name: str) -> "XmlElement | None":
        """Return the first direct child with the given local name."""
        return next((c for c in self.children if c.local_name == local_name), None)

    def find_all(self, local_name: str) -> list["XmlElement"]:
        return [c for c in self.children if c.local_name == local_name]

    def to_string(self) -> str:
        attrs = "".join(f' {k}="{_escape_attr(v)}"' for k, v in self.attrs.items())
        if not self.text and not self.children:
            return f"<{self.tag}{attrs}/>"
        inner = _escape_text(self.text) + "".join(c.to_string() for c in self.children)
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"

    def __str__(self) -> str:
        return self.to_string()

    @classmethod
    def from_etree(cls, node: ET.Element) -> "XmlElement":
        """Build from an ElementTree node; namespace URIs are dropped, local names kept."""

        def local(name: str) -> str:
            return name.rsplit("}", 1)[-1]

        text = (node.text or "") + "".join(child.tail or "" for child in node)
        return cls(
            tag=local(node.tag),
            attrs={local(k): v for k, v in node.attrib.items()},
            text=text,
            children=[cls.from_etree(child) for child in node],
        )


def parse_xml(data: bytes | str) -> XmlElement:
    """Parse a document and return its root element."""
    parser = expat.ParserCreate()
    parser.ordered_attributes = True
    stack: list[XmlElement] = []
    roots: list[XmlElement] = []

    def start(name, attributes):
        pairs = dict(zip(attributes[0::2], attributes[1::2]))
        element = XmlElement(name, pairs)
        if stack:
            stack[-1].children.append(element)
        else:
            roots.append(element)
        stack.append(element)

    def end(_name):
        stack.pop()

    def chars(content):
        if stack:
            stack[-1].text += content

    parser.StartElementHandler = start
    parser.EndElementHandler = end
    parser.CharacterDataHandler = chars
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        parser.Parse(data, True)
    except expat.ExpatError as exc:
        if not roots and exc.code == expat.errors.codes[expat.errors.XML_ERROR_NO_ELEMENTS]:
            raise XmlError("no root") from exc
        raise XmlError(str(exc)) from exc
    if not roots:
        raise XmlError("no root")
    return roots[0]


def canonicalize(element: XmlElement) -> XmlElement:
    """Rewrite the element in place into exclusive canonical form and return it.

    Namespace declarations are kept only where a prefix is visibly used and not
    already rendered by an ancestor; attributes are sorted canonically.
    """
    _canon(element, {}, {})
    return element


def _canon(element: XmlElement, inscope: dict[str, str], rendered: dict[str, str]) -> None:
    scope = dict(inscope)
    plain: dict[str, str] = {}
    for name, value in element.attrs.items():
        prefix, local = _split(name)
        if name == "xmlns":
            scope[""] = value
        elif prefix == "xmlns":
            scope[local] = value
        else:
            plain[name] = value

    used = {element.prefix}
    used.update(_split(n)[0] for n in plain if ":" in n)
    used.discard("xml")

    decls: dict[str, str] = {}
    for prefix in used:
        uri = scope.get(prefix)
        if uri is None:
            if prefix == "" and rendered.get(""):
                decls[""] = ""
            continue
        if rendered.get(prefix) != uri:
            decls[prefix] = uri

    new_rendered = dict(rendered)
    new_rendered.update(decls)

    def attr_key(name: str) -> tuple[str, str]:
        prefix, local = _split(name)
        return (scope.get(prefix, "") if prefix else "", local)

    attrs: dict[str, str] = {}
    for prefix in sorted(decls):
        attrs["xmlns" if prefix == "" else f"xmlns:{prefix}"] = decls[prefix]
    for name in sorted(plain, key=attr_key):
        attrs[name] = plain[name]
    element.attrs = attrs

    for child in element.children:
        _canon(child, scope, new_rendered)