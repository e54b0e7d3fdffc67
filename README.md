# samlkit

SAML 2.0 protocol and assertion objects as Python dataclasses. Each object
builds its XML form with `element()`. Each can be read back from a parsed
element with the class method `from_element()`.

The package uses only the standard library.

## Modules

- `samlkit.xmlnode` has `XmlElement`, a small XML element that keeps the
  literal prefixes of its tag and attribute names. It offers `set_attr`,
  `get_attr`, `add_child`, `find`, `find_all` and `to_string`.
  `XmlElement.from_etree` converts an `xml.etree.ElementTree` node.
  `parse_xml` reads bytes or text into an `XmlElement`. `canonicalize`
  rewrites an element in place into exclusive canonical form. Malformed
  input raises `XmlError`, a subclass of `ValueError`. A document with no
  root element gives the message `"no root"`.
- `samlkit.core` holds the shared pieces. These are `Issuer`, `NameID`,
  `SessionIndex`, `Status`, `StatusCode`, `StatusMessage`, `StatusDetail`,
  `RequestedAuthnContext` and `NameIDPolicy`. It also has the `STATUS_*`
  status-code URIs, such as `STATUS_SUCCESS` and `STATUS_REQUESTER`.
  `format_time` and `parse_time` handle SAML timestamps.
- `samlkit.assertion` holds `Assertion` and its parts. These are `Subject`,
  `SubjectConfirmation`, `SubjectConfirmationData`, `Conditions`,
  `AudienceRestriction`, `Audience`, `OneTimeUse`, `ProxyRestriction`,
  `AuthnStatement`, `AuthnContext`, `AuthnContextClassRef`,
  `SubjectLocality`, `AttributeStatement`, `Attribute` and
  `AttributeValue`. `Assertion.element()` returns the assertion in exclusive
  canonical form.
- `samlkit.protocol` holds the messages. These are `AuthnRequest`,
  `LogoutRequest`, `LogoutResponse`, `Response`, `ArtifactResolve` and
  `ArtifactResponse`.

`from_element()` checks the element's local name. When the name is wrong it
raises `XmlError`, for example
`expected element type <Response> but have <hello>`.

## Example

```python
from datetime import datetime, timezone

from samlkit.core import Issuer, NameID, SessionIndex
from samlkit.protocol import LogoutRequest
from samlkit.xmlnode import parse_xml

request = LogoutRequest(
    id="request-id",
    version="2.0",
    issue_instant=datetime(2021, 10, 8, 12, 30, tzinfo=timezone.utc),
    issuer=Issuer(value="uri:issuer"),
    name_id=NameID(value="name-id"),
    session_index=SessionIndex(value="index"),
)

xml = request.to_bytes()        # UTF-8 <samlp:LogoutRequest ...>
compressed = request.deflate()  # raw DEFLATE of the same bytes

again = LogoutRequest.from_element(parse_xml(xml))
assert again == request
```

`ArtifactResolve.soap_request()` wraps the request in a SOAP envelope.

`format_time` writes timestamps in UTC in the form `2020-07-21T12:30:45Z`. It
adds fractional seconds only when they are non-zero, with trailing zeros
trimmed. `parse_time` accepts either form and returns an aware UTC
`datetime`.

## What it does not do

samlkit only models SAML messages and their XML. The following are left to
the caller:

- signing and signature checking
- encrypting or decrypting assertions
- metadata
- service-provider or identity-provider flows
- HTTP bindings other than the DEFLATE step of `LogoutRequest.deflate()`

A `signature` or `encrypted_assertion` field holds an `XmlElement` that is
carried through as it is.