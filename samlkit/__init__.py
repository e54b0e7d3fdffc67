"""SAML 2.0 protocol and assertion dataclasses that build and read their XML form."""

__version__ = "0.1.0"
__all__ = ["xmlnode", "core", "assertion", "protocol"]