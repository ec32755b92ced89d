"""
Domain Exceptions

Architectural Intent:
- Single hierarchy rooted at DrawbridgeError so the CLI can report every
  expected failure uniformly and exit non-zero
- Input errors are raised while parsing, before any provider call
- Provider errors wrap SDK/HTTP failures with the operation that failed
"""

from __future__ import annotations


INSTANCE_MUST_BE_STOPPED = "instance must be stopped to change its type"


class DrawbridgeError(Exception):
    """Base class for all errors raised by drawbridge."""


class InputError(DrawbridgeError, ValueError):
    """
    Raised when an operator-supplied value (CIDR, IP address, protocol,
    port range) cannot be parsed.
    """


class ConfigError(DrawbridgeError):
    """Raised when configuration is missing or invalid for the selected provider."""


class ProviderError(DrawbridgeError):
    """
    Raised when a call to the cloud, DNS or public address provider fails,
    or when the provider returns a payload drawbridge cannot interpret.

    The message names the operation; the underlying exception is chained.
    """


class InstanceTypeChangeError(DrawbridgeError):
    """Raised when a type change is requested for an instance that is not stopped."""

    def __init__(self, message: str = INSTANCE_MUST_BE_STOPPED) -> None:
        super().__init__(message)


class InstanceStateError(DrawbridgeError):
    """
    Raised when an instance is observed in a state the lifecycle cannot
    drive out of: terminating, terminated, an unrecognized state code, or
    running without a network address.
    """


class InstanceTimeoutError(InstanceStateError):
    """Raised when a bounded lifecycle convergence loop runs out of time."""


class NoAuthoritativeZoneError(DrawbridgeError):
    """Raised when no registered DNS zone is authoritative for a hostname."""
