"""
checkip Public Address Adapter

Architectural Intent:
- Implements PublicIpPort by asking an HTTP echo service (by default
  http://checkip.amazonaws.com/) for the caller's public IPv4 address
- Uses urllib.request directly; the body is a single address line
"""

from __future__ import annotations

import ipaddress
import logging
import urllib.request

from drawbridge.domain.exceptions import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_CHECKIP_URL = "http://checkip.amazonaws.com/"


class CheckIpAdapter:
    def __init__(self, url: str = DEFAULT_CHECKIP_URL, timeout: float = 10) -> None:
        self.url = url
        self.timeout = timeout

    def lookup(self) -> ipaddress.IPv4Address:
        logger.debug("GET %s", self.url)
        req = urllib.request.Request(self.url, method="GET")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                status = resp.status
                body = resp.read().decode("utf-8", errors="replace")
        except OSError as e:
            raise ProviderError(f"failed to query public IP address from {self.url}: {e}") from e

        if status != 200:
            raise ProviderError(
                f"failed to query public IP address from {self.url}: HTTP {status}"
            )
        text = body.strip()
        try:
            address = ipaddress.IPv4Address(text)
        except ValueError:
            raise ProviderError(f"not an IPv4 address: {text!r}") from None
        logger.info("Public IP address: %s", address)
        return address
