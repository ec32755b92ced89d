"""
Public IP Port

Architectural Intent:
- Resolves the operator's own public IPv4 address, used when a source of
  "self" is given to the open command
"""

import ipaddress
from typing import Protocol, runtime_checkable


@runtime_checkable
class PublicIpPort(Protocol):
    def lookup(self) -> ipaddress.IPv4Address: ...
