"""Tests for the checkip public address adapter."""

import ipaddress
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from drawbridge.domain.exceptions import ProviderError
from drawbridge.domain.ports.public_ip_port import PublicIpPort
from drawbridge.infrastructure.adapters.checkip_adapter import CheckIpAdapter


def fake_response(body: bytes, status: int = 200):
    resp = MagicMock()
    resp.status = status
    resp.read.return_value = body
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    return resp


class TestCheckIpAdapter:
    def test_implements_port(self):
        assert isinstance(CheckIpAdapter(), PublicIpPort)

    def test_lookup(self):
        with patch("urllib.request.urlopen", return_value=fake_response(b"203.0.113.9\n")) as urlopen:
            address = CheckIpAdapter(url="http://checkip.test/", timeout=3).lookup()
        assert address == ipaddress.IPv4Address("203.0.113.9")
        req = urlopen.call_args.args[0]
        assert req.full_url == "http://checkip.test/"
        assert urlopen.call_args.kwargs["timeout"] == 3

    def test_non_200(self):
        with patch("urllib.request.urlopen", return_value=fake_response(b"", status=204)):
            with pytest.raises(ProviderError, match="HTTP 204"):
                CheckIpAdapter().lookup()

    def test_bad_body(self):
        with patch("urllib.request.urlopen", return_value=fake_response(b"<html>")):
            with pytest.raises(ProviderError, match="not an IPv4 address"):
                CheckIpAdapter().lookup()

    def test_ipv6_body_rejected(self):
        with patch("urllib.request.urlopen", return_value=fake_response(b"2001:db8::1")):
            with pytest.raises(ProviderError, match="not an IPv4 address"):
                CheckIpAdapter().lookup()

    def test_network_error(self):
        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("down")):
            with pytest.raises(ProviderError, match="failed to query public IP address"):
                CheckIpAdapter().lookup()
