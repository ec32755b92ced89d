"""
Composition Root

Architectural Intent:
- Dependency injection composition root for the drawbridge application
- Single place where all adapters and use cases are wired together
- No adapter instantiation should occur outside this module (except in tests)

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- Factory function creates and wires all dependencies from a DrawbridgeConfig
- Provider selection: "aws" (EC2 + Route 53 via boto3) or "memory"
  (in-process stores, nothing leaves the machine)
- Adapters may be passed in explicitly; anything not passed is built from
  the config
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from drawbridge.application.use_cases.dispatch import Dispatcher
from drawbridge.application.use_cases.parse_command import ParseCommand
from drawbridge.domain.exceptions import ConfigError
from drawbridge.domain.ports.cloud_provider_port import CloudProviderPort
from drawbridge.domain.ports.dns_provider_port import DnsProviderPort
from drawbridge.domain.ports.public_ip_port import PublicIpPort
from drawbridge.domain.services.instance_lifecycle import InstanceLifecycle
from drawbridge.infrastructure.adapters.checkip_adapter import CheckIpAdapter
from drawbridge.infrastructure.config import DrawbridgeConfig
from drawbridge.infrastructure.telemetry import OTELExporter, create_exporter

logger = logging.getLogger(__name__)

PROVIDERS = ("aws", "memory")


@dataclass
class DrawbridgeContainer:
    """DI container holding all wired dependencies."""

    config: DrawbridgeConfig
    cloud: CloudProviderPort
    dns: DnsProviderPort
    public_ip: PublicIpPort
    telemetry: OTELExporter
    lifecycle: InstanceLifecycle
    parse_command: ParseCommand
    dispatcher: Dispatcher


def _create_aws_providers(
    config: DrawbridgeConfig,
) -> tuple[CloudProviderPort, DnsProviderPort]:
    from drawbridge.infrastructure.adapters.aws_ec2_adapter import AwsCloud
    from drawbridge.infrastructure.adapters.aws_route53_adapter import AwsDns

    if not config.tag:
        raise ConfigError(
            "no tag configured: set DRAWBRIDGE_TAG or \"tag\" in drawbridge.json"
        )
    if not config.aws.region:
        raise ConfigError(
            "no AWS region configured: set AWS_DEFAULT_REGION or DRAWBRIDGE_AWS_REGION"
        )

    cloud = AwsCloud.create(
        tag_key=config.aws.tag_key,
        tag_value=config.tag,
        region=config.aws.region,
        profile=config.aws.profile,
    )
    dns = AwsDns.create(
        region=config.aws.dns_region,
        profile=config.aws.profile,
        ttl=config.dns.ttl,
    )
    return cloud, dns


def _create_memory_providers() -> tuple[CloudProviderPort, DnsProviderPort]:
    from drawbridge.infrastructure.adapters.memory_cloud_adapter import MemoryCloud
    from drawbridge.infrastructure.adapters.memory_dns_adapter import MemoryDns

    return MemoryCloud(), MemoryDns()


def create_telemetry(config: DrawbridgeConfig) -> OTELExporter:
    try:
        return create_exporter(
            endpoint=config.telemetry.endpoint,
            insecure=config.telemetry.insecure,
        )
    except ValueError as e:
        raise ConfigError(str(e)) from e


def create_lifecycle(config: DrawbridgeConfig) -> InstanceLifecycle:
    try:
        return InstanceLifecycle(
            poll_interval=config.lifecycle.poll_interval,
            timeout=config.lifecycle.timeout,
        )
    except ValueError as e:
        raise ConfigError(f"invalid lifecycle settings: {e}") from e


def create_container(
    config: Optional[DrawbridgeConfig] = None,
    provider: Optional[str] = None,
    cloud: Optional[CloudProviderPort] = None,
    dns: Optional[DnsProviderPort] = None,
    public_ip: Optional[PublicIpPort] = None,
) -> DrawbridgeContainer:
    """Create and wire all dependencies."""
    config = config or DrawbridgeConfig()
    provider = provider or config.provider
    if provider not in PROVIDERS:
        raise ConfigError(f"unknown provider: {provider} (expected one of {', '.join(PROVIDERS)})")

    if cloud is None or dns is None:
        if provider == "aws":
            default_cloud, default_dns = _create_aws_providers(config)
        else:
            default_cloud, default_dns = _create_memory_providers()
        cloud = cloud or default_cloud
        dns = dns or default_dns
    logger.debug("Using %s provider", provider)

    public_ip = public_ip or CheckIpAdapter(
        url=config.checkip.url, timeout=config.checkip.timeout
    )
    lifecycle = create_lifecycle(config)
    telemetry = create_telemetry(config)

    return DrawbridgeContainer(
        config=config,
        cloud=cloud,
        dns=dns,
        public_ip=public_ip,
        telemetry=telemetry,
        lifecycle=lifecycle,
        parse_command=ParseCommand(public_ip),
        dispatcher=Dispatcher(cloud, dns, lifecycle=lifecycle, telemetry=telemetry),
    )
