"""
AWS EC2 Cloud Provider Adapter

Architectural Intent:
- Implements CloudProviderPort, FirewallPort and InstancePort on top of a
  boto3 EC2 client
- Visibility is scoped by a tag: only security groups and instances
  carrying ``<tag_key>=<tag_value>`` are ever listed

Design Decisions:
- __init__ accepts an already-built client so tests can wrap it in
  botocore.stub.Stubber; create() builds one from region/profile
- Handles are thin: every read goes back to EC2, nothing is cached
- Instances must carry a Name tag; the optional Fqdn tag names the
  hostname bound while the instance runs
- Every botocore failure surfaces as ProviderError via aws_errors()

EC2 payload mapping:
- IpPermissions[].IpRanges[].CidrIp        -> IPv4 ingress rules
- IpPermissions[].Ipv6Ranges[].CidrIpv6    -> IPv6 ingress rules
- Reservations[].Instances[].State.Code    -> PowerState (low byte)
- PublicDnsName / PublicIpAddress          -> CNAME / A DnsTarget
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Any, Iterable, Optional

from drawbridge.domain.exceptions import ProviderError
from drawbridge.domain.value_objects.dns_target import DnsTarget
from drawbridge.domain.value_objects.ingress_rule import (
    IngressRule,
    IpProtocol,
    PortRange,
    Transport,
)
from drawbridge.domain.value_objects.instance_state import InstanceState, InstanceType
from drawbridge.infrastructure.adapters.aws_session import aws_errors, create_client

logger = logging.getLogger(__name__)

NAME_TAG = "Name"
FQDN_TAG = "Fqdn"


def find_tag(tags: Optional[list[dict]], key: str) -> Optional[str]:
    """Return the value of ``key`` in an EC2 Tags list, if present."""
    for tag in tags or []:
        if tag.get("Key") == key:
            return tag.get("Value")
    return None


def rules_from_permissions(permissions: Iterable[dict]) -> set[IngressRule]:
    """Translate EC2 IpPermissions into ingress rules."""
    rules: set[IngressRule] = set()
    for permission in permissions:
        ip_protocol = permission.get("IpProtocol")
        try:
            transport = Transport(ip_protocol)
        except ValueError:
            raise ProviderError(f"unknown protocol: {ip_protocol}") from None
        protocol = IpProtocol(
            transport, PortRange(permission["FromPort"], permission["ToPort"])
        )

        for ip_range in permission.get("IpRanges", []):
            cidr = ip_range["CidrIp"]
            try:
                network = ipaddress.IPv4Network(cidr)
            except ValueError:
                raise ProviderError(f"not an IPv4 network: {cidr}") from None
            rules.add(IngressRule(network, protocol))

        for ip_range in permission.get("Ipv6Ranges", []):
            cidr = ip_range["CidrIpv6"]
            try:
                network = ipaddress.IPv6Network(cidr)
            except ValueError:
                raise ProviderError(f"not an IPv6 network: {cidr}") from None
            rules.add(IngressRule(network, protocol))
    return rules


def to_ip_permission(rule: IngressRule) -> dict:
    """Translate one ingress rule into an EC2 IpPermission."""
    permission: dict[str, Any] = {
        "IpProtocol": rule.protocol.transport.value,
        "FromPort": rule.protocol.ports.start,
        "ToPort": rule.protocol.ports.end,
    }
    if rule.network.version == 4:
        permission["IpRanges"] = [{"CidrIp": str(rule.network)}]
    else:
        permission["Ipv6Ranges"] = [{"CidrIpv6": str(rule.network)}]
    return permission


class AwsFirewall:
    """A security group, addressed by group id."""

    def __init__(self, client: Any, group_id: str, name: str) -> None:
        self._client = client
        self._id = group_id
        self._name = name

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"AwsFirewall({self._name} ({self._id}))"

    def _describe(self) -> dict:
        with aws_errors(f"describe security group: {self._name} ({self._id})"):
            response = self._client.describe_security_groups(GroupIds=[self._id])
        groups = response.get("SecurityGroups", [])
        if not groups:
            raise ProviderError(f"failed to find security group: {self._name} ({self._id})")
        return groups[0]

    def list_ingress_rules(self) -> set[IngressRule]:
        return rules_from_permissions(self._describe().get("IpPermissions", []))

    def add_ingress_rules(self, rules: Iterable[IngressRule]) -> None:
        permissions = [to_ip_permission(r) for r in sorted(rules, key=IngressRule.sort_key)]
        if not permissions:
            return
        logger.debug("authorize_security_group_ingress %s: %s", self._id, permissions)
        with aws_errors(f"authorize ingress for security group: {self._name}"):
            self._client.authorize_security_group_ingress(
                GroupId=self._id, IpPermissions=permissions
            )

    def remove_ingress_rules(self, rules: Iterable[IngressRule]) -> None:
        permissions = [to_ip_permission(r) for r in sorted(rules, key=IngressRule.sort_key)]
        if not permissions:
            return
        logger.debug("revoke_security_group_ingress %s: %s", self._id, permissions)
        with aws_errors(f"revoke ingress for security group: {self._name}"):
            self._client.revoke_security_group_ingress(
                GroupId=self._id, IpPermissions=permissions
            )


class AwsInstance:
    """An EC2 instance, addressed by instance id."""

    def __init__(
        self, client: Any, instance_id: str, name: str, fqdn: Optional[str] = None
    ) -> None:
        self._client = client
        self._id = instance_id
        self._name = name
        self._fqdn = fqdn

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def fqdn(self) -> Optional[str]:
        return self._fqdn

    def __repr__(self) -> str:
        return f"AwsInstance({self._name} ({self._id}))"

    def describe(self) -> InstanceState:
        with aws_errors(f"describe instance: {self._name} ({self._id})"):
            response = self._client.describe_instances(InstanceIds=[self._id])
        instances = [
            i for r in response.get("Reservations", []) for i in r.get("Instances", [])
        ]
        if not instances:
            raise ProviderError(f"failed to find instance: {self._name} ({self._id})")
        return instance_state(instances[0])

    def request_start(self) -> None:
        with aws_errors(f"start instance: {self._id}"):
            self._client.start_instances(InstanceIds=[self._id])

    def request_stop(self) -> None:
        with aws_errors(f"stop instance: {self._id}"):
            self._client.stop_instances(InstanceIds=[self._id])

    def modify_instance_type(self, instance_type: InstanceType) -> None:
        with aws_errors(f"change instance type to {instance_type}: {self._id}"):
            self._client.modify_instance_attribute(
                InstanceId=self._id, InstanceType={"Value": str(instance_type)}
            )


def instance_state(instance: dict) -> InstanceState:
    """Build an InstanceState from one DescribeInstances instance dict."""
    try:
        address = DnsTarget.preferred(
            alias=instance.get("PublicDnsName"), ipv4=instance.get("PublicIpAddress")
        )
    except ValueError:
        raise ProviderError(
            f"not an IP address: {instance.get('PublicIpAddress')}"
        ) from None
    return InstanceState.from_code(
        instance["State"]["Code"], InstanceType(instance["InstanceType"]), address
    )


class AwsCloud:
    """
    EC2-backed CloudProviderPort.

    Parameters
    ----------
    client : botocore client
        An EC2 client.
    tag_key : str
        Tag key that marks resources managed by drawbridge.
    tag_value : str
        Tag value selecting this deployment's resources.
    """

    def __init__(self, client: Any, tag_key: str, tag_value: str) -> None:
        self._client = client
        self.tag_key = tag_key
        self.tag_value = tag_value

    @classmethod
    def create(
        cls,
        tag_key: str,
        tag_value: str,
        region: Optional[str] = None,
        profile: Optional[str] = None,
    ) -> "AwsCloud":
        return cls(create_client("ec2", region, profile), tag_key, tag_value)

    def _tag_filter(self) -> dict:
        return {"Name": f"tag:{self.tag_key}", "Values": [self.tag_value]}

    def list_firewalls(self, names: Iterable[str]) -> list[AwsFirewall]:
        names = list(dict.fromkeys(names))
        if not names:
            return []
        filters = [self._tag_filter(), {"Name": "group-name", "Values": names}]
        logger.debug("describe_security_groups filters=%s", filters)

        firewalls = []
        with aws_errors(f"describe security groups: {filters}"):
            paginator = self._client.get_paginator("describe_security_groups")
            for page in paginator.paginate(Filters=filters):
                for sg in page.get("SecurityGroups", []):
                    firewalls.append(AwsFirewall(self._client, sg["GroupId"], sg["GroupName"]))
        return firewalls

    def list_instances(self, names: Iterable[str]) -> list[AwsInstance]:
        names = list(dict.fromkeys(names))
        if not names:
            return []
        filters = [self._tag_filter(), {"Name": f"tag:{NAME_TAG}", "Values": names}]
        logger.debug("describe_instances filters=%s", filters)

        instances = []
        with aws_errors(f"describe instances: {filters}"):
            paginator = self._client.get_paginator("describe_instances")
            pages = list(paginator.paginate(Filters=filters))
        for page in pages:
            for reservation in page.get("Reservations", []):
                for i in reservation.get("Instances", []):
                    instance_id = i["InstanceId"]
                    name = find_tag(i.get("Tags"), NAME_TAG)
                    if not name:
                        raise ProviderError(
                            f"expected instance to have {NAME_TAG} tag: {instance_id}"
                        )
                    instances.append(
                        AwsInstance(
                            self._client, instance_id, name, find_tag(i.get("Tags"), FQDN_TAG)
                        )
                    )
        return instances
