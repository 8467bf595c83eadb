"""Compute (EC2) collector: instances and security groups with parsed inbound rules."""

import asyncio
import logging
from typing import Any

import boto3

from app.schemas.provider import AwsConfig
from app.schemas.resources import (
    ComputeResourceSet,
    FirewallRule,
    InstanceRecord,
    SecurityGroupRecord,
)
from app.services.collectors.base import Collector, client_config

logger = logging.getLogger(__name__)

WORLD_CIDRS = frozenset({"0.0.0.0/0", "::/0"})
ALL_PROTOCOLS = "-1"
MIN_PORT = 0
MAX_PORT = 65535
SSH_PORT = 22
RDP_PORT = 3389


def is_open_to_world(cidr: str) -> bool:
    """Exact match against the unrestricted IPv4/IPv6 ranges; narrower ranges never count."""
    return cidr in WORLD_CIDRS


def parse_inbound_rules(permissions: list[dict[str, Any]]) -> list[FirewallRule]:
    """Flatten IpPermissions into one rule per source range (IPv4 and IPv6)."""
    rules: list[FirewallRule] = []
    for permission in permissions:
        protocol = permission.get("IpProtocol") or "all"
        from_port = permission.get("FromPort")
        to_port = permission.get("ToPort")
        sources = [r.get("CidrIp") or "" for r in permission.get("IpRanges", [])]
        sources += [r.get("CidrIpv6") or "" for r in permission.get("Ipv6Ranges", [])]
        for source in sources:
            rules.append(
                FirewallRule(
                    protocol=protocol,
                    from_port=from_port,
                    to_port=to_port,
                    source=source,
                    is_open_to_world=is_open_to_world(source),
                )
            )
    return rules


def rule_opens_port(rule: FirewallRule, port: int) -> bool:
    if not rule.is_open_to_world:
        return False
    if rule.protocol == ALL_PROTOCOLS:
        return True
    from_port = rule.from_port if rule.from_port is not None else MIN_PORT
    to_port = rule.to_port if rule.to_port is not None else MAX_PORT
    return from_port <= port <= to_port


def has_port_open_to_world(rules: list[FirewallRule], port: int) -> bool:
    return any(rule_opens_port(rule, port) for rule in rules)


def security_group_from_response(sg: dict[str, Any], region: str | None) -> SecurityGroupRecord:
    rules = parse_inbound_rules(sg.get("IpPermissions", []))
    return SecurityGroupRecord(
        group_id=sg["GroupId"],
        group_name=sg.get("GroupName") or "Unknown",
        description=sg.get("Description") or "",
        vpc_id=sg.get("VpcId"),
        region=region,
        inbound_rules=rules,
        has_open_ssh=has_port_open_to_world(rules, SSH_PORT),
        has_open_rdp=has_port_open_to_world(rules, RDP_PORT),
        has_open_to_world=any(r.is_open_to_world for r in rules),
    )


def instance_from_response(instance: dict[str, Any]) -> InstanceRecord:
    name = next(
        (t.get("Value") for t in instance.get("Tags", []) if t.get("Key") == "Name"),
        None,
    )
    return InstanceRecord(
        instance_id=instance["InstanceId"],
        name=name or "Unnamed",
        state=instance.get("State", {}).get("Name") or "unknown",
        instance_type=instance.get("InstanceType") or "unknown",
        public_ip=instance.get("PublicIpAddress"),
        private_ip=instance.get("PrivateIpAddress"),
        security_groups=[
            sg.get("GroupId") or "" for sg in instance.get("SecurityGroups", [])
        ],
        region=instance.get("Placement", {}).get("AvailabilityZone"),
    )


class ComputeCollector(Collector[ComputeResourceSet]):
    """Collects instances and security groups concurrently; either listing failing fails the provider."""

    provider = "EC2"

    def __init__(self, client: Any, region: str | None = None) -> None:
        self._client = client
        self._region = region

    @classmethod
    def from_session(cls, session: boto3.Session, config: AwsConfig) -> "ComputeCollector":
        return cls(session.client("ec2", config=client_config(config)), region=config.region)

    def _list_instances(self) -> list[InstanceRecord]:
        paginator = self._client.get_paginator("describe_instances")
        records: list[InstanceRecord] = []
        for page in paginator.paginate():
            for reservation in page.get("Reservations", []):
                for instance in reservation.get("Instances", []):
                    if not instance.get("InstanceId"):
                        continue
                    records.append(instance_from_response(instance))
        return records

    def _list_security_groups(self) -> list[SecurityGroupRecord]:
        paginator = self._client.get_paginator("describe_security_groups")
        records: list[SecurityGroupRecord] = []
        for page in paginator.paginate():
            for sg in page.get("SecurityGroups", []):
                if not sg.get("GroupId"):
                    continue
                records.append(security_group_from_response(sg, self._region))
        return records

    async def collect(self) -> ComputeResourceSet:
        instances, security_groups = await asyncio.gather(
            self.list_or_raise(self._list_instances, "EC2 instances"),
            self.list_or_raise(self._list_security_groups, "security groups"),
        )
        logger.info(
            "Collected EC2 resources",
            extra={
                "instance_count": len(instances),
                "security_group_count": len(security_groups),
            },
        )
        return ComputeResourceSet(instances=instances, security_groups=security_groups)
