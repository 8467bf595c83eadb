"""Compute and network checks: world-open ports per security group, public IPs per instance."""

from app.schemas.resources import ComputeResourceSet, InstanceRecord, SecurityGroupRecord
from app.schemas.scan import Finding, ResourceType, Severity
from app.services.collectors.compute import RDP_PORT, SSH_PORT, rule_opens_port
from app.services.evaluators.base import Evaluator, check_result

# Instances in other states (pending, terminated, ...) produce no finding.
EVALUATED_INSTANCE_STATES = frozenset({"running", "stopped"})


def _group_resource_id(sg: SecurityGroupRecord) -> str:
    return f"{sg.group_name} ({sg.group_id})"


def _exposing_sources(sg: SecurityGroupRecord, port: int) -> str:
    """Distinct world-open ranges reaching `port`, in rule order; "anywhere" if none are recorded."""
    sources = dict.fromkeys(r.source for r in sg.inbound_rules if rule_opens_port(r, port))
    return ", ".join(s for s in sources if s) or "anywhere"


def _port_exposure(sg: SecurityGroupRecord, label: str, port: int, exposed: bool) -> Finding:
    return check_result(
        resource_type=ResourceType.NETWORK_ACL,
        resource_id=_group_resource_id(sg),
        check_name=f"{label} Port Exposure ({port})",
        passed=not exposed,
        fail_severity=Severity.HIGH,
        pass_message=f"{label} port {port} is not exposed to the world",
        fail_message=(
            f"{label} port {port} is open to the world ({_exposing_sources(sg, port)}). "
            "Restrict to specific IPs"
        ),
        region=sg.region,
    )


def check_ssh_exposure(sg: SecurityGroupRecord) -> Finding:
    return _port_exposure(sg, "SSH", SSH_PORT, sg.has_open_ssh)


def check_rdp_exposure(sg: SecurityGroupRecord) -> Finding:
    return _port_exposure(sg, "RDP", RDP_PORT, sg.has_open_rdp)


def check_open_to_world(sg: SecurityGroupRecord) -> Finding:
    open_rules = [r for r in sg.inbound_rules if r.is_open_to_world]
    return check_result(
        resource_type=ResourceType.NETWORK_ACL,
        resource_id=_group_resource_id(sg),
        check_name="Unrestricted Inbound Access",
        passed=not sg.has_open_to_world,
        fail_severity=Severity.MEDIUM,
        pass_message="No inbound rules allow unrestricted access",
        fail_message=f"{len(open_rules)} inbound rule(s) allow traffic from anywhere",
        region=sg.region,
    )


def check_public_ip(instance: InstanceRecord) -> Finding:
    return check_result(
        resource_type=ResourceType.COMPUTE,
        resource_id=f"{instance.name} ({instance.instance_id})",
        check_name="Public IP Exposure",
        passed=not instance.has_public_ip,
        fail_severity=Severity.MEDIUM,
        pass_message="Instance does not have a public IP",
        fail_message=f"Instance has a public IP: {instance.public_ip}. Ensure this is intentional",
        region=instance.region,
    )


SECURITY_GROUP_CHECKS = (check_ssh_exposure, check_rdp_exposure, check_open_to_world)
INSTANCE_CHECKS = (check_public_ip,)


class ComputeEvaluator(Evaluator):
    provider = "EC2"
    resource_type = ResourceType.COMPUTE

    def evaluate(self, resources: ComputeResourceSet) -> list[Finding]:
        findings = [
            check(sg) for sg in resources.security_groups for check in SECURITY_GROUP_CHECKS
        ]
        for instance in resources.instances:
            if instance.state not in EVALUATED_INSTANCE_STATES:
                continue
            findings.extend(check(instance) for check in INSTANCE_CHECKS)
        return findings
