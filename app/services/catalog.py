"""
Static catalog of CIS AWS Foundations Benchmark (v1.4.0) rules covered by the scanner.

Descriptive only: evaluators do not read it. Rules are frozen and the catalog is an
immutable tuple built at import time, so callers can share it freely.
"""

from app.schemas.rules import SecurityRule
from app.schemas.scan import ResourceType, Severity

IAM_CATEGORY = "Identity and Access Management"
STORAGE_CATEGORY = "Storage"
NETWORKING_CATEGORY = "Networking"
DATABASE_CATEGORY = "Database"

CIS_RULES: tuple[SecurityRule, ...] = (
    # Identity
    SecurityRule(
        id="CIS-1.5",
        name="Root Account MFA",
        description="Ensure MFA is enabled for the root user account",
        resource_type=ResourceType.IDENTITY,
        severity=Severity.CRITICAL,
        category=IAM_CATEGORY,
        recommendation="Enable MFA for the root account in the IAM console",
    ),
    SecurityRule(
        id="CIS-1.10",
        name="IAM User MFA",
        description="Ensure MFA is enabled for all IAM users with console access",
        resource_type=ResourceType.IDENTITY,
        severity=Severity.HIGH,
        category=IAM_CATEGORY,
        recommendation="Enable MFA for all IAM users through the IAM console",
    ),
    SecurityRule(
        id="CIS-1.16",
        name="Admin Access Review",
        description="Ensure IAM policies are attached only to groups or roles",
        resource_type=ResourceType.IDENTITY,
        severity=Severity.MEDIUM,
        category=IAM_CATEGORY,
        recommendation="Review users with admin access and use least privilege principle",
    ),
    # Object storage
    SecurityRule(
        id="CIS-2.1.1",
        name="S3 Public Access",
        description="Ensure S3 bucket public access is blocked",
        resource_type=ResourceType.OBJECT_STORE,
        severity=Severity.HIGH,
        category=STORAGE_CATEGORY,
        recommendation="Enable 'Block all public access' setting on S3 buckets",
    ),
    SecurityRule(
        id="CIS-2.1.2",
        name="S3 Encryption",
        description="Ensure S3 bucket server-side encryption is enabled",
        resource_type=ResourceType.OBJECT_STORE,
        severity=Severity.MEDIUM,
        category=STORAGE_CATEGORY,
        recommendation="Enable default encryption on S3 buckets using SSE-S3 or SSE-KMS",
    ),
    SecurityRule(
        id="CIS-2.1.3",
        name="S3 Versioning",
        description="Ensure S3 bucket versioning is enabled",
        resource_type=ResourceType.OBJECT_STORE,
        severity=Severity.LOW,
        category=STORAGE_CATEGORY,
        recommendation="Enable versioning on S3 buckets for data protection",
    ),
    # Network
    SecurityRule(
        id="CIS-5.1",
        name="Security Group SSH Restriction",
        description="Ensure no security groups allow ingress from 0.0.0.0/0 to port 22",
        resource_type=ResourceType.NETWORK_ACL,
        severity=Severity.HIGH,
        category=NETWORKING_CATEGORY,
        recommendation="Restrict SSH access to specific IP addresses",
    ),
    SecurityRule(
        id="CIS-5.2",
        name="Security Group RDP Restriction",
        description="Ensure no security groups allow ingress from 0.0.0.0/0 to port 3389",
        resource_type=ResourceType.NETWORK_ACL,
        severity=Severity.HIGH,
        category=NETWORKING_CATEGORY,
        recommendation="Restrict RDP access to specific IP addresses",
    ),
    SecurityRule(
        id="CIS-5.3",
        name="Security Group Unrestricted Access",
        description="Ensure security groups do not allow unrestricted ingress",
        resource_type=ResourceType.NETWORK_ACL,
        severity=Severity.MEDIUM,
        category=NETWORKING_CATEGORY,
        recommendation="Review and restrict ingress rules to specific IPs and ports",
    ),
    # Managed databases
    SecurityRule(
        id="CIS-2.3.1",
        name="RDS Public Accessibility",
        description="Ensure RDS instances are not publicly accessible",
        resource_type=ResourceType.DATABASE,
        severity=Severity.HIGH,
        category=DATABASE_CATEGORY,
        recommendation="Disable public accessibility for RDS instances",
    ),
    SecurityRule(
        id="CIS-2.3.2",
        name="RDS Encryption",
        description="Ensure RDS instances have encryption at rest enabled",
        resource_type=ResourceType.DATABASE,
        severity=Severity.MEDIUM,
        category=DATABASE_CATEGORY,
        recommendation="Enable encryption when creating RDS instances",
    ),
    SecurityRule(
        id="CIS-2.3.3",
        name="RDS Automated Backups",
        description="Ensure RDS instances have automated backups enabled",
        resource_type=ResourceType.DATABASE,
        severity=Severity.MEDIUM,
        category=DATABASE_CATEGORY,
        recommendation="Enable automated backups with appropriate retention period",
    ),
)


def get_rule_by_id(rule_id: str) -> SecurityRule | None:
    for rule in CIS_RULES:
        if rule.id == rule_id:
            return rule
    return None


def get_rules_by_resource_type(resource_type: ResourceType) -> list[SecurityRule]:
    return [rule for rule in CIS_RULES if rule.resource_type == resource_type]


def get_rules_by_category(category: str) -> list[SecurityRule]:
    """Exact, case-sensitive category match."""
    return [rule for rule in CIS_RULES if rule.category == category]
