"""Normalized resource records produced by collectors and consumed by evaluators.

Defaults are the fail-closed values: a record built from incomplete provider data
reads as unblocked, unencrypted, unversioned, and without MFA.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# Storage


class PublicAccessBlock(BaseModel):
    block_public_acls: bool = False
    block_public_policy: bool = False
    ignore_public_acls: bool = False
    restrict_public_buckets: bool = False

    @property
    def is_fully_blocked(self) -> bool:
        """True only when all four public access block settings are enabled."""
        return (
            self.block_public_acls
            and self.block_public_policy
            and self.ignore_public_acls
            and self.restrict_public_buckets
        )


class BucketEncryption(BaseModel):
    enabled: bool = False
    algorithm: str | None = Field(default=None, description="e.g. AES256 or aws:kms")


class BucketVersioning(BaseModel):
    enabled: bool = False
    mfa_delete: bool = False


class BucketRecord(BaseModel):
    name: str = Field(..., min_length=1)
    region: str = "unknown"
    creation_date: datetime | None = None
    public_access: PublicAccessBlock = Field(default_factory=PublicAccessBlock)
    encryption: BucketEncryption = Field(default_factory=BucketEncryption)
    versioning: BucketVersioning = Field(default_factory=BucketVersioning)


class StorageResourceSet(BaseModel):
    buckets: list[BucketRecord] = Field(default_factory=list)


# Compute and network


class FirewallRule(BaseModel):
    """One inbound rule for a single source range."""

    protocol: str = "all"
    from_port: int | None = None
    to_port: int | None = None
    source: str = ""
    is_open_to_world: bool = False


class SecurityGroupRecord(BaseModel):
    group_id: str = Field(..., min_length=1)
    group_name: str = "Unknown"
    description: str = ""
    vpc_id: str | None = None
    region: str | None = None
    inbound_rules: list[FirewallRule] = Field(default_factory=list)
    has_open_ssh: bool = False
    has_open_rdp: bool = False
    has_open_to_world: bool = False


class InstanceRecord(BaseModel):
    instance_id: str = Field(..., min_length=1)
    name: str = "Unnamed"
    state: str = "unknown"
    instance_type: str = "unknown"
    public_ip: str | None = None
    private_ip: str | None = None
    security_groups: list[str] = Field(default_factory=list)
    region: str | None = None

    @property
    def has_public_ip(self) -> bool:
        return bool(self.public_ip)


class ComputeResourceSet(BaseModel):
    instances: list[InstanceRecord] = Field(default_factory=list)
    security_groups: list[SecurityGroupRecord] = Field(default_factory=list)


# Identity


class IdentityUserRecord(BaseModel):
    user_name: str = Field(..., min_length=1)
    user_id: str = ""
    arn: str = ""
    create_date: datetime | None = None
    password_last_used: datetime | None = None
    has_mfa: bool = False
    has_console_access: bool = False
    attached_policies: list[str] = Field(
        default_factory=list, description="ARNs of managed policies attached to the user."
    )


class AccountSummary(BaseModel):
    users: int = 0
    groups: int = 0
    roles: int = 0
    policies: int = 0
    mfa_devices: int = 0
    account_mfa_enabled: bool = False


class IdentityResourceSet(BaseModel):
    account: AccountSummary = Field(default_factory=AccountSummary)
    users: list[IdentityUserRecord] = Field(default_factory=list)


# Managed databases


class DatabaseInstanceRecord(BaseModel):
    db_instance_id: str = Field(..., min_length=1)
    db_instance_class: str = "unknown"
    engine: str = "unknown"
    engine_version: str = ""
    status: str = "unknown"
    is_publicly_accessible: bool = False
    is_encrypted: bool = False
    backup_retention_period: int = Field(default=0, ge=0)
    multi_az: bool = False
    vpc_security_groups: list[str] = Field(default_factory=list)
    endpoint: str | None = None
    port: int | None = None
    region: str | None = None

    @property
    def has_backup_enabled(self) -> bool:
        return self.backup_retention_period > 0


class DatabaseResourceSet(BaseModel):
    instances: list[DatabaseInstanceRecord] = Field(default_factory=list)
