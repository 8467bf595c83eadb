"""Object storage (S3) collector: buckets with public access, encryption, and versioning state."""

import asyncio
import logging
from typing import Any

import boto3

from app.schemas.provider import AwsConfig
from app.schemas.resources import (
    BucketEncryption,
    BucketRecord,
    BucketVersioning,
    PublicAccessBlock,
    StorageResourceSet,
)
from app.services.collectors.base import Collector, client_config, lookup_or_default

logger = logging.getLogger(__name__)

# get_bucket_location returns no constraint for us-east-1 and "EU" for legacy eu-west-1 buckets.
DEFAULT_BUCKET_REGION = "us-east-1"
LEGACY_LOCATION_ALIASES = {"EU": "eu-west-1"}
UNKNOWN_REGION = "unknown"

# Error codes S3 uses for "this bucket has no such configuration".
ENCRYPTION_ABSENT_CODES = frozenset({"ServerSideEncryptionConfigurationNotFoundError"})
PUBLIC_ACCESS_BLOCK_ABSENT_CODES = frozenset({"NoSuchPublicAccessBlockConfiguration"})


def region_from_location(response: dict[str, Any]) -> str:
    constraint = response.get("LocationConstraint")
    if not constraint:
        return DEFAULT_BUCKET_REGION
    return LEGACY_LOCATION_ALIASES.get(constraint, constraint)


def encryption_from_response(response: dict[str, Any]) -> BucketEncryption:
    rules = response.get("ServerSideEncryptionConfiguration", {}).get("Rules", [])
    if not rules:
        return BucketEncryption(enabled=False)
    default = rules[0].get("ApplyServerSideEncryptionByDefault", {})
    return BucketEncryption(enabled=True, algorithm=default.get("SSEAlgorithm"))


def versioning_from_response(response: dict[str, Any]) -> BucketVersioning:
    return BucketVersioning(
        enabled=response.get("Status") == "Enabled",
        mfa_delete=response.get("MFADelete") == "Enabled",
    )


def public_access_from_response(response: dict[str, Any]) -> PublicAccessBlock:
    cfg = response.get("PublicAccessBlockConfiguration", {})
    return PublicAccessBlock(
        block_public_acls=bool(cfg.get("BlockPublicAcls", False)),
        block_public_policy=bool(cfg.get("BlockPublicPolicy", False)),
        ignore_public_acls=bool(cfg.get("IgnorePublicAcls", False)),
        restrict_public_buckets=bool(cfg.get("RestrictPublicBuckets", False)),
    )


class StorageCollector(Collector[StorageResourceSet]):
    """Collects every bucket; per-bucket lookups run concurrently and fall back to unsafe-by-default state."""

    provider = "S3"

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_session(cls, session: boto3.Session, config: AwsConfig) -> "StorageCollector":
        return cls(session.client("s3", config=client_config(config)))

    async def _describe_bucket(self, bucket: dict[str, Any]) -> BucketRecord:
        name = bucket["Name"]
        region, encryption, versioning, public_access = await asyncio.gather(
            lookup_or_default(
                lambda: region_from_location(self._client.get_bucket_location(Bucket=name)),
                UNKNOWN_REGION,
                f"s3:GetBucketLocation {name}",
            ),
            lookup_or_default(
                lambda: encryption_from_response(self._client.get_bucket_encryption(Bucket=name)),
                BucketEncryption(),
                f"s3:GetBucketEncryption {name}",
                absent_codes=ENCRYPTION_ABSENT_CODES,
            ),
            lookup_or_default(
                lambda: versioning_from_response(self._client.get_bucket_versioning(Bucket=name)),
                BucketVersioning(),
                f"s3:GetBucketVersioning {name}",
            ),
            lookup_or_default(
                lambda: public_access_from_response(
                    self._client.get_public_access_block(Bucket=name)
                ),
                PublicAccessBlock(),
                f"s3:GetPublicAccessBlock {name}",
                absent_codes=PUBLIC_ACCESS_BLOCK_ABSENT_CODES,
            ),
        )
        return BucketRecord(
            name=name,
            region=region,
            creation_date=bucket.get("CreationDate"),
            public_access=public_access,
            encryption=encryption,
            versioning=versioning,
        )

    async def collect(self) -> StorageResourceSet:
        response = await self.list_or_raise(self._client.list_buckets, "S3 buckets")
        buckets = [b for b in response.get("Buckets", []) if b.get("Name")]
        records = await asyncio.gather(*(self._describe_bucket(b) for b in buckets))
        logger.info("Collected S3 buckets", extra={"bucket_count": len(records)})
        return StorageResourceSet(buckets=list(records))
