"""Object storage checks: public access block, default encryption, versioning."""

from app.schemas.resources import BucketRecord, StorageResourceSet
from app.schemas.scan import Finding, ResourceType, Severity
from app.services.evaluators.base import Evaluator, check_result


def check_public_access_blocked(bucket: BucketRecord) -> Finding:
    return check_result(
        resource_type=ResourceType.OBJECT_STORE,
        resource_id=bucket.name,
        check_name="Public Access Block",
        passed=bucket.public_access.is_fully_blocked,
        fail_severity=Severity.HIGH,
        pass_message="Public access is fully blocked for this bucket",
        fail_message="Public access is NOT fully blocked. This bucket may be publicly accessible",
        region=bucket.region,
    )


def check_encryption(bucket: BucketRecord) -> Finding:
    algorithm = bucket.encryption.algorithm or "None"
    return check_result(
        resource_type=ResourceType.OBJECT_STORE,
        resource_id=bucket.name,
        check_name="Server-Side Encryption",
        passed=bucket.encryption.enabled,
        fail_severity=Severity.MEDIUM,
        pass_message=f"Encryption is enabled using {algorithm}",
        fail_message="Server-side encryption is NOT enabled. Data at rest is not protected",
        region=bucket.region,
    )


def check_versioning(bucket: BucketRecord) -> Finding:
    return check_result(
        resource_type=ResourceType.OBJECT_STORE,
        resource_id=bucket.name,
        check_name="Versioning",
        passed=bucket.versioning.enabled,
        fail_severity=Severity.LOW,
        pass_message="Versioning is enabled - objects can be recovered if deleted",
        fail_message="Versioning is NOT enabled. Consider enabling for data protection",
        region=bucket.region,
    )


BUCKET_CHECKS = (check_public_access_blocked, check_encryption, check_versioning)


class StorageEvaluator(Evaluator):
    provider = "S3"
    resource_type = ResourceType.OBJECT_STORE

    def evaluate(self, resources: StorageResourceSet) -> list[Finding]:
        return [check(bucket) for bucket in resources.buckets for check in BUCKET_CHECKS]
