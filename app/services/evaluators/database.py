"""Managed database checks: public accessibility, encryption, automated backups, Multi-AZ."""

from app.schemas.resources import DatabaseInstanceRecord, DatabaseResourceSet
from app.schemas.scan import Finding, ResourceType, Severity
from app.services.evaluators.base import Evaluator, check_result


def check_public_accessibility(db: DatabaseInstanceRecord) -> Finding:
    return check_result(
        resource_type=ResourceType.DATABASE,
        resource_id=db.db_instance_id,
        check_name="Public Accessibility",
        passed=not db.is_publicly_accessible,
        fail_severity=Severity.HIGH,
        pass_message="RDS instance is not publicly accessible",
        fail_message="RDS instance is publicly accessible. This exposes your database to the internet",
        region=db.region,
    )


def check_encryption_at_rest(db: DatabaseInstanceRecord) -> Finding:
    return check_result(
        resource_type=ResourceType.DATABASE,
        resource_id=db.db_instance_id,
        check_name="Encryption at Rest",
        passed=db.is_encrypted,
        fail_severity=Severity.MEDIUM,
        pass_message="Storage encryption is enabled",
        fail_message="Storage encryption is NOT enabled. Data at rest is not protected",
        region=db.region,
    )


def check_automated_backups(db: DatabaseInstanceRecord) -> Finding:
    return check_result(
        resource_type=ResourceType.DATABASE,
        resource_id=db.db_instance_id,
        check_name="Automated Backups",
        passed=db.has_backup_enabled,
        fail_severity=Severity.MEDIUM,
        pass_message=(
            f"Automated backups enabled with {db.backup_retention_period} day retention"
        ),
        fail_message="Automated backups are NOT enabled. Enable for disaster recovery",
        region=db.region,
    )


def check_multi_az(db: DatabaseInstanceRecord) -> Finding:
    return check_result(
        resource_type=ResourceType.DATABASE,
        resource_id=db.db_instance_id,
        check_name="Multi-AZ Deployment",
        passed=db.multi_az,
        fail_severity=Severity.LOW,
        pass_message="Multi-AZ deployment is enabled for high availability",
        fail_message="Multi-AZ deployment is NOT enabled. Consider for production workloads",
        region=db.region,
    )


DB_INSTANCE_CHECKS = (
    check_public_accessibility,
    check_encryption_at_rest,
    check_automated_backups,
    check_multi_az,
)


class DatabaseEvaluator(Evaluator):
    provider = "RDS"
    resource_type = ResourceType.DATABASE

    def evaluate(self, resources: DatabaseResourceSet) -> list[Finding]:
        return [check(db) for db in resources.instances for check in DB_INSTANCE_CHECKS]
