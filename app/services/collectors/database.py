"""Managed database (RDS) collector."""

import logging
from typing import Any

import boto3

from app.schemas.provider import AwsConfig
from app.schemas.resources import DatabaseInstanceRecord, DatabaseResourceSet
from app.services.collectors.base import Collector, client_config

logger = logging.getLogger(__name__)


def db_instance_from_response(instance: dict[str, Any]) -> DatabaseInstanceRecord:
    endpoint = instance.get("Endpoint") or {}
    return DatabaseInstanceRecord(
        db_instance_id=instance["DBInstanceIdentifier"],
        db_instance_class=instance.get("DBInstanceClass") or "unknown",
        engine=instance.get("Engine") or "unknown",
        engine_version=instance.get("EngineVersion") or "",
        status=instance.get("DBInstanceStatus") or "unknown",
        is_publicly_accessible=bool(instance.get("PubliclyAccessible", False)),
        is_encrypted=bool(instance.get("StorageEncrypted", False)),
        backup_retention_period=instance.get("BackupRetentionPeriod") or 0,
        multi_az=bool(instance.get("MultiAZ", False)),
        vpc_security_groups=[
            sg.get("VpcSecurityGroupId") or ""
            for sg in instance.get("VpcSecurityGroups", [])
        ],
        endpoint=endpoint.get("Address"),
        port=endpoint.get("Port"),
        region=instance.get("AvailabilityZone"),
    )


class DatabaseCollector(Collector[DatabaseResourceSet]):
    """Collects every DB instance; all attributes come from the single listing call."""

    provider = "RDS"

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_session(cls, session: boto3.Session, config: AwsConfig) -> "DatabaseCollector":
        return cls(session.client("rds", config=client_config(config)))

    def _list_instances(self) -> list[DatabaseInstanceRecord]:
        paginator = self._client.get_paginator("describe_db_instances")
        records: list[DatabaseInstanceRecord] = []
        for page in paginator.paginate():
            for instance in page.get("DBInstances", []):
                if not instance.get("DBInstanceIdentifier"):
                    continue
                records.append(db_instance_from_response(instance))
        return records

    async def collect(self) -> DatabaseResourceSet:
        instances = await self.list_or_raise(self._list_instances, "RDS instances")
        logger.info("Collected RDS instances", extra={"db_instance_count": len(instances)})
        return DatabaseResourceSet(instances=instances)
