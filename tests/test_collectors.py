"""Collector tests against moto's in-memory AWS: normalization and fail-closed defaults.

Resources are created through real boto3 calls under ``mock_aws``. Only error codes moto
cannot produce on demand are injected by patching a single client method.
"""

import os
import unittest
from unittest.mock import patch

import boto3
from botocore.exceptions import ClientError, EndpointConnectionError
from moto import mock_aws

from app.services.collectors import (
    CollectorError,
    ComputeCollector,
    DatabaseCollector,
    IdentityCollector,
    StorageCollector,
)
from app.services.collectors.database import db_instance_from_response
from app.services.collectors.storage import region_from_location

REGION = "us-east-1"
FAKE_CREDENTIALS = {
    "AWS_ACCESS_KEY_ID": "testing",
    "AWS_SECRET_ACCESS_KEY": "testing",
    "AWS_SECURITY_TOKEN": "testing",
    "AWS_SESSION_TOKEN": "testing",
    "AWS_DEFAULT_REGION": REGION,
}
ADMIN_POLICY_ARN = "arn:aws:iam::aws:policy/AdministratorAccess"


def _client_error(code: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class MockedAwsTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        env = patch.dict(os.environ, FAKE_CREDENTIALS)
        env.start()
        self.addCleanup(env.stop)
        aws = mock_aws(config={"iam": {"load_aws_managed_policies": True}})
        aws.start()
        self.addCleanup(aws.stop)


class TestRegionFromLocation(unittest.TestCase):
    def test_empty_constraint_is_us_east_1(self) -> None:
        self.assertEqual(region_from_location({"LocationConstraint": None}), "us-east-1")
        self.assertEqual(region_from_location({}), "us-east-1")

    def test_legacy_eu_alias(self) -> None:
        self.assertEqual(region_from_location({"LocationConstraint": "EU"}), "eu-west-1")

    def test_explicit_region(self) -> None:
        self.assertEqual(
            region_from_location({"LocationConstraint": "ap-southeast-2"}), "ap-southeast-2"
        )


class TestStorageCollector(MockedAwsTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = boto3.client("s3", region_name=REGION)

    async def test_fully_configured_bucket(self) -> None:
        boto3.client("s3", region_name="eu-central-1").create_bucket(
            Bucket="assets",
            CreateBucketConfiguration={"LocationConstraint": "eu-central-1"},
        )
        self.client.put_bucket_encryption(
            Bucket="assets",
            ServerSideEncryptionConfiguration={
                "Rules": [{"ApplyServerSideEncryptionByDefault": {"SSEAlgorithm": "AES256"}}]
            },
        )
        self.client.put_bucket_versioning(
            Bucket="assets", VersioningConfiguration={"Status": "Enabled"}
        )
        self.client.put_public_access_block(
            Bucket="assets",
            PublicAccessBlockConfiguration={
                "BlockPublicAcls": True,
                "BlockPublicPolicy": True,
                "IgnorePublicAcls": True,
                "RestrictPublicBuckets": True,
            },
        )

        resources = await StorageCollector(self.client).collect()
        bucket = resources.buckets[0]
        self.assertEqual(bucket.name, "assets")
        self.assertEqual(bucket.region, "eu-central-1")
        self.assertEqual(bucket.encryption.algorithm, "AES256")
        self.assertTrue(bucket.encryption.enabled)
        self.assertTrue(bucket.versioning.enabled)
        self.assertTrue(bucket.public_access.is_fully_blocked)
        self.assertIsNotNone(bucket.creation_date)

    async def test_us_east_1_bucket_without_versioning(self) -> None:
        self.client.create_bucket(Bucket="logs")
        resources = await StorageCollector(self.client).collect()
        bucket = resources.buckets[0]
        self.assertEqual(bucket.region, "us-east-1")
        self.assertFalse(bucket.versioning.enabled)
        self.assertFalse(bucket.versioning.mfa_delete)

    async def test_every_bucket_is_described(self) -> None:
        for name in ("alpha", "beta", "gamma"):
            self.client.create_bucket(Bucket=name)
        resources = await StorageCollector(self.client).collect()
        self.assertEqual(sorted(b.name for b in resources.buckets), ["alpha", "beta", "gamma"])

    async def test_failed_lookups_fail_closed(self) -> None:
        self.client.create_bucket(Bucket="legacy")
        self.client.put_bucket_versioning(
            Bucket="legacy", VersioningConfiguration={"Status": "Enabled"}
        )
        with (
            patch.object(
                self.client, "get_bucket_location", side_effect=_client_error("AccessDenied")
            ),
            patch.object(
                self.client,
                "get_bucket_encryption",
                side_effect=_client_error("ServerSideEncryptionConfigurationNotFoundError"),
            ),
            patch.object(
                self.client, "get_bucket_versioning", side_effect=_client_error("AccessDenied")
            ),
            patch.object(
                self.client,
                "get_public_access_block",
                side_effect=_client_error("NoSuchPublicAccessBlockConfiguration"),
            ),
        ):
            resources = await StorageCollector(self.client).collect()
        bucket = resources.buckets[0]
        self.assertEqual(bucket.name, "legacy")
        self.assertEqual(bucket.region, "unknown")
        self.assertFalse(bucket.encryption.enabled)
        self.assertFalse(bucket.versioning.enabled)
        self.assertFalse(bucket.public_access.is_fully_blocked)

    async def test_no_buckets(self) -> None:
        resources = await StorageCollector(self.client).collect()
        self.assertEqual(resources.buckets, [])

    async def test_listing_failure_raises_collector_error(self) -> None:
        with patch.object(
            self.client,
            "list_buckets",
            side_effect=_client_error("InvalidAccessKeyId", "ListBuckets"),
        ):
            with self.assertRaises(CollectorError) as ctx:
                await StorageCollector(self.client).collect()
        self.assertEqual(ctx.exception.provider, "S3")
        self.assertIsInstance(ctx.exception.cause, ClientError)

    async def test_network_failure_raises_collector_error(self) -> None:
        with patch.object(
            self.client,
            "list_buckets",
            side_effect=EndpointConnectionError(endpoint_url="https://s3.amazonaws.com"),
        ):
            with self.assertRaises(CollectorError):
                await StorageCollector(self.client).collect()


class TestComputeCollector(MockedAwsTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = boto3.client("ec2", region_name=REGION)

    async def test_security_group_rules(self) -> None:
        web = self.client.create_security_group(GroupName="web", Description="web tier")
        self.client.authorize_security_group_ingress(
            GroupId=web["GroupId"],
            IpPermissions=[
                {
                    "IpProtocol": "tcp",
                    "FromPort": 22,
                    "ToPort": 22,
                    "IpRanges": [{"CidrIp": "0.0.0.0/0"}],
                },
                {
                    "IpProtocol": "tcp",
                    "FromPort": 3389,
                    "ToPort": 3389,
                    "Ipv6Ranges": [{"CidrIpv6": "::/0"}],
                },
            ],
        )
        internal = self.client.create_security_group(GroupName="internal", Description="vpc only")
        self.client.authorize_security_group_ingress(
            GroupId=internal["GroupId"],
            IpPermissions=[
                {
                    "IpProtocol": "tcp",
                    "FromPort": 22,
                    "ToPort": 22,
                    "IpRanges": [{"CidrIp": "10.0.0.0/8"}],
                }
            ],
        )

        resources = await ComputeCollector(self.client, region=REGION).collect()
        groups = {sg.group_id: sg for sg in resources.security_groups}

        exposed = groups[web["GroupId"]]
        self.assertEqual(exposed.group_name, "web")
        self.assertEqual(exposed.description, "web tier")
        self.assertEqual(exposed.region, REGION)
        self.assertTrue(exposed.has_open_ssh)
        self.assertTrue(exposed.has_open_rdp)
        self.assertTrue(exposed.has_open_to_world)
        self.assertEqual(
            sorted(r.source for r in exposed.inbound_rules), ["0.0.0.0/0", "::/0"]
        )

        private = groups[internal["GroupId"]]
        self.assertFalse(private.has_open_ssh)
        self.assertFalse(private.has_open_to_world)

    async def test_instances(self) -> None:
        self.client.run_instances(
            ImageId="ami-12c6146b",
            MinCount=1,
            MaxCount=1,
            InstanceType="t3.micro",
            Placement={"AvailabilityZone": "us-east-1b"},
            TagSpecifications=[
                {"ResourceType": "instance", "Tags": [{"Key": "Name", "Value": "web"}]}
            ],
        )
        self.client.run_instances(ImageId="ami-12c6146b", MinCount=1, MaxCount=1)

        resources = await ComputeCollector(self.client, region=REGION).collect()
        by_name = {i.name: i for i in resources.instances}
        self.assertEqual(sorted(by_name), ["Unnamed", "web"])
        web = by_name["web"]
        self.assertTrue(web.instance_id.startswith("i-"))
        self.assertEqual(web.state, "running")
        self.assertEqual(web.instance_type, "t3.micro")
        self.assertEqual(web.region, "us-east-1b")
        self.assertTrue(web.security_groups)

    async def test_either_listing_failing_fails_provider(self) -> None:
        with patch.object(
            self.client,
            "describe_security_groups",
            side_effect=_client_error("UnauthorizedOperation", "DescribeSecurityGroups"),
        ):
            with self.assertRaises(CollectorError) as ctx:
                await ComputeCollector(self.client).collect()
        self.assertEqual(ctx.exception.provider, "EC2")
        self.assertIn("security groups", ctx.exception.message)


class TestIdentityCollector(MockedAwsTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = boto3.client("iam", region_name=REGION)

    def _console_admin_with_mfa(self, user_name: str) -> None:
        self.client.create_user(UserName=user_name)
        self.client.create_login_profile(UserName=user_name, Password="Corr3ct-Horse-Battery")
        self.client.attach_user_policy(UserName=user_name, PolicyArn=ADMIN_POLICY_ARN)
        device = self.client.create_virtual_mfa_device(VirtualMFADeviceName=f"{user_name}-mfa")
        self.client.enable_mfa_device(
            UserName=user_name,
            SerialNumber=device["VirtualMFADevice"]["SerialNumber"],
            AuthenticationCode1="123456",
            AuthenticationCode2="234567",
        )

    async def test_user_attributes(self) -> None:
        self._console_admin_with_mfa("alice")
        self.client.create_user(UserName="bob")

        resources = await IdentityCollector(self.client).collect()
        self.assertEqual(resources.account.users, 2)
        users = {u.user_name: u for u in resources.users}

        alice = users["alice"]
        self.assertTrue(alice.has_console_access)
        self.assertTrue(alice.has_mfa)
        self.assertEqual(alice.attached_policies, [ADMIN_POLICY_ARN])
        self.assertTrue(alice.arn.endswith(":user/alice"))
        self.assertTrue(alice.user_id)

        bob = users["bob"]
        self.assertFalse(bob.has_console_access)
        self.assertFalse(bob.has_mfa)
        self.assertEqual(bob.attached_policies, [])

    async def test_other_login_profile_errors_assume_console_access(self) -> None:
        self.client.create_user(UserName="carol")
        with patch.object(
            self.client, "get_login_profile", side_effect=_client_error("AccessDenied")
        ):
            resources = await IdentityCollector(self.client).collect()
        self.assertTrue(resources.users[0].has_console_access)

    async def test_failed_policy_and_mfa_lookups_read_as_absent(self) -> None:
        self._console_admin_with_mfa("dave")
        with (
            patch.object(
                self.client,
                "list_attached_user_policies",
                side_effect=_client_error("AccessDenied"),
            ),
            patch.object(
                self.client, "list_mfa_devices", side_effect=_client_error("AccessDenied")
            ),
        ):
            resources = await IdentityCollector(self.client).collect()
        dave = resources.users[0]
        self.assertEqual(dave.attached_policies, [])
        self.assertFalse(dave.has_mfa)
        self.assertTrue(dave.has_console_access)

    async def test_account_summary_failure_fails_provider(self) -> None:
        self.client.create_user(UserName="erin")
        with patch.object(
            self.client, "get_account_summary", side_effect=_client_error("AccessDenied")
        ):
            with self.assertRaises(CollectorError) as ctx:
                await IdentityCollector(self.client).collect()
        self.assertEqual(ctx.exception.provider, "IAM")


class TestDatabaseCollector(MockedAwsTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = boto3.client("rds", region_name=REGION)

    async def test_instance_normalization(self) -> None:
        self.client.create_db_instance(
            DBInstanceIdentifier="orders-db",
            DBInstanceClass="db.t3.micro",
            Engine="postgres",
            MasterUsername="admin_user",
            MasterUserPassword="Sup3r-Secret-Pass",
            AllocatedStorage=20,
            AvailabilityZone="us-east-1a",
            PubliclyAccessible=True,
            StorageEncrypted=True,
            BackupRetentionPeriod=7,
            MultiAZ=False,
        )
        resources = await DatabaseCollector(self.client).collect()
        orders = resources.instances[0]
        self.assertEqual(orders.db_instance_id, "orders-db")
        self.assertEqual(orders.engine, "postgres")
        self.assertEqual(orders.db_instance_class, "db.t3.micro")
        self.assertTrue(orders.is_publicly_accessible)
        self.assertTrue(orders.is_encrypted)
        self.assertEqual(orders.backup_retention_period, 7)
        self.assertTrue(orders.has_backup_enabled)
        self.assertFalse(orders.multi_az)
        self.assertEqual(orders.port, 5432)
        self.assertEqual(orders.region, "us-east-1a")

    async def test_no_instances(self) -> None:
        resources = await DatabaseCollector(self.client).collect()
        self.assertEqual(resources.instances, [])

    async def test_listing_failure(self) -> None:
        with patch.object(
            self.client, "describe_db_instances", side_effect=_client_error("AccessDenied")
        ):
            with self.assertRaises(CollectorError) as ctx:
                await DatabaseCollector(self.client).collect()
        self.assertEqual(ctx.exception.provider, "RDS")


class TestDatabaseInstanceFromResponse(unittest.TestCase):
    def test_missing_attributes_fail_closed(self) -> None:
        bare = db_instance_from_response({"DBInstanceIdentifier": "bare-db"})
        self.assertFalse(bare.is_encrypted)
        self.assertFalse(bare.is_publicly_accessible)
        self.assertEqual(bare.backup_retention_period, 0)
        self.assertFalse(bare.has_backup_enabled)
        self.assertIsNone(bare.port)


if __name__ == "__main__":
    unittest.main()
