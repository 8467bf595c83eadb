"""Identity (IAM) collector: account summary and users with MFA, console access, and attached policies."""

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError

from app.schemas.provider import AwsConfig
from app.schemas.resources import AccountSummary, IdentityResourceSet, IdentityUserRecord
from app.services.collectors.base import Collector, client_config, lookup_or_default

logger = logging.getLogger(__name__)

NO_SUCH_ENTITY = "NoSuchEntity"


def account_summary_from_response(response: dict[str, Any]) -> AccountSummary:
    summary = response.get("SummaryMap", {})
    return AccountSummary(
        users=summary.get("Users", 0),
        groups=summary.get("Groups", 0),
        roles=summary.get("Roles", 0),
        policies=summary.get("Policies", 0),
        mfa_devices=summary.get("MFADevices", 0),
        account_mfa_enabled=summary.get("AccountMFAEnabled", 0) == 1,
    )


class IdentityCollector(Collector[IdentityResourceSet]):
    """
    Collects the account summary and every IAM user.

    Per-user lookups run concurrently. A failed MFA lookup reads as "no MFA" and a failed
    policy lookup as "no policies". Console access is False only on NoSuchEntity; any other
    failure assumes console access so the MFA requirement is still enforced.
    """

    provider = "IAM"

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_session(cls, session: boto3.Session, config: AwsConfig) -> "IdentityCollector":
        return cls(session.client("iam", config=client_config(config)))

    def _list_users(self) -> list[dict[str, Any]]:
        paginator = self._client.get_paginator("list_users")
        users: list[dict[str, Any]] = []
        for page in paginator.paginate():
            users.extend(u for u in page.get("Users", []) if u.get("UserName"))
        return users

    def _has_mfa(self, user_name: str) -> bool:
        paginator = self._client.get_paginator("list_mfa_devices")
        return any(page.get("MFADevices") for page in paginator.paginate(UserName=user_name))

    def _has_console_access(self, user_name: str) -> bool:
        try:
            self._client.get_login_profile(UserName=user_name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == NO_SUCH_ENTITY:
                return False
            raise
        return True

    def _attached_policy_arns(self, user_name: str) -> list[str]:
        paginator = self._client.get_paginator("list_attached_user_policies")
        arns: list[str] = []
        for page in paginator.paginate(UserName=user_name):
            arns.extend(p.get("PolicyArn") or "" for p in page.get("AttachedPolicies", []))
        return arns

    async def _describe_user(self, user: dict[str, Any]) -> IdentityUserRecord:
        user_name = user["UserName"]
        has_mfa, has_console_access, attached_policies = await asyncio.gather(
            lookup_or_default(
                lambda: self._has_mfa(user_name),
                False,
                f"iam:ListMFADevices {user_name}",
            ),
            lookup_or_default(
                lambda: self._has_console_access(user_name),
                True,
                f"iam:GetLoginProfile {user_name}",
            ),
            lookup_or_default(
                lambda: self._attached_policy_arns(user_name),
                [],
                f"iam:ListAttachedUserPolicies {user_name}",
            ),
        )
        return IdentityUserRecord(
            user_name=user_name,
            user_id=user.get("UserId") or "",
            arn=user.get("Arn") or "",
            create_date=user.get("CreateDate"),
            password_last_used=user.get("PasswordLastUsed"),
            has_mfa=has_mfa,
            has_console_access=has_console_access,
            attached_policies=attached_policies,
        )

    async def collect(self) -> IdentityResourceSet:
        users, summary = await asyncio.gather(
            self.list_or_raise(self._list_users, "IAM users"),
            self.list_or_raise(self._client.get_account_summary, "IAM account summary"),
        )
        records = await asyncio.gather(*(self._describe_user(u) for u in users))
        logger.info("Collected IAM users", extra={"user_count": len(records)})
        return IdentityResourceSet(
            account=account_summary_from_response(summary),
            users=list(records),
        )
