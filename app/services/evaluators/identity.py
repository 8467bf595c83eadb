"""Identity checks: root account MFA, per-user MFA for console users, admin policy attachment."""

from app.schemas.resources import AccountSummary, IdentityResourceSet, IdentityUserRecord
from app.schemas.scan import CheckStatus, Finding, ResourceType, Severity
from app.services.evaluators.base import Evaluator, check_result

ROOT_ACCOUNT_ID = "ROOT-ACCOUNT"

# Exact ARNs of AWS-managed policies treated as admin-granting.
ADMIN_POLICY_ARNS = frozenset(
    {
        "arn:aws:iam::aws:policy/AdministratorAccess",
        "arn:aws:iam::aws:policy/PowerUserAccess",
        "arn:aws:iam::aws:policy/IAMFullAccess",
    }
)


def is_admin_policy(policy_arn: str) -> bool:
    return policy_arn in ADMIN_POLICY_ARNS


def check_root_mfa(account: AccountSummary) -> Finding:
    return check_result(
        resource_type=ResourceType.IDENTITY,
        resource_id=ROOT_ACCOUNT_ID,
        check_name="Root Account MFA",
        passed=account.account_mfa_enabled,
        fail_severity=Severity.CRITICAL,
        pass_message="Root account has MFA enabled",
        fail_message="Root account does NOT have MFA enabled. This is a critical security risk",
    )


def check_user_mfa(user: IdentityUserRecord) -> Finding:
    if not user.has_console_access:
        return Finding(
            resource_type=ResourceType.IDENTITY,
            resource_id=user.user_name,
            check_name="MFA Enabled",
            status=CheckStatus.PASS,
            severity=Severity.LOW,
            message="User does not have console access, MFA not required",
        )
    return check_result(
        resource_type=ResourceType.IDENTITY,
        resource_id=user.user_name,
        check_name="MFA Enabled",
        passed=user.has_mfa,
        fail_severity=Severity.HIGH,
        pass_message="MFA is enabled for this user",
        fail_message="MFA is NOT enabled. User with console access should have MFA",
    )


def check_admin_access(user: IdentityUserRecord) -> Finding:
    admin_policies = [arn for arn in user.attached_policies if is_admin_policy(arn)]
    return check_result(
        resource_type=ResourceType.IDENTITY,
        resource_id=user.user_name,
        check_name="Admin Access Check",
        passed=not admin_policies,
        fail_severity=Severity.HIGH,
        pass_message="User does not have admin-level permissions",
        fail_message=(
            "User has admin-level permissions "
            f"({', '.join(admin_policies)}). Ensure this is necessary"
        ),
    )


USER_CHECKS = (check_user_mfa, check_admin_access)


class IdentityEvaluator(Evaluator):
    provider = "IAM"
    resource_type = ResourceType.IDENTITY

    def evaluate(self, resources: IdentityResourceSet) -> list[Finding]:
        findings = [check_root_mfa(resources.account)]
        findings.extend(check(user) for user in resources.users for check in USER_CHECKS)
        return findings
