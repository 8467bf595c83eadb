"""Rule catalog endpoint: the CIS benchmark rules the scanner covers."""

from typing import Annotated

from fastapi import APIRouter, Query

from app.schemas.rules import RulesResponse
from app.schemas.scan import ResourceType
from app.services.catalog import CIS_RULES, get_rules_by_category, get_rules_by_resource_type

router = APIRouter()


@router.get("", response_model=RulesResponse)
def list_rules(
    resource_type: Annotated[ResourceType | None, Query()] = None,
    category: Annotated[str | None, Query()] = None,
) -> RulesResponse:
    """Return catalog rules, optionally filtered by resource type and exact category."""
    rules = list(CIS_RULES)
    if resource_type is not None:
        rules = get_rules_by_resource_type(resource_type)
    if category is not None:
        in_category = {rule.id for rule in get_rules_by_category(category)}
        rules = [rule for rule in rules if rule.id in in_category]
    return RulesResponse(success=True, data=rules)
