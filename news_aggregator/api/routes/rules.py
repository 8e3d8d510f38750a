"""Alert rule endpoints: list, fetch, replace and delete subscriber rules."""

from fastapi import APIRouter, Depends, HTTPException, Path, status

from news_aggregator.alerts.repository import AlertRuleRepository
from news_aggregator.alerts.schemas import AlertRule
from news_aggregator.api.dependencies import get_rule_repository
from news_aggregator.api.models import (
    ErrorResponse,
    RuleRequest,
    RuleResponse,
    RulesResponse,
)

router = APIRouter()


def _to_response(rule: AlertRule) -> RuleResponse:
    return RuleResponse(**rule.to_dict())


@router.get(
    "/rules",
    response_model=RulesResponse,
    summary="List alert rules",
)
async def list_rules(
    repo: AlertRuleRepository = Depends(get_rule_repository),
) -> RulesResponse:
    rules = await repo.list_rules()
    return RulesResponse(rules=[_to_response(r) for r in rules], total=len(rules))


@router.get(
    "/rules/{subscriber_id}",
    response_model=RuleResponse,
    responses={404: {"model": ErrorResponse, "description": "No rule for subscriber"}},
    summary="Get a subscriber's rule",
)
async def get_rule(
    subscriber_id: str = Path(..., description="Subscriber identifier"),
    repo: AlertRuleRepository = Depends(get_rule_repository),
) -> RuleResponse:
    rule = await repo.get_rule(subscriber_id)
    if rule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No alert rule for subscriber {subscriber_id!r}",
        )
    return _to_response(rule)


@router.put(
    "/rules/{subscriber_id}",
    response_model=RuleResponse,
    responses={422: {"model": ErrorResponse, "description": "Invalid or empty rule"}},
    summary="Create or replace a subscriber's rule",
    description="Rules are replaced wholesale. A rule must name at least one category, keyword or tag.",
)
async def put_rule(
    body: RuleRequest,
    subscriber_id: str = Path(..., description="Subscriber identifier"),
    repo: AlertRuleRepository = Depends(get_rule_repository),
) -> RuleResponse:
    try:
        if body.spec is not None:
            rule = AlertRule.from_spec(subscriber_id, body.spec)
            if not body.enabled:
                rule = AlertRule.from_dict({**rule.to_dict(), "enabled": False})
        else:
            rule = AlertRule(
                subscriber_id=subscriber_id,
                categories=body.categories,
                keywords=body.keywords,
                tags=body.tags,
                enabled=body.enabled,
            )
            if rule.is_empty:
                raise ValueError("Rule needs at least one category, keyword or tag")
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    stored = await repo.set_rule(rule)
    return _to_response(stored)


@router.delete(
    "/rules/{subscriber_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "No rule for subscriber"}},
    summary="Delete a subscriber's rule",
)
async def delete_rule(
    subscriber_id: str = Path(..., description="Subscriber identifier"),
    repo: AlertRuleRepository = Depends(get_rule_repository),
) -> None:
    if not await repo.delete_rule(subscriber_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No alert rule for subscriber {subscriber_id!r}",
        )
