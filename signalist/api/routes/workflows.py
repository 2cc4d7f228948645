from __future__ import annotations

from fastapi import APIRouter, Depends

from signalist.api.deps import get_alert_workflow, get_news_workflow
from signalist.auth.deps import require_role
from signalist.core.models import WorkflowResult
from signalist.models.user import User
from signalist.workflows.alert_delivery import AlertDeliveryWorkflow
from signalist.workflows.news_digest import NewsDigestWorkflow

router = APIRouter(prefix="/api/workflows", tags=["workflows"])


@router.post("/hourly-alerts", response_model=WorkflowResult)
async def run_hourly_alerts(
    _: User = Depends(require_role("admin")),
    workflow: AlertDeliveryWorkflow = Depends(get_alert_workflow),
) -> WorkflowResult:
    return await workflow.run()


@router.post("/daily-news", response_model=WorkflowResult)
async def run_daily_news(
    _: User = Depends(require_role("admin")),
    workflow: NewsDigestWorkflow = Depends(get_news_workflow),
) -> WorkflowResult:
    return await workflow.run()
