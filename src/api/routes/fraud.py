"""Transaction evaluation, check catalogue, vendor standing and statistics."""

import structlog
from fastapi import APIRouter, Depends, Query

from src.api.dependencies import FraudEngine, get_engine
from src.domains.fraud.models import EvaluationRequest
from src.domains.fraud.rules import ALL_CHECKS
from src.domains.fraud.statistics import DEFAULT_TIMEFRAME, compute_statistics

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/fraud", tags=["fraud"])


@router.post("/evaluate")
async def evaluate_transaction(
    request: EvaluationRequest,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    result = await engine.evaluator.evaluate(request.to_transaction())
    return result.model_dump(mode="json")


@router.get("/evaluations/{transaction_id}")
async def get_evaluation(
    transaction_id: str,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    result = engine.evaluator.get_result(transaction_id)
    if result is None:
        raise LookupError(f"No evaluation for transaction {transaction_id}")
    return result.model_dump(mode="json")


@router.get("/rules")
async def list_checks(engine: FraudEngine = Depends(get_engine)) -> dict:  # noqa: B008
    """List every registered pattern check."""
    enabled = {c.pattern for c in engine.evaluator.detector.checks}
    return {
        "checks": [
            {
                "pattern": check.pattern.value,
                "category": check.category,
                "description": check.description,
                "enabled": check.pattern in enabled,
            }
            for check in ALL_CHECKS
        ],
        "total": len(ALL_CHECKS),
    }


@router.get("/vendors/{vendor_id}")
async def get_vendor_standing(
    vendor_id: str,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    return engine.vendors.get(vendor_id).model_dump(mode="json")


@router.get("/statistics")
async def get_statistics(
    timeframe: str = Query(default=DEFAULT_TIMEFRAME),
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    stats = compute_statistics(
        timeframe,
        reports=engine.reports.all_reports(),
        evaluations=engine.evaluator.evaluations(),
        vendor_standings=engine.vendors.flagged(),
        review_records=engine.reviews.records(),
    )
    return stats.model_dump(mode="json")
