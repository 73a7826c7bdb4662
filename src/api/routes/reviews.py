"""Verifier review queue endpoints."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from src.api.dependencies import FraudEngine, get_engine
from src.domains.fraud.models import FlaggedTransactionRecord, ReviewDecision, RiskLevel

router = APIRouter(prefix="/api/v1/fraud/reviews", tags=["fraud-reviews"])


class ReviewRequest(BaseModel):
    decision: ReviewDecision
    reviewer_id: str
    notes: str | None = None


def _serialize(record: FlaggedTransactionRecord) -> dict:
    data = record.model_dump(mode="json")
    data["settlement"] = record.settlement.value
    return data


@router.get("")
async def list_reviews(
    risk_level: RiskLevel | None = Query(default=None),  # noqa: B008
    pending_only: bool = Query(default=False),
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    items = [
        _serialize(r)
        for r in engine.reviews.list(risk_level=risk_level, pending_only=pending_only)
    ]
    return {"items": items, "total": len(items)}


@router.get("/{transaction_id}")
async def get_review(
    transaction_id: str,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    return _serialize(engine.reviews.get(transaction_id))


@router.post("/{transaction_id}")
async def review_transaction(
    transaction_id: str,
    request: ReviewRequest,
    engine: FraudEngine = Depends(get_engine),  # noqa: B008
) -> dict:
    record = await engine.reviews.review(
        transaction_id, request.decision, request.reviewer_id, notes=request.notes
    )
    return _serialize(record)
