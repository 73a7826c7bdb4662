"""Typed errors raised by the fraud engine."""


class FraudEngineError(Exception):
    """Base class for every fraud engine error."""


class InvalidTransaction(FraudEngineError, ValueError):
    """Malformed candidate transaction; it is never partially evaluated."""


class HistoryUnavailable(FraudEngineError):
    """The ledger could not serve history for an actor or counterparty."""


class InvalidStateTransition(FraudEngineError):
    """Illegal case-manager move. The report is left unchanged."""

    def __init__(self, report_id: str, current: str, operation: str, reason: str = "") -> None:
        self.report_id = report_id
        self.current = current
        self.operation = operation
        message = f"Cannot {operation} report {report_id} in status {current}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidReportInput(FraudEngineError, ValueError):
    pass


class ReportNotFound(FraudEngineError, LookupError):
    pass


class NotAuthorized(FraudEngineError, PermissionError):
    pass


class AlreadyReviewed(FraudEngineError):
    """A decision already exists for the flagged transaction."""

    def __init__(self, transaction_id: str, decision: str, reviewed_by: str | None) -> None:
        self.transaction_id = transaction_id
        self.decision = decision
        self.reviewed_by = reviewed_by
        super().__init__(
            f"Transaction {transaction_id} already reviewed ({decision} by {reviewed_by})"
        )


class ConflictingReview(AlreadyReviewed):
    """A different decision was already recorded for the transaction."""


class RecordNotFound(FraudEngineError, LookupError):
    pass


class ReviewNotRequired(FraudEngineError, ValueError):
    pass
