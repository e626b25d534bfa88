# =========================================================
# PRO-GES ERROR TYPES
#
# Raised by the backend gateway and the workflow services.
# Routers translate them into HTTPException.
# =========================================================

from fastapi import HTTPException, status


class BackendError(Exception):
    """A table, RPC or storage call failed. Carries the raw backend message."""

    def __init__(self, message: str, table: str | None = None):
        super().__init__(message)
        self.message = message
        self.table = table


class StepValidationError(Exception):
    """A wizard step is missing required fields. Never reaches the backend."""

    def __init__(self, step: int, step_name: str, missing: list[str]):
        self.step = step
        self.step_name = step_name
        self.missing = missing
        super().__init__(
            f"Step {step} ({step_name}) is missing: {', '.join(missing)}"
        )


class WizardBusyError(Exception):
    pass


class CommitError(Exception):
    """
    A commit sequence aborted.

    `step` names the write that failed, `compensated` lists the
    "<table>:<id>" rows deleted while unwinding.
    """

    def __init__(self, step: str, message: str, compensated: list[str] | None = None):
        self.step = step
        self.message = message
        self.compensated = compensated or []
        super().__init__(f"{step}: {message}")


class ReceptionError(Exception):
    def __init__(self, failed_item_ids: list[int], status: str | None):
        self.failed_item_ids = failed_item_ids
        self.status = status
        super().__init__(
            f"Reception failed for items {failed_item_ids}"
        )


class PaymentValidationError(ValueError):
    pass


class PaymentGatewayError(Exception):
    pass


class PaymentNotConfirmedError(Exception):
    """The gateway answered, but the payment is not paid."""


class PaymentReplayError(Exception):
    """A payment intent or gateway token was presented a second time."""


def to_http_exception(exc: Exception) -> HTTPException:
    """Map a workflow failure onto the HTTP error the routers raise."""
    if isinstance(exc, (StepValidationError, PaymentValidationError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    if isinstance(exc, (WizardBusyError, PaymentReplayError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    if isinstance(exc, PaymentNotConfirmedError):
        return HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(exc))

    if isinstance(exc, LookupError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0]))

    if isinstance(exc, CommitError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "step": exc.step,
                "message": exc.message,
                "compensated": exc.compensated,
            },
        )

    if isinstance(exc, ReceptionError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": str(exc),
                "failed_item_ids": exc.failed_item_ids,
                "status": exc.status,
            },
        )

    if isinstance(exc, BackendError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)

    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
