from fastapi import HTTPException

from billing.services.errors import ActionResult, InvoicingError


def to_http_exception(exc: InvoicingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))


def result_to_http_exception(result: ActionResult) -> HTTPException:
    return HTTPException(status_code=result.status_code, detail=result.error)
