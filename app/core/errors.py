from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class FinanceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(FinanceError):
    """A required field is missing or malformed; nothing was written."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidFrequency(ValidationError):
    pass


class InvalidInterval(ValidationError):
    pass


class NotAuthenticated(FinanceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFound(FinanceError):
    """The row does not exist, or it belongs to another user."""

    status_code = status.HTTP_404_NOT_FOUND


class ConstraintViolation(FinanceError):
    """The store refused the write (uniqueness, check or ownership policy)."""

    status_code = status.HTTP_409_CONFLICT


def _finance_error_handler(request: Request, exc: FinanceError) -> JSONResponse:
    headers = None
    if isinstance(exc, NotAuthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FinanceError, _finance_error_handler)
