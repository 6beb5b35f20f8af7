"""Domain errors and the handlers that render them as the error envelope."""

from dataclasses import dataclass

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException


@dataclass(frozen=True)
class FieldIssue:
    path: str
    message: str

    def as_dict(self) -> dict:
        return {"path": self.path, "message": self.message}


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT


class FieldValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, issues: list[FieldIssue], message: str = "Validation error") -> None:
        super().__init__(message)
        self.issues = issues


def error_body(status_code: int, message: str, issues: list[FieldIssue] | None = None) -> dict:
    body = {"statusCode": status_code, "message": message}
    if issues:
        body["issues"] = [issue.as_dict() for issue in issues]
    return body


def issues_from_validation_errors(errors) -> list[FieldIssue]:
    issues = []
    for error in errors:
        # drop the leading "body"/"query" segment FastAPI adds
        location = [str(part) for part in error.get("loc", ())[1:]]
        issues.append(FieldIssue(path=".".join(location), message=error.get("msg", "Invalid value")))
    return issues


async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    issues = exc.issues if isinstance(exc, FieldValidationError) else None
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.message, issues))


async def request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    issues = issues_from_validation_errors(exc.errors())
    message = issues[0].message if len(issues) == 1 else "Validation error"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(status.HTTP_400_BAD_REQUEST, message, issues),
    )


async def http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, message),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
