from account_service.core.errors import FieldIssue, FieldValidationError

MISSING_IDENTIFIER_MESSAGE = "Email or phone is missing"


def email_or_phone_issues(email: str | None, phone: str | None) -> list[FieldIssue]:
    if email or phone:
        return []
    return [
        FieldIssue(path="email", message=MISSING_IDENTIFIER_MESSAGE),
        FieldIssue(path="phone", message=MISSING_IDENTIFIER_MESSAGE),
    ]


def require_email_or_phone(email: str | None, phone: str | None) -> None:
    issues = email_or_phone_issues(email, phone)
    if issues:
        raise FieldValidationError(issues, message=MISSING_IDENTIFIER_MESSAGE)
