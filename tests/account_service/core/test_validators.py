import pytest

from account_service.core.errors import FieldIssue, FieldValidationError
from account_service.core.validators import email_or_phone_issues, require_email_or_phone


@pytest.mark.parametrize(
    ('email', 'phone'),
    [
        ('a@x.com', None),
        (None, '+15550001'),
        ('a@x.com', '+15550001'),
    ],
)
def test_no_issues_when_an_identifier_is_present(email, phone) -> None:
    assert email_or_phone_issues(email, phone) == []
    require_email_or_phone(email, phone)


@pytest.mark.parametrize(('email', 'phone'), [(None, None), ('', ''), ('', None)])
def test_missing_identifiers_name_both_fields(email, phone) -> None:
    with pytest.raises(FieldValidationError) as exception_info:
        require_email_or_phone(email, phone)

    assert exception_info.value.status_code == 400
    assert exception_info.value.issues == [
        FieldIssue(path='email', message='Email or phone is missing'),
        FieldIssue(path='phone', message='Email or phone is missing'),
    ]
