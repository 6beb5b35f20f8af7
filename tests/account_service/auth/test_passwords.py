from account_service.auth.passwords import hash_password, verify_password


def test_hash_password_does_not_store_plain_text() -> None:
    hashed = hash_password('secret1')

    assert hashed != 'secret1'
    assert hashed.startswith('$2')


def test_verify_password_accepts_matching_secret() -> None:
    assert verify_password('secret1', hash_password('secret1')) is True


def test_verify_password_rejects_wrong_secret() -> None:
    assert verify_password('wrong', hash_password('secret1')) is False


def test_verify_password_returns_false_for_missing_or_malformed_hash() -> None:
    assert verify_password('secret1', None) is False
    assert verify_password('secret1', '') is False
    assert verify_password('secret1', 'not-a-hash') is False
