import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from carebridge.auth import jwt_handler
from carebridge.auth.dependencies import get_current_user, require_admin


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_decode_access_token_returns_claims(issue_token) -> None:
    payload = jwt_handler.decode_access_token(issue_token('patient.a@example.com'))

    assert payload['sub'] == 'patient.a@example.com'
    assert payload['exp'] > payload['iat']


def test_get_current_user_resolves_token_subject(db, patient, issue_token) -> None:
    user = get_current_user(credentials=_credentials(issue_token('patient.a@example.com')), db=db)

    assert user.id == patient.id


def test_get_current_user_matches_mixed_case_email_as_stored(db, make_user, issue_token) -> None:
    stored = make_user('Dr.Smith@Example.com')

    user = get_current_user(credentials=_credentials(issue_token('Dr.Smith@Example.com')), db=db)

    assert user.id == stored.id


def test_get_current_user_rejects_garbage_token(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials('not-a-jwt'), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_expired_token(db, patient, issue_token) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(issue_token('patient.a@example.com', expires_minutes=-1)), db=db)

    assert exception_info.value.status_code == 401


def test_get_current_user_rejects_unknown_user(db, issue_token) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(issue_token('ghost@example.com')), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'User not found'


def test_require_admin_rejects_regular_users(patient, admin) -> None:
    assert require_admin(current_user=admin) is admin

    with pytest.raises(HTTPException) as exception_info:
        require_admin(current_user=patient)

    assert exception_info.value.status_code == 403
