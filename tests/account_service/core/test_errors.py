from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from account_service.core.errors import (
    ConflictError,
    FieldIssue,
    FieldValidationError,
    NotFoundError,
    UnauthorizedError,
    error_body,
    register_exception_handlers,
)


class _Payload(BaseModel):
    name: str
    age: int


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get('/missing')
    def missing():
        raise NotFoundError("User doesn't exist")

    @app.get('/unauthorized')
    def unauthorized():
        raise UnauthorizedError('Incorrect password')

    @app.get('/conflict')
    def conflict():
        raise ConflictError('User already exists with this email')

    @app.get('/invalid')
    def invalid():
        raise FieldValidationError([FieldIssue('email', 'Email or phone is missing')], message='Email or phone is missing')

    @app.get('/forbidden')
    def forbidden():
        raise HTTPException(status_code=403, detail='Administration rights required')

    @app.post('/payload')
    def payload(body: _Payload):
        return body

    return app


client = TestClient(_build_app())


def test_error_body_omits_empty_issues() -> None:
    assert error_body(404, 'nope') == {'statusCode': 404, 'message': 'nope'}


def test_domain_errors_map_to_status_codes() -> None:
    assert client.get('/missing').json() == {'statusCode': 404, 'message': "User doesn't exist"}
    assert client.get('/unauthorized').status_code == 401
    assert client.get('/conflict').status_code == 409


def test_field_validation_error_renders_issues() -> None:
    response = client.get('/invalid')

    assert response.status_code == 400
    assert response.json() == {
        'statusCode': 400,
        'message': 'Email or phone is missing',
        'issues': [{'path': 'email', 'message': 'Email or phone is missing'}],
    }


def test_http_exception_uses_error_envelope() -> None:
    response = client.get('/forbidden')

    assert response.status_code == 403
    assert response.json() == {'statusCode': 403, 'message': 'Administration rights required'}


def test_unknown_route_uses_error_envelope() -> None:
    response = client.get('/nowhere')

    assert response.status_code == 404
    assert response.json()['statusCode'] == 404


def test_request_validation_errors_are_flattened() -> None:
    response = client.post('/payload', json={'age': 'old'})

    body = response.json()
    assert response.status_code == 400
    assert body['statusCode'] == 400
    assert {issue['path'] for issue in body['issues']} == {'name', 'age'}
