from types import SimpleNamespace

import pytest
from fastapi import Depends, FastAPI
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.testclient import TestClient

from backend.auth import jwt_handler
from backend.auth.dependencies import authorize
from backend.errors import ApiError, InsufficientAccessError, JsonWebTokenError
from backend.main import handle_api_error


def _token(role_name: str) -> str:
    user = SimpleNamespace(id=7, name='Satrio', email='satrio@gmail.com', image=None)
    role = SimpleNamespace(id=2 if role_name == 'ADMIN' else 1, name=role_name)
    return jwt_handler.create_access_token(jwt_handler.build_token_payload(user, role))


def _request():
    return SimpleNamespace(state=SimpleNamespace(), url=SimpleNamespace(path='/cars'))


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_authorize_requires_a_token() -> None:
    with pytest.raises(JsonWebTokenError) as exception_info:
        authorize('ADMIN')(request=_request(), credentials=None)

    assert exception_info.value.to_dict() == {
        'error': {'name': 'JsonWebTokenError', 'message': 'jwt must be provided', 'details': None}
    }


def test_authorize_rejects_malformed_token() -> None:
    with pytest.raises(JsonWebTokenError) as exception_info:
        authorize('ADMIN')(request=_request(), credentials=_bearer('abc'))

    assert exception_info.value.message == 'jwt malformed'


def test_authorize_rejects_role_mismatch() -> None:
    with pytest.raises(InsufficientAccessError) as exception_info:
        authorize('ADMIN')(request=_request(), credentials=_bearer(_token('CUSTOMER')))

    assert exception_info.value.status_code == 401
    assert exception_info.value.details['role'] == 'ADMIN'


def test_authorize_attaches_payload_for_matching_role() -> None:
    request = _request()

    payload = authorize('ADMIN')(request=request, credentials=_bearer(_token('ADMIN')))

    assert payload['role']['name'] == 'ADMIN'
    assert request.state.user is payload


def test_authorize_without_role_admits_any_valid_token() -> None:
    payload = authorize()(request=_request(), credentials=_bearer(_token('CUSTOMER')))

    assert payload['email'] == 'satrio@gmail.com'


@pytest.fixture
def gated_app():
    calls = []
    app = FastAPI()
    app.add_exception_handler(ApiError, handle_api_error)

    @app.get('/admin-only')
    def admin_only(payload: dict = Depends(authorize('ADMIN'))):
        calls.append(payload['id'])
        return {'ok': True}

    return TestClient(app), calls


@pytest.mark.parametrize(
    ('headers', 'message'),
    [
        ({}, 'jwt must be provided'),
        ({'Authorization': 'Token abc'}, 'jwt must be provided'),
        ({'Authorization': 'Bearer abc'}, 'jwt malformed'),
        ({'Authorization': 'Bearer a.b.c'}, 'invalid token'),
    ],
)
def test_gate_rejects_bad_tokens_without_calling_handler(gated_app, headers: dict, message: str) -> None:
    client, calls = gated_app

    response = client.get('/admin-only', headers=headers)

    assert response.status_code == 401
    assert response.json() == {'error': {'name': 'JsonWebTokenError', 'message': message, 'details': None}}
    assert calls == []


def test_gate_rejects_wrong_role_without_calling_handler(gated_app) -> None:
    client, calls = gated_app

    response = client.get('/admin-only', headers={'Authorization': f"Bearer {_token('CUSTOMER')}"})

    assert response.status_code == 401
    assert response.json()['error']['name'] == 'InsufficientAccessError'
    assert response.json()['error']['message'] == 'Access forbidden!'
    assert calls == []


def test_gate_calls_handler_once_for_matching_role(gated_app) -> None:
    client, calls = gated_app

    response = client.get('/admin-only', headers={'Authorization': f"Bearer {_token('ADMIN')}"})

    assert response.status_code == 200
    assert calls == [7]
