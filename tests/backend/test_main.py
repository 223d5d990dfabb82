from fastapi.testclient import TestClient

from backend.auth import authentication
from backend.main import app


def test_root_reports_status(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'status': 'Car Rental API Running'}


def test_documentation_json_is_served(client) -> None:
    response = client.get('/documentation.json')

    assert response.status_code == 200
    body = response.json()
    assert body['openapi'].startswith('3.')
    assert '/cars/{car_id}/rent' in body['paths']


def test_unknown_route_uses_error_envelope(client) -> None:
    response = client.get('/nope')

    assert response.status_code == 404
    assert response.json() == {'error': {'name': 'HTTPException', 'message': 'Not Found', 'details': None}}


def test_unexpected_error_uses_error_envelope(client, make_user, token_for, monkeypatch) -> None:
    def broken_lookup(*args, **kwargs):
        raise RuntimeError('boom')

    monkeypatch.setattr(authentication, 'get_current_user', broken_lookup)
    token = token_for(make_user())

    response = TestClient(app, raise_server_exceptions=False).get(
        '/auth/whoami', headers={'Authorization': f'Bearer {token}'}
    )

    assert response.status_code == 500
    assert response.json() == {
        'error': {'name': 'InternalServerError', 'message': 'Internal server error.', 'details': None}
    }
