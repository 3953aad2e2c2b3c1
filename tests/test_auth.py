"""
Authentication Tests
"""
from conftest import ADMIN_PIN, DECK_PIN, INVESTOR_PIN, login

from baseline.session import SESSION_COOKIE


def _session_cookie(response):
    for header in response.headers.getlist('Set-Cookie'):
        if header.startswith(f'{SESSION_COOKIE}='):
            return header
    return None


class TestLogin:
    """PIN login per role"""

    def test_admin_login(self, client):
        response = login(client, 'admin', ADMIN_PIN)

        assert response.status_code == 200
        assert response.json == {'slug': 'chase-admin', 'role': 'admin'}
        cookie = _session_cookie(response)
        assert cookie is not None
        assert 'HttpOnly' in cookie
        assert 'SameSite=Lax' in cookie
        assert 'Path=/' in cookie

    def test_second_admin_pin(self, client):
        response = login(client, 'admin', '2222')
        assert response.json['slug'] == 'sheldon-admin'

    def test_admin_wrong_pin(self, client):
        response = login(client, 'admin', '9999')

        assert response.status_code == 401
        assert response.json['ok'] is False
        assert 'admin PIN' in response.json['error']
        assert _session_cookie(response) is None

    def test_deck_login(self, client):
        response = login(client, 'deck', DECK_PIN)

        assert response.status_code == 200
        assert response.json == {'slug': 'pre-pitch-deck', 'role': 'deck'}

    def test_deck_pin_from_site_persona(self, app, client):
        from baseline.document_store import publish_document
        from baseline.models import DocumentKind

        with app.app_context():
            publish_document(DocumentKind.SITE, {
                'investors': [{'slug': 'pre-pitch-deck', 'pin': '8080', 'name': 'Deck'}],
            }, 'chase-admin')

        assert login(client, 'deck', DECK_PIN).status_code == 401
        assert login(client, 'deck', '8080').status_code == 200

    def test_investor_login(self, client, site_with_investor):
        response = login(client, 'investor', INVESTOR_PIN, site_with_investor)

        assert response.status_code == 200
        assert response.json == {'slug': site_with_investor, 'role': 'investor'}

    def test_investor_requires_slug(self, client, site_with_investor):
        response = login(client, 'investor', INVESTOR_PIN)
        assert response.status_code == 400

    def test_investor_wrong_pin(self, client, site_with_investor):
        response = login(client, 'investor', '0000', site_with_investor)
        assert response.status_code == 401

    def test_unknown_investor(self, client, site_with_investor):
        response = login(client, 'investor', INVESTOR_PIN, 'nobody')
        assert response.status_code == 401

    def test_non_ascii_admin_pin(self, client):
        response = login(client, 'admin', '11\u00e91')

        assert response.status_code == 401
        assert response.json['ok'] is False

    def test_non_ascii_investor_pin(self, client, site_with_investor):
        response = login(client, 'investor', '\u00fc', site_with_investor)

        assert response.status_code == 401
        assert _session_cookie(response) is None

    def test_missing_fields(self, client):
        response = client.post('/api/auth/session', json={'role': 'admin'})

        assert response.status_code == 400
        assert response.json['error'] == 'Provide both a role and PIN before continuing.'

    def test_unsupported_role(self, client):
        response = login(client, 'superuser', '1111')
        assert response.status_code == 400

    def test_missing_session_secret(self, app, client):
        app.config['SESSION_SECRET'] = ''

        response = login(client, 'admin', ADMIN_PIN)

        assert response.status_code == 500
        assert response.json['error'] == "We couldn't start a secure session. Try again."


class TestLoginRateLimit:
    def test_blocks_after_limit(self, app, client):
        app.config['LOGIN_RATE_LIMIT'] = 3

        statuses = [login(client, 'admin', '9999').status_code for _ in range(3)]
        blocked = login(client, 'admin', ADMIN_PIN)

        assert statuses == [401, 401, 401]
        assert blocked.status_code == 429
        assert blocked.json['error'] == 'Too many login attempts. Please try again in 15 minutes.'
        assert blocked.headers['X-RateLimit-Limit'] == '3'
        assert blocked.headers['X-RateLimit-Remaining'] == '0'
        assert int(blocked.headers['Retry-After']) > 0

    def test_limit_is_per_client_ip(self, app, client):
        app.config['LOGIN_RATE_LIMIT'] = 1

        first = client.post('/api/auth/session', json={'role': 'admin', 'pin': '9999'},
                            headers={'X-Forwarded-For': '203.0.113.1'})
        other = client.post('/api/auth/session', json={'role': 'admin', 'pin': ADMIN_PIN},
                            headers={'X-Forwarded-For': '203.0.113.2'})

        assert first.status_code == 401
        assert other.status_code == 200


class TestSession:
    def test_get_session(self, admin_client):
        response = admin_client.get('/api/auth/session')

        assert response.status_code == 200
        assert response.json['slug'] == 'chase-admin'
        assert response.json['role'] == 'admin'
        assert response.json['exp'] > 0

    def test_get_session_without_cookie(self, client):
        response = client.get('/api/auth/session')

        assert response.status_code == 401
        assert response.json['error'] == 'You need to sign in before continuing.'

    def test_invalid_cookie_is_cleared(self, client):
        client.set_cookie(SESSION_COOKIE, 'forged.token')

        response = client.get('/api/auth/session')

        assert response.status_code == 401
        assert response.json['error'] == 'Your session expired or is invalid. Log in again.'
        assert _session_cookie(response) is not None

    def test_logout(self, admin_client):
        response = admin_client.delete('/api/auth/session')

        assert response.status_code == 200
        assert response.json == {'ok': True}
        assert admin_client.get('/api/auth/session').status_code == 401


class TestAccessControl:
    def test_admin_route_requires_login(self, client):
        response = client.post('/api/admin/update', json={'payload': {'a': 1}})
        assert response.status_code == 401

    def test_admin_route_rejects_deck_session(self, deck_client):
        response = deck_client.post('/api/admin/update', json={'payload': {'a': 1}})

        assert response.status_code == 403
        assert response.json['error'] == 'Log in as Chase or Sheldon to publish updates.'

    def test_protected_route_with_bad_cookie(self, client):
        client.set_cookie(SESSION_COOKIE, 'forged.token')

        response = client.get('/api/pitch-deck/slides')

        assert response.status_code == 401
        assert response.json['error'] == 'Your session expired or is invalid. Log in again.'

    def test_role_restricted_route(self, investor_client, deck_client, admin_client):
        assert investor_client.get('/api/pitch-deck/slides').status_code == 403
        assert deck_client.get('/api/pitch-deck/slides').status_code == 200
        assert admin_client.get('/api/pitch-deck/slides').status_code == 200
