"""
API Endpoint Tests
"""
import json


class TestHealthEndpoints:
    """Test health check endpoints"""

    def test_healthz(self, client):
        """Health check should return ok"""
        response = client.get('/healthz')
        assert response.status_code == 200

        data = json.loads(response.data)
        assert data['status'] == 'ok'
        assert data['database'] == 'ok'
        assert 'version' in data
        assert 'timestamp' in data

    def test_version(self, client):
        """Version endpoint should return build info"""
        response = client.get('/version')
        assert response.status_code == 200

        data = json.loads(response.data)
        assert 'version' in data
        assert data['features']['pdf_slide_extraction'] is True
        assert data['features']['shared_rate_limit'] is False


class TestErrorShape:
    """Errors come back as JSON with ok false"""

    def test_unauthenticated_json(self, client):
        response = client.post('/api/pitch-deck', json={'payload': {}})

        assert response.status_code == 401
        assert response.is_json
        assert response.json['ok'] is False
