"""
Site content, pitch deck content and BOS document tests
"""
from conftest import INVESTOR_PIN

from baseline.document_store import (
    DEFAULT_BOS_PAYLOAD,
    document_history,
    document_or_default,
    find_investor,
    publish_document,
)
from baseline.models import DocumentKind, DocumentState


class TestDocumentStore:
    def test_publish_bumps_version_and_records_history(self, app_ctx):
        first = publish_document(DocumentKind.SITE, {'headline': 'v1'}, 'chase-admin')
        second = publish_document(DocumentKind.SITE, {'headline': 'v2'}, 'sheldon-admin', notes='copy edit')

        assert first.id == second.id
        assert second.version == 2
        assert second.payload == {'headline': 'v2'}
        assert second.updated_by == 'Sheldon'
        assert DocumentState.query.count() == 1

        history = document_history(DocumentKind.SITE)
        assert [h.version for h in history] == [2, 1]
        assert history[0].author == 'Sheldon'
        assert history[0].notes == 'copy edit'
        assert history[1].payload == {'headline': 'v1'}

    def test_kinds_are_independent(self, app_ctx):
        publish_document(DocumentKind.SITE, {'a': 1}, 'chase-admin')
        bos = publish_document(DocumentKind.BOS, {'b': 2}, 'chase-admin')

        assert bos.version == 1
        assert document_history(DocumentKind.BOS)[0].payload == {'b': 2}

    def test_default_when_unpublished(self, app_ctx):
        result = document_or_default(DocumentKind.BOS, DEFAULT_BOS_PAYLOAD)

        assert result['version'] == 0
        assert result['id'] is None
        assert result['payload'] == DEFAULT_BOS_PAYLOAD
        assert result['payload'] is not DEFAULT_BOS_PAYLOAD

    def test_find_investor(self, app_ctx, site_with_investor):
        assert find_investor(site_with_investor)['firm'] == 'Acme Ventures'
        assert find_investor('missing') is None


class TestSiteStateApi:
    def test_missing_site_state(self, client):
        response = client.get('/api/site-state')
        assert response.status_code == 404

    def test_publish_and_read(self, admin_client, client):
        response = admin_client.post('/api/admin/update', json={
            'payload': {'headline': 'Quarterly update'},
            'notes': 'Q3',
        })

        assert response.status_code == 200
        assert response.json['ok'] is True
        assert response.json['version'] == 1
        assert response.json['updated_at']

        state = client.get('/api/site-state')
        assert state.status_code == 200
        assert state.json['payload'] == {'headline': 'Quarterly update'}
        assert state.json['version'] == 1

    def test_publish_requires_payload(self, admin_client):
        response = admin_client.post('/api/admin/update', json={'notes': 'nothing'})

        assert response.status_code == 400
        assert response.json['error'] == 'Include the payload before continuing.'

    def test_investor_list_hides_pins(self, client, site_with_investor):
        response = client.get('/api/investors/list')

        assert response.status_code == 200
        assert response.json['investors'] == [{
            'slug': site_with_investor,
            'name': 'Dana Reyes',
            'firm': 'Acme Ventures',
            'title': 'Partner',
        }]

    def test_site_state_hides_pins(self, client, site_with_investor):
        response = client.get('/api/site-state')

        assert response.status_code == 200
        assert INVESTOR_PIN not in response.get_data(as_text=True)
        investors = response.json['payload']['investors']
        assert all('pin' not in inv for inv in investors)
        assert investors[0]['welcomeNote'] == 'Thanks for taking a look.'

    def test_site_state_hides_pins_from_investors(self, investor_client):
        investors = investor_client.get('/api/site-state').json['payload']['investors']
        assert 'pin' not in investors[0]

    def test_site_state_keeps_pins_for_admin(self, admin_client, site_with_investor):
        investors = admin_client.get('/api/site-state').json['payload']['investors']
        assert investors[0]['pin'] == INVESTOR_PIN

    def test_investor_list_empty(self, client):
        assert client.get('/api/investors/list').json == {'investors': []}


class TestPitchDeckContentApi:
    def test_empty_content(self, client):
        response = client.get('/api/pitch-deck')

        assert response.status_code == 200
        assert response.json == {'id': None, 'updated_at': None, 'version': 0, 'payload': None}

    def test_save_content(self, admin_client, client):
        admin_client.post('/api/pitch-deck', json={'payload': {'ask': '$2M'}})
        response = admin_client.post('/api/pitch-deck', json={'payload': {'ask': '$3M'}})

        assert response.json['version'] == 2
        assert client.get('/api/pitch-deck').json['payload'] == {'ask': '$3M'}

    def test_save_requires_admin(self, deck_client):
        response = deck_client.post('/api/pitch-deck', json={'payload': {'ask': '$3M'}})
        assert response.status_code == 403


class TestBosApi:
    def test_default_outline(self, admin_client):
        response = admin_client.get('/api/bos')

        assert response.status_code == 200
        assert response.json['version'] == 0
        assert set(response.json['payload']) == set(DEFAULT_BOS_PAYLOAD)

    def test_save_and_read(self, admin_client):
        payload = dict(DEFAULT_BOS_PAYLOAD, updatedAt='2026-10-01')

        saved = admin_client.post('/api/bos', json={'payload': payload})
        read = admin_client.get('/api/bos')

        assert saved.json['version'] == 1
        assert read.json['payload']['updatedAt'] == '2026-10-01'

    def test_admin_only(self, client, investor_client):
        assert client.get('/api/bos').status_code == 401
        assert investor_client.get('/api/bos').status_code == 403


class TestHistoryApi:
    def test_lists_newest_first(self, admin_client):
        admin_client.post('/api/admin/update', json={'payload': {'headline': 'v1'}})
        admin_client.post('/api/admin/update', json={'payload': {'headline': 'v2'}, 'notes': 'tone'})

        response = admin_client.get('/api/admin/history?kind=site')

        assert response.status_code == 200
        assert response.json['kind'] == 'site'
        history = response.json['history']
        assert [h['version'] for h in history] == [2, 1]
        assert history[0]['author'] == 'Chase'
        assert history[0]['notes'] == 'tone'
        assert history[1]['payload'] == {'headline': 'v1'}

    def test_limit(self, admin_client):
        for n in range(3):
            admin_client.post('/api/bos', json={'payload': {'n': n}})

        history = admin_client.get('/api/admin/history?kind=bos&limit=1').json['history']

        assert [h['version'] for h in history] == [3]

    def test_unknown_kind(self, admin_client):
        response = admin_client.get('/api/admin/history?kind=timeline')

        assert response.status_code == 400
        assert response.json['ok'] is False

    def test_admin_only(self, client, investor_client):
        assert client.get('/api/admin/history').status_code == 401
        assert investor_client.get('/api/admin/history').status_code == 403
