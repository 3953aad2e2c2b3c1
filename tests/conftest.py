"""
Test Configuration and Fixtures
"""
import io

import fitz
import pytest
from PIL import Image

from baseline import create_app, db
from baseline.document_store import publish_document
from baseline.errors import StorageError
from baseline.models import DocumentKind

ADMIN_PIN = '1111'
DECK_PIN = '3333'
INVESTOR_SLUG = 'acme-ventures'
INVESTOR_PIN = '4444'


class FakeStorage:
    """In-memory stand-in for ObjectStorage"""

    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_on = None
        self.fail_deletes = False

    def ensure_bucket(self):
        pass

    def public_url(self, key):
        return f'https://storage.test/public/pitch-deck-files/{key}'

    def upload(self, key, data, content_type):
        if self.fail_on and self.fail_on in key:
            raise StorageError(f'Upload of {key} failed')
        self.objects[key] = (data, content_type)
        return self.public_url(key)

    def delete(self, keys):
        keys = [k for k in keys if k]
        if self.fail_deletes:
            return keys
        for key in keys:
            self.objects.pop(key, None)
            self.deleted.append(key)
        return []


def make_pdf(pages=3):
    doc = fitz.open()
    for number in range(1, pages + 1):
        page = doc.new_page(width=320, height=180)
        page.insert_text((40, 90), f'Slide {number}')
    data = doc.tobytes()
    doc.close()
    return data


def make_png(size=(8, 6)):
    buf = io.BytesIO()
    Image.new('RGB', size, (30, 60, 90)).save(buf, 'PNG')
    return buf.getvalue()


def login(client, role, pin, slug=None):
    body = {'role': role, 'pin': pin}
    if slug:
        body['slug'] = slug
    return client.post('/api/auth/session', json=body)


@pytest.fixture(scope='function')
def app():
    """Create application for testing"""
    app = create_app('testing')
    app.extensions['object_storage'] = FakeStorage()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def app_ctx(app):
    """Application context for service-level tests"""
    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def storage(app):
    return app.extensions['object_storage']


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def admin_client(app):
    """Client holding Chase's admin session"""
    client = app.test_client()
    response = login(client, 'admin', ADMIN_PIN)
    assert response.status_code == 200
    return client


@pytest.fixture(scope='function')
def deck_client(app):
    """Client holding a pitch deck session"""
    client = app.test_client()
    response = login(client, 'deck', DECK_PIN)
    assert response.status_code == 200
    return client


@pytest.fixture(scope='function')
def site_with_investor(app):
    """Publish site content with one investor persona"""
    with app.app_context():
        publish_document(DocumentKind.SITE, {
            'headline': 'Baseline Analytics',
            'investors': [{
                'slug': INVESTOR_SLUG,
                'pin': INVESTOR_PIN,
                'name': 'Dana Reyes',
                'firm': 'Acme Ventures',
                'title': 'Partner',
                'welcomeNote': 'Thanks for taking a look.',
            }],
        }, 'chase-admin')
    return INVESTOR_SLUG


@pytest.fixture(scope='function')
def investor_client(app, site_with_investor):
    """Client holding an investor session"""
    client = app.test_client()
    response = login(client, 'investor', INVESTOR_PIN, site_with_investor)
    assert response.status_code == 200
    return client
