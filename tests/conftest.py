import json
import os
import sys
import uuid
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('SUPABASE_URL', 'https://example.supabase.co')
os.environ.setdefault('SUPABASE_SERVICE_KEY', 'service-key')
os.environ.setdefault('SUPABASE_JWT_SECRET', 'test-jwt-secret-with-enough-length-for-hs256')
os.environ.setdefault('GITHUB_REPO_URL', 'https://api.github.com/repos/acme/templates/contents/workflows')

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.dependencies import get_n8n_transport, get_storage, get_template_source  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.database import get_db  # noqa: E402
from app.integrations.github import GitHubTemplateSource  # noqa: E402
from app.integrations.storage import SupabaseStorage  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base  # noqa: E402

N8N_HOST = 'https://n8n.example.com'
N8N_KEY = 'n8n-key'
REPO_URL = os.environ['GITHUB_REPO_URL']
RAW_BASE = 'https://raw.githubusercontent.com/acme/templates/main/workflows'


def make_workflow(name='Demo', node_types=('n8n-nodes-base.manualTrigger',), **extra):
    nodes = [
        {'id': str(i), 'name': f'Node {i}', 'type': t, 'typeVersion': 1, 'position': [i * 200, 0], 'parameters': {}}
        for i, t in enumerate(node_types)
    ]
    workflow = {'name': name, 'nodes': nodes, 'connections': {}}
    workflow.update(extra)
    return workflow


class FakeN8N:
    """In-memory stand-in for the n8n public API."""

    def __init__(self):
        self.requests = []
        self.workflows = []
        self.create_status = None
        self.update_status = None
        self.list_status = None
        self.timeout = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.timeout:
            raise httpx.ConnectTimeout('timed out', request=request)
        if request.headers.get('X-N8N-API-KEY') != N8N_KEY:
            return httpx.Response(401, json={'message': 'unauthorized'})

        path = request.url.path
        if path == '/api/v1/workflows' and request.method == 'GET':
            if self.list_status:
                return httpx.Response(self.list_status)
            return httpx.Response(200, json={'data': self.workflows, 'nextCursor': None})
        if path == '/api/v1/workflows' and request.method == 'POST':
            if self.create_status:
                return httpx.Response(self.create_status, json={'message': 'rejected'})
            body = json.loads(request.content)
            body['id'] = f'wf-{len(self.workflows) + 1}'
            self.workflows.append(body)
            return httpx.Response(200, json=body)
        if path.startswith('/api/v1/workflows/') and request.method == 'PUT':
            if self.update_status:
                return httpx.Response(self.update_status, json={'message': 'tags rejected'})
            return httpx.Response(200, json=json.loads(request.content))
        return httpx.Response(404)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)

    def sent(self, method):
        return [r for r in self.requests if r.method == method]


class FakeStorage:
    """In-memory Supabase Storage bucket."""

    prefix = '/storage/v1/object/workflows'

    def __init__(self):
        self.blobs = {}
        self.requests = []
        self.fail_remove = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == 'DELETE' and request.url.path == self.prefix:
            if self.fail_remove:
                return httpx.Response(500, json={'error': 'storage down'})
            for path in json.loads(request.content)['prefixes']:
                self.blobs.pop(path, None)
            return httpx.Response(200, json=[])
        key = request.url.path[len(self.prefix) + 1:]
        if request.method == 'POST':
            self.blobs[key] = request.content
            return httpx.Response(200, json={'Key': f'workflows/{key}'})
        if request.method == 'GET':
            if key not in self.blobs:
                return httpx.Response(404, json={'error': 'not found'})
            return httpx.Response(200, content=self.blobs[key])
        return httpx.Response(405)

    def client(self):
        return SupabaseStorage(
            base_url='https://example.supabase.co',
            service_key='service-key',
            bucket='workflows',
            transport=httpx.MockTransport(self.handler),
        )


class FakeGitHub:
    """GitHub contents listing plus raw file downloads."""

    def __init__(self):
        self.files = {}
        self.broken = set()
        self.extra_entries = []

    def add(self, file_name, workflow):
        self.files[file_name] = workflow

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == REPO_URL:
            listing = [
                {
                    'name': name,
                    'path': f'workflows/{name}',
                    'sha': f'sha-{name}',
                    'type': 'file',
                    'download_url': f'{RAW_BASE}/{name}',
                }
                for name in self.files
            ]
            return httpx.Response(200, json=listing + self.extra_entries)
        if url.startswith(RAW_BASE):
            name = url.rsplit('/', 1)[-1]
            if name in self.broken or name not in self.files:
                return httpx.Response(500)
            return httpx.Response(200, json=self.files[name])
        return httpx.Response(404)

    def source(self):
        return GitHubTemplateSource(repo_url=REPO_URL, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def fake_n8n():
    return FakeN8N()


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def auth_headers(user_id):
    return {'Authorization': f'Bearer {create_access_token(str(user_id), email="dev@example.com")}'}


@pytest.fixture
def client(db_session, fake_n8n, fake_storage, fake_github):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_n8n_transport] = lambda: fake_n8n.transport
    app.dependency_overrides[get_storage] = fake_storage.client
    app.dependency_overrides[get_template_source] = fake_github.source
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def configured(client, auth_headers):
    """Save working n8n settings for the signed-in user."""
    response = client.post(
        '/api/v1/settings',
        json={'n8n_host': N8N_HOST + '/', 'n8n_api_token': N8N_KEY},
        headers=auth_headers,
    )
    assert response.status_code == 200
    return response.json()['settings']
