import copy
import itertools
from types import SimpleNamespace

import pytest

from cluster_hub import create_app
from cluster_hub.clients.webflow_client import WebflowAPIError
from cluster_hub.config import AppConfig

WEBP_BYTES = b'RIFF\x24\x00\x00\x00WEBPVP8 ' + b'\x00' * 32
PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 32


# --- Firestore double ---

class FakeArrayUnion:
    def __init__(self, values):
        self.values = list(values)


class FakeArrayRemove:
    def __init__(self, values):
        self.values = list(values)


class FakeFirestoreModule:
    ArrayUnion = FakeArrayUnion
    ArrayRemove = FakeArrayRemove


def _apply_value(existing, value, merge):
    if isinstance(value, FakeArrayUnion):
        base = list(existing or [])
        return base + [v for v in value.values if v not in base]
    if isinstance(value, FakeArrayRemove):
        return [v for v in (existing or []) if v not in value.values]
    if merge and isinstance(value, dict) and isinstance(existing, dict):
        merged = dict(existing)
        for key, sub_value in value.items():
            merged[key] = _apply_value(existing.get(key), sub_value, merge)
        return merged
    if isinstance(value, dict):
        return {key: _apply_value(None, sub_value, merge) for key, sub_value in value.items()}
    return value


class _Snapshot:
    def __init__(self, data):
        self.exists = data is not None
        self._data = copy.deepcopy(data)

    def to_dict(self):
        return self._data


class _DocRef:
    def __init__(self, db, collection, doc_id):
        self.db = db
        self.key = (collection, doc_id)

    def get(self):
        self.db.reads.append(self.key)
        return _Snapshot(self.db.docs.get(self.key))

    def set(self, data, merge=False):
        self.db._check_failure('set', self.key)
        self.db.writes.append(('set', self.key, data, merge))
        existing = self.db.docs.get(self.key) if merge else None
        self.db.docs[self.key] = _apply_value(existing or {}, data, True) if merge else _apply_value(None, data, False)

    def update(self, updates):
        self.db._check_failure('update', self.key)
        if self.key not in self.db.docs:
            raise LookupError(f"No document to update: {self.key}")
        self.db.writes.append(('update', self.key, updates, None))
        doc = self.db.docs[self.key]
        for field, value in updates.items():
            doc[field] = _apply_value(doc.get(field), value, False)

    def delete(self):
        self.db._check_failure('delete', self.key)
        self.db.writes.append(('delete', self.key, None, None))
        self.db.docs.pop(self.key, None)


class _Collection:
    def __init__(self, db, name):
        self.db = db
        self.name = name

    def document(self, doc_id):
        return _DocRef(self.db, self.name, doc_id)


class FakeFirestore:
    def __init__(self):
        self.docs = {}
        self.reads = []
        self.writes = []
        self.failures = {}

    def collection(self, name):
        return _Collection(self, name)

    def seed(self, collection, doc_id, data):
        self.docs[(collection, doc_id)] = copy.deepcopy(data)

    def data(self, collection, doc_id):
        return self.docs.get((collection, doc_id))

    def fail(self, op, collection, exc):
        self.failures[(op, collection)] = exc

    def _check_failure(self, op, key):
        exc = self.failures.get((op, key[0]))
        if exc is not None:
            raise exc


# --- Webflow double ---

MUTATING_CALLS = {
    'create_item', 'update_item', 'delete_item', 'publish_items',
    'create_asset_folder', 'create_asset', 'upload_asset_file', 'delete_asset',
}


class FakeWebflow:
    """In-memory Webflow with the same method surface as ``WebflowClient``."""

    def __init__(self):
        self.items = {}
        self.folders = []
        self.assets = {}
        self.calls = []
        self.failures = {}
        self.publish_status = 202
        self.uploaded_files = []
        self._ids = itertools.count(1)

    def _next_id(self, prefix):
        return f"{prefix}{next(self._ids)}"

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        exc = self.failures.get(name)
        if exc is not None:
            raise exc

    def call_names(self):
        return [call[0] for call in self.calls]

    def mutations(self):
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def seed_item(self, item_id, field_data):
        self.items[item_id] = {'id': item_id, 'isDraft': False, 'isArchived': False, 'fieldData': dict(field_data)}
        return self.items[item_id]

    # items
    def get_item(self, item_id):
        self._record('get_item', item_id)
        if item_id not in self.items:
            raise WebflowAPIError(404, 'Requested resource not found')
        return copy.deepcopy(self.items[item_id])

    def list_items(self):
        self._record('list_items')
        return [copy.deepcopy(item) for item in self.items.values()]

    def create_item(self, field_data, *, is_draft=False, is_archived=False):
        self._record('create_item', field_data, is_draft, is_archived)
        item_id = self._next_id('item')
        self.items[item_id] = {'id': item_id, 'isDraft': is_draft, 'isArchived': is_archived, 'fieldData': dict(field_data)}
        return copy.deepcopy(self.items[item_id])

    def update_item(self, item_id, field_data, *, is_draft=False, is_archived=False):
        self._record('update_item', item_id, field_data)
        if item_id not in self.items:
            raise WebflowAPIError(404, 'Requested resource not found')
        # Webflow replaces the whole fieldData object.
        self.items[item_id]['fieldData'] = dict(field_data)
        return copy.deepcopy(self.items[item_id])

    def delete_item(self, item_id):
        self._record('delete_item', item_id)
        if self.items.pop(item_id, None) is None:
            raise WebflowAPIError(404, 'Requested resource not found')

    def publish_items(self, item_ids):
        self._record('publish_items', list(item_ids))
        return self.publish_status

    # folders
    def list_asset_folders(self):
        self._record('list_asset_folders')
        return [dict(folder) for folder in self.folders]

    def create_asset_folder(self, display_name, parent_folder_id):
        self._record('create_asset_folder', display_name, parent_folder_id)
        folder = {'id': self._next_id('folder'), 'displayName': display_name, 'parentFolder': parent_folder_id, 'assets': []}
        self.folders.append(folder)
        return dict(folder)

    def get_asset_folder(self, folder_id):
        self._record('get_asset_folder', folder_id)
        for folder in self.folders:
            if folder['id'] == folder_id:
                return {'id': folder_id, 'assets': list(folder['assets'])}
        raise WebflowAPIError(404, 'Requested resource not found')

    # assets
    def create_asset(self, file_name, file_hash, parent_folder_id=None):
        self._record('create_asset', file_name, file_hash, parent_folder_id)
        asset_id = self._next_id('asset')
        self.assets[asset_id] = {'id': asset_id, 'fileName': file_name, 'fileHash': file_hash, 'parentFolder': parent_folder_id}
        for folder in self.folders:
            if folder['id'] == parent_folder_id:
                folder['assets'].append(asset_id)
        return {
            'id': asset_id,
            'uploadUrl': 'https://uploads.example.test/',
            'uploadDetails': {'key': f"uploads/{file_name}", 'policy': 'p'},
            'hostedUrl': f"https://cdn.example.test/{file_name}",
        }

    def upload_asset_file(self, upload_url, upload_fields, file_path, file_name, mime_type):
        self._record('upload_asset_file', upload_url, upload_fields, file_path, file_name, mime_type)
        with open(file_path, 'rb') as handle:
            self.uploaded_files.append((file_name, handle.read()))
        return 201

    def delete_asset(self, asset_id):
        self._record('delete_asset', asset_id)
        if self.assets.pop(asset_id, None) is None:
            raise WebflowAPIError(404, 'Requested resource not found')
        for folder in self.folders:
            if asset_id in folder['assets']:
                folder['assets'].remove(asset_id)


# --- Firebase auth double ---

class FakeAuth:
    def __init__(self):
        self.tokens = {
            'token-owner': {'uid': 'owner-1', 'email': 'owner@example.com'},
            'token-other': {'uid': 'other-1', 'email': 'other@example.com'},
        }
        self.users = {'owner-1': SimpleNamespace(uid='owner-1', email='owner@example.com')}

    def verify_id_token(self, token):
        if token not in self.tokens:
            raise ValueError('Invalid ID token')
        return dict(self.tokens[token])

    def get_user(self, uid):
        if uid not in self.users:
            raise LookupError(f'No user record found for the provided user ID: {uid}')
        return self.users[uid]


@pytest.fixture()
def upload_dir(tmp_path):
    path = tmp_path / 'uploads'
    path.mkdir()
    return path


@pytest.fixture()
def test_config(upload_dir):
    return AppConfig(
        webflow_api_token='wf-token',
        webflow_site_id='site-1',
        webflow_collection_id='collection-1',
        webflow_parent_folder_id='parent-folder',
        webflow_live_base_url='https://hub.example.test/clusters',
        admin_username='admin',
        admin_password='s3cret',
        upload_folder=str(upload_dir),
    )


@pytest.fixture()
def fake_db():
    return FakeFirestore()


@pytest.fixture()
def fake_cms():
    return FakeWebflow()


@pytest.fixture()
def fake_auth():
    return FakeAuth()


@pytest.fixture()
def app(test_config, fake_db, fake_cms, fake_auth):
    flask_app = create_app(
        test_config,
        db=fake_db,
        cms=fake_cms,
        auth_module=fake_auth,
        firestore_module=FakeFirestoreModule,
    )
    flask_app.config['TESTING'] = True
    return flask_app


@pytest.fixture()
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def cluster_service(app):
    return app.extensions['cluster_hub'].clusters


@pytest.fixture()
def owned_cluster(fake_db, fake_cms):
    fake_cms.seed_item('cluster-1', {
        'name': 'Ark: Lost Colony!',
        'slug': 'ark-lost-colony',
        'short-description': 'PvE cluster',
        'location': 'EU',
        'firebase-uid': 'owner-1',
    })
    fake_db.seed('users', 'owner-1', {'clusters': ['cluster-1']})
    return 'cluster-1'


@pytest.fixture()
def write_upload(upload_dir):
    counter = itertools.count(1)

    def _write(content=WEBP_BYTES, name='logo.webp'):
        path = upload_dir / f"tmp_{next(counter)}_{name}"
        path.write_bytes(content)
        return str(path)

    return _write
