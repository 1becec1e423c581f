"""Thin HTTP client for the Webflow v2 Data API.

Only the endpoints used by the cluster flows are wrapped: collection items,
asset folders and assets. Every call carries a bounded timeout; timeouts and
connection failures surface as ``WebflowTimeoutError`` so callers can ask the
user to retry instead of hanging.
"""

import logging

import requests
from requests_toolbelt import MultipartEncoder

from cluster_hub.errors import RemoteServiceError, RetryableError

logger = logging.getLogger(__name__)

API_BASE_URL = 'https://api.webflow.com/v2'
PAGE_LIMIT = 100


class WebflowAPIError(RemoteServiceError):
    """Non-2xx answer from Webflow (or from the asset upload target)."""

    def __init__(self, remote_status, message, payload=None):
        self.remote_status = remote_status
        self.payload = payload if isinstance(payload, dict) else {}
        super().__init__('Remote service error', detail=f"{remote_status}: {message}")

    @property
    def is_not_found(self):
        return self.remote_status == 404

    @property
    def is_conflict(self):
        return self.remote_status == 409


class WebflowTimeoutError(RetryableError):
    default_message = 'The CMS did not respond in time, please try again'


def _response_payload(response):
    if response.status_code == 204 or not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {'data': payload}


def _error_message(response, payload):
    message = (payload.get('message') or payload.get('msg')) if payload else None
    if message:
        return str(message)
    return (response.text or '').strip()[:200] or response.reason or 'unknown error'


class WebflowClient:
    def __init__(self, api_token, site_id, collection_id, *, timeout=20.0, session=None, base_url=API_BASE_URL):
        self.site_id = site_id
        self.collection_id = collection_id
        self.timeout = timeout
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self._auth_headers = {
            'Authorization': f'Bearer {api_token}',
            'Accept': 'application/json',
        }

    # --- transport ---

    def _send(self, method, url, **kwargs):
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            logger.warning(f"Webflow {method} {url} timed out after {self.timeout}s")
            raise WebflowTimeoutError(detail=str(exc)) from exc
        except requests.ConnectionError as exc:
            logger.warning(f"Webflow {method} {url} connection failed: {exc}")
            raise WebflowTimeoutError(detail=str(exc)) from exc

    def _request(self, method, path, *, params=None, json_body=None):
        url = f"{self.base_url}{path}"
        response = self._send(method, url, headers=self._auth_headers, params=params, json=json_body)
        payload = _response_payload(response)
        if not 200 <= response.status_code < 300:
            raise WebflowAPIError(response.status_code, _error_message(response, payload), payload)
        return response.status_code, payload

    def _paginate(self, path, key, limit=PAGE_LIMIT):
        results = []
        offset = 0
        while True:
            _status, data = self._request('GET', path, params={'offset': offset, 'limit': limit})
            page = data.get(key) or []
            results.extend(page)
            pagination = data.get('pagination') or {}
            total = int(pagination.get('total') or 0)
            page_offset = int(pagination.get('offset') or offset)
            if not page or page_offset + len(page) >= total:
                break
            offset = page_offset + len(page)
        return results

    # --- collection items ---

    def _items_path(self, item_id=None):
        path = f"/collections/{self.collection_id}/items"
        return f"{path}/{item_id}" if item_id else path

    def get_item(self, item_id):
        return self._request('GET', self._items_path(item_id))[1]

    def list_items(self):
        return self._paginate(self._items_path(), 'items')

    def create_item(self, field_data, *, is_draft=False, is_archived=False):
        body = {'isArchived': is_archived, 'isDraft': is_draft, 'fieldData': field_data}
        return self._request('POST', self._items_path(), json_body=body)[1]

    def update_item(self, item_id, field_data, *, is_draft=False, is_archived=False):
        body = {'isArchived': is_archived, 'isDraft': is_draft, 'fieldData': field_data}
        return self._request('PATCH', self._items_path(item_id), json_body=body)[1]

    def delete_item(self, item_id):
        self._request('DELETE', self._items_path(item_id))

    def publish_items(self, item_ids):
        """Queue items for publishing. Returns the HTTP status (202 when accepted)."""
        status, _payload = self._request('POST', f"{self._items_path()}/publish", json_body={'itemIds': list(item_ids)})
        return status

    # --- asset folders ---

    def list_asset_folders(self, limit=PAGE_LIMIT):
        folders = self._paginate(f"/sites/{self.site_id}/asset_folders", 'assetFolders', limit=limit)
        logger.info(f"Fetched {len(folders)} asset folders for site {self.site_id}")
        return folders

    def create_asset_folder(self, display_name, parent_folder_id):
        body = {'displayName': display_name, 'parentFolder': parent_folder_id}
        return self._request('POST', f"/sites/{self.site_id}/asset_folders", json_body=body)[1]

    def get_asset_folder(self, folder_id):
        return self._request('GET', f"/asset_folders/{folder_id}")[1]

    # --- assets ---

    def create_asset(self, file_name, file_hash, parent_folder_id=None):
        body = {'fileName': file_name, 'fileHash': file_hash}
        if parent_folder_id:
            body['parentFolder'] = parent_folder_id
        return self._request('POST', f"/sites/{self.site_id}/assets", json_body=body)[1]

    def upload_asset_file(self, upload_url, upload_fields, file_path, file_name, mime_type):
        """POST the file to the storage target returned by ``create_asset``.

        The target is a pre-signed form upload, so no bearer header is sent.
        The body is streamed from disk. Any 2xx answer counts as success.
        """
        with open(file_path, 'rb') as handle:
            fields = {key: str(value) for key, value in upload_fields.items()}
            # The storage target requires the file part after the policy fields.
            fields['file'] = (file_name, handle, mime_type)
            encoder = MultipartEncoder(fields=fields)
            response = self._send(
                'POST',
                upload_url,
                data=encoder,
                headers={'Content-Type': encoder.content_type},
            )
        if not 200 <= response.status_code < 300:
            raise WebflowAPIError(response.status_code, f"File upload failed: {_error_message(response, {})}")
        return response.status_code

    def delete_asset(self, asset_id):
        self._request('DELETE', f"/assets/{asset_id}")
