"""Image upload pipeline: one uploaded file in, one CMS field and asset index entry updated.

Steps, in order:
  1. delete the slot's previous asset (non-fatal)
  2. resolve the cluster's asset folder (fatal)
  3. hash the file and build a unique file name
  4. register the asset with Webflow (fatal)
  5. upload the bytes to the returned target (fatal, skipped for duplicates)
  6. patch the CMS item with the new hosted URL (fatal)
  7. merge the asset into the Firestore index (logged on failure)
  8. remove the local temp file (always)
"""

import hashlib
import logging
import os
import time
from dataclasses import dataclass

from cluster_hub.errors import ClientError, ClusterHubError, RemoteServiceError
from cluster_hub.repositories import cluster_assets_repo
from cluster_hub.services.cluster_fields import SLOT_FIELDS, field_for_slot
from cluster_hub.services.cms_items import patch_item_fields
from cluster_hub.services.file_service import file_matches_mime_type

logger = logging.getLogger(__name__)

HASH_CHUNK_SIZE = 64 * 1024
MIME_EXTENSIONS = {
    'image/webp': 'webp',
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
}


@dataclass
class UploadResult:
    url: str
    item: dict
    asset_id: str
    duplicate: bool = False


def file_md5(path):
    digest = hashlib.md5()
    with open(path, 'rb') as handle:
        for chunk in iter(lambda: handle.read(HASH_CHUNK_SIZE), b''):
            digest.update(chunk)
    return digest.hexdigest()


def unique_file_name(slot, cluster_id, file_name, mime_type, now_ms):
    ext = ''
    if '.' in (file_name or ''):
        ext = file_name.rsplit('.', 1)[1].lower()
    if not ext or not ext.isalnum():
        ext = MIME_EXTENSIONS.get(mime_type, 'bin')
    return f"{slot}_{cluster_id}_{now_ms}.{ext}"


def remove_temp_file(path):
    if not path:
        return
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as exc:
        logger.warning(f"Could not remove temp upload {path}: {exc}")


class AssetUploadPipeline:
    def __init__(self, cms, db, folders, replacement, *, max_upload_bytes, allowed_mime_types, clock=time.time):
        self.cms = cms
        self.db = db
        self.folders = folders
        self.replacement = replacement
        self.max_upload_bytes = int(max_upload_bytes)
        self.allowed_mime_types = frozenset(allowed_mime_types)
        self.clock = clock

    def validate(self, slot, mime_type, size, file_path=None):
        field_name = field_for_slot(slot)
        if not field_name:
            valid = ', '.join(sorted(SLOT_FIELDS))
            raise ClientError(f'Invalid image type. Use one of: {valid}.')
        if size is None or int(size) <= 0:
            raise ClientError('Uploaded file is empty.')
        if int(size) > self.max_upload_bytes:
            max_mb = round(self.max_upload_bytes / (1024 * 1024), 2)
            raise ClientError(f'File is too large. Max size is {max_mb:g}MB.')
        if (mime_type or '').lower() not in self.allowed_mime_types:
            allowed = ', '.join(sorted(self.allowed_mime_types))
            raise ClientError(f'Invalid file type. Allowed: {allowed}.')
        if file_path and not file_matches_mime_type(file_path, mime_type):
            raise ClientError('File content does not match its declared type.')
        return field_name

    def upload(self, cluster_id, slot, file_path, file_name, mime_type, size):
        """Run the whole pipeline for one file. The temp file is removed on every exit path."""
        try:
            field_name = self.validate(slot, mime_type, size, file_path)
            return self._run(cluster_id, slot, field_name, file_path, file_name, (mime_type or '').lower())
        except ClientError:
            raise
        except ClusterHubError as exc:
            logger.error(f"Image upload for cluster {cluster_id} ({slot}) failed: {exc}")
            raise
        finally:
            remove_temp_file(file_path)

    def _run(self, cluster_id, slot, field_name, file_path, file_name, mime_type):
        self.replacement.replace_if_present(cluster_id, slot)

        folder_id = self.folders.resolve_folder(cluster_id)

        file_hash = file_md5(file_path)
        asset_name = unique_file_name(slot, cluster_id, file_name, mime_type, int(self.clock() * 1000))

        asset = self.cms.create_asset(asset_name, file_hash, folder_id)
        asset_id = asset.get('id')
        hosted_url = asset.get('hostedUrl') or asset.get('url')
        if not asset_id or not hosted_url:
            raise RemoteServiceError(detail=f"asset registration for {asset_name} returned no id/url")

        upload_url = asset.get('uploadUrl')
        duplicate = not upload_url
        if duplicate:
            logger.warning(f"Asset {asset_name} already registered as {asset_id}; skipping byte upload")
        else:
            upload_fields = asset.get('uploadDetails') or asset.get('fields')
            if not isinstance(upload_fields, dict):
                raise RemoteServiceError(detail=f"asset {asset_id} has no upload details")
            status = self.cms.upload_asset_file(upload_url, upload_fields, file_path, asset_name, mime_type)
            logger.info(f"Uploaded {asset_name} ({status}) for cluster {cluster_id}")

        item = patch_item_fields(self.cms, cluster_id, {field_name: hosted_url})

        try:
            cluster_assets_repo.set_asset(self.db, cluster_id, slot, asset_id, hosted_url)
        except Exception as exc:
            logger.error(f"CMS updated but asset index write failed for cluster {cluster_id} ({slot}, asset {asset_id}): {exc}")

        return UploadResult(url=hosted_url, item=item, asset_id=asset_id, duplicate=duplicate)
