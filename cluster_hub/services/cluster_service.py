"""Cluster CRUD/publish against Webflow, with ownership kept in Firestore.

Every operation except ``create`` first checks that the principal's
``users/{uid}`` record lists the cluster id. Admin principals skip the check.
"""

import logging

from cluster_hub.clients.webflow_client import WebflowAPIError
from cluster_hub.errors import ClientError, ForbiddenError, RemoteServiceError
from cluster_hub.repositories import cluster_assets_repo, users_repo
from cluster_hub.services.asset_upload_service import remove_temp_file
from cluster_hub.services.cluster_fields import (
    OWNER_FIELD,
    clean_fields,
    missing_required_fields,
    slugify,
)
from cluster_hub.services.cms_items import fetch_item, patch_item_fields

logger = logging.getLogger(__name__)

PUBLISH_ACCEPTED_STATUS = 202


class ClusterService:
    def __init__(self, cms, db, pipeline, folders, *, firestore_module, auth_module=None, live_base_url=''):
        self.cms = cms
        self.db = db
        self.pipeline = pipeline
        self.folders = folders
        self.firestore_module = firestore_module
        self.auth_module = auth_module
        self.live_base_url = (live_base_url or '').rstrip('/')

    # --- ownership ---

    def owned_cluster_ids(self, principal):
        return users_repo.get_cluster_ids(self.db, principal.uid)

    def require_owner(self, principal, cluster_id):
        if principal.is_admin:
            return
        if cluster_id not in self.owned_cluster_ids(principal):
            logger.warning(f"User {principal.uid} tried to access cluster {cluster_id} they do not own")
            raise ForbiddenError('You do not have permission to modify this cluster.')

    # --- operations ---

    def create(self, principal, fields):
        cleaned = clean_fields(fields)
        missing = missing_required_fields(cleaned)
        if missing:
            raise ClientError(f"Missing required fields: {', '.join(missing)}")

        field_data = dict(cleaned)
        field_data['slug'] = slugify(cleaned['name'])
        field_data[OWNER_FIELD] = principal.uid

        item = self.cms.create_item(field_data, is_draft=False, is_archived=False)
        cluster_id = item.get('id')
        if not cluster_id:
            raise RemoteServiceError(detail='create_item returned no id')

        users_repo.add_cluster(self.db, principal.uid, cluster_id, firestore_module=self.firestore_module)
        logger.info(f"User {principal.uid} created cluster {cluster_id}")
        return item

    def get(self, principal, cluster_id):
        self.require_owner(principal, cluster_id)
        return fetch_item(self.cms, cluster_id)

    def get_details(self, principal, cluster_id):
        """Item plus owner identity and the asset index, for the admin dashboard."""
        self.require_owner(principal, cluster_id)
        item = fetch_item(self.cms, cluster_id)
        owner_uid = (item.get('fieldData') or {}).get(OWNER_FIELD)
        owner_email = 'N/A'
        if owner_uid and self.auth_module is not None:
            try:
                owner_email = self.auth_module.get_user(owner_uid).email
            except Exception as exc:
                logger.warning(f"Could not fetch Firebase user {owner_uid}: {exc}")
                owner_email = 'Firebase user not found'
        return {
            'webflow': item,
            'owner': {'uid': owner_uid, 'email': owner_email},
            'assets': cluster_assets_repo.get_assets(self.db, cluster_id),
        }

    def list(self, principal):
        # Scans the whole collection on every call.
        owned = set(self.owned_cluster_ids(principal))
        if not owned:
            return []
        return [item for item in self.cms.list_items() if item.get('id') in owned]

    def update(self, principal, cluster_id, fields):
        self.require_owner(principal, cluster_id)
        cleaned = clean_fields(fields)
        if not cleaned:
            raise ClientError('No editable fields supplied.')
        current = fetch_item(self.cms, cluster_id)
        merged = dict(current.get('fieldData') or {})
        merged.update(cleaned)
        missing = missing_required_fields(merged)
        if missing:
            raise ClientError(f"Missing required fields: {', '.join(missing)}")
        item = patch_item_fields(self.cms, cluster_id, cleaned, current_item=current, recompute_slug=True)
        logger.info(f"Cluster {cluster_id} updated by {principal.uid}")
        return item

    def upload_image(self, principal, cluster_id, slot, file_path, file_name, mime_type, size):
        try:
            self.require_owner(principal, cluster_id)
        except Exception:
            remove_temp_file(file_path)
            raise
        return self.pipeline.upload(cluster_id, slot, file_path, file_name, mime_type, size)

    def publish(self, principal, cluster_id):
        self.require_owner(principal, cluster_id)
        item = fetch_item(self.cms, cluster_id)
        slug = (item.get('fieldData') or {}).get('slug', '')
        status = self.cms.publish_items([cluster_id])
        if status != PUBLISH_ACCEPTED_STATUS:
            raise RemoteServiceError(detail=f"publish of {cluster_id} returned {status}, expected 202")
        logger.info(f"Publish queued for cluster {cluster_id}")
        return {
            'slug': slug,
            'publishedUrl': f"{self.live_base_url}/{slug}" if self.live_base_url and slug else None,
        }

    def delete(self, principal, cluster_id):
        self.require_owner(principal, cluster_id)
        owner_uid = principal.uid if not principal.is_admin else self._lookup_owner(cluster_id)

        self.delete_cluster_assets(cluster_id)

        try:
            self.cms.delete_item(cluster_id)
            logger.info(f"Deleted CMS item {cluster_id}")
        except WebflowAPIError as exc:
            if exc.is_not_found:
                logger.info(f"CMS item {cluster_id} was already deleted")
            else:
                logger.warning(f"Could not delete CMS item {cluster_id}: {exc}")
        except Exception as exc:
            logger.warning(f"Could not delete CMS item {cluster_id}: {exc}")

        if owner_uid:
            try:
                if users_repo.remove_cluster(self.db, owner_uid, cluster_id, firestore_module=self.firestore_module):
                    logger.info(f"Removed cluster {cluster_id} from owner {owner_uid}")
            except Exception as exc:
                logger.error(f"Could not remove cluster {cluster_id} from owner {owner_uid}: {exc}")
        else:
            logger.warning(f"Owner of cluster {cluster_id} is unknown; its id may remain in a users record")

        try:
            if cluster_assets_repo.delete_doc(self.db, cluster_id):
                logger.info(f"Deleted asset index for cluster {cluster_id}")
        except Exception as exc:
            logger.error(f"Could not delete asset index for cluster {cluster_id}: {exc}")
        return {'id': cluster_id, 'owner': owner_uid}

    def delete_cluster_assets(self, cluster_id):
        """Delete every asset in the cluster's folder. The empty folder stays: Webflow cannot delete folders."""
        try:
            folder = self.folders.find_folder(cluster_id)
            if not folder or not folder.get('id'):
                logger.info(f"No asset folder for cluster {cluster_id}; asset cleanup skipped")
                return 0
            asset_ids = self.cms.get_asset_folder(folder['id']).get('assets') or []
        except Exception as exc:
            logger.error(f"Asset cleanup for cluster {cluster_id} failed: {exc}")
            return 0

        deleted = 0
        for asset_id in asset_ids:
            try:
                self.cms.delete_asset(asset_id)
                deleted += 1
            except Exception as exc:
                logger.warning(f"Could not delete asset {asset_id} of cluster {cluster_id}: {exc}")
        logger.info(f"Deleted {deleted}/{len(asset_ids)} assets for cluster {cluster_id}")
        return deleted

    def _lookup_owner(self, cluster_id):
        try:
            item = self.cms.get_item(cluster_id)
        except Exception as exc:
            logger.warning(f"Could not fetch CMS item {cluster_id}, it may already be deleted: {exc}")
            return None
        return (item.get('fieldData') or {}).get(OWNER_FIELD)
