"""Get-or-create of the per-cluster Webflow asset folder."""

import logging

from cluster_hub.clients.webflow_client import WebflowAPIError
from cluster_hub.errors import RetryableError

logger = logging.getLogger(__name__)


class AssetFolderResolver:
    def __init__(self, cms, parent_folder_id):
        self.cms = cms
        self.parent_folder_id = parent_folder_id

    def find_folder(self, cluster_id):
        for folder in self.cms.list_asset_folders():
            if folder.get('displayName') == cluster_id:
                return folder
        return None

    def resolve_folder(self, cluster_id):
        """Return the id of the folder named ``cluster_id``, creating it if needed."""
        existing = self.find_folder(cluster_id)
        if existing and existing.get('id'):
            logger.info(f"Found existing asset folder {existing['id']} for cluster {cluster_id}")
            return existing['id']

        logger.info(f"No asset folder for cluster {cluster_id}, creating one")
        try:
            created = self.cms.create_asset_folder(cluster_id, self.parent_folder_id)
        except WebflowAPIError as exc:
            if not exc.is_conflict:
                raise
            # Another request created the folder between our listing and create.
            logger.warning(f"Asset folder creation for cluster {cluster_id} conflicted: {exc}")
            folder_id = exc.payload.get('id')
            if not folder_id:
                retried = self.find_folder(cluster_id)
                folder_id = retried.get('id') if retried else None
            if not folder_id:
                raise RetryableError(
                    'The image folder is still being prepared, please resubmit the upload.',
                    detail=f"folder conflict without id for cluster {cluster_id}",
                ) from exc
            return folder_id

        folder_id = created.get('id')
        if not folder_id:
            raise RetryableError(
                'The image folder could not be created, please resubmit the upload.',
                detail=f"create_asset_folder returned no id for cluster {cluster_id}",
            )
        logger.info(f"Created asset folder {folder_id} for cluster {cluster_id}")
        return folder_id
