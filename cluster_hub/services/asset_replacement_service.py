"""Best-effort removal of the asset previously stored for a (cluster, slot)."""

import logging

from cluster_hub.repositories import cluster_assets_repo

logger = logging.getLogger(__name__)


class AssetReplacementCoordinator:
    def __init__(self, cms, db):
        self.cms = cms
        self.db = db

    def replace_if_present(self, cluster_id, slot):
        """Delete the slot's current asset and return its id. Never raises."""
        try:
            previous = cluster_assets_repo.get_asset(self.db, cluster_id, slot)
        except Exception as exc:
            logger.warning(f"Could not read asset index for cluster {cluster_id}: {exc}")
            return None

        asset_id = (previous or {}).get('assetId')
        if not asset_id:
            return None

        try:
            logger.info(f"Deleting previous {slot} asset {asset_id} for cluster {cluster_id}")
            self.cms.delete_asset(asset_id)
        except Exception as exc:
            logger.warning(f"Failed to delete previous asset {asset_id} (it may have already been removed): {exc}")
            return None
        return asset_id
