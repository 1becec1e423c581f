"""CMS item helpers shared by the cluster facade and the upload pipeline."""

from cluster_hub.clients.webflow_client import WebflowAPIError
from cluster_hub.errors import NotFoundError
from cluster_hub.services.cluster_fields import slugify


def fetch_item(cms, item_id):
    try:
        return cms.get_item(item_id)
    except WebflowAPIError as exc:
        if exc.is_not_found:
            raise NotFoundError(f'Cluster {item_id} not found.', detail=exc.detail) from exc
        raise


def patch_item_fields(cms, item_id, changes, *, current_item=None, recompute_slug=False):
    """Overwrite ``changes`` on top of the item's full field data and send all of it.

    Webflow replaces the whole ``fieldData`` object on update, so sending only
    the changed keys would clear the others.
    """
    item = current_item if current_item is not None else fetch_item(cms, item_id)
    field_data = dict(item.get('fieldData') or {})
    field_data.update(changes)
    if recompute_slug:
        field_data['slug'] = slugify(field_data.get('name'))
    try:
        return cms.update_item(item_id, field_data)
    except WebflowAPIError as exc:
        if exc.is_not_found:
            raise NotFoundError(f'Cluster {item_id} not found.', detail=exc.detail) from exc
        raise
