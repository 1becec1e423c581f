"""Firestore accessors for the per-cluster asset index (clusters collection)."""


def doc_ref(db, cluster_id):
    return db.collection('clusters').document(cluster_id)


def get_assets(db, cluster_id):
    snapshot = doc_ref(db, cluster_id).get()
    if not snapshot.exists:
        return {}
    assets = (snapshot.to_dict() or {}).get('assets') or {}
    return assets if isinstance(assets, dict) else {}


def get_asset(db, cluster_id, slot):
    entry = get_assets(db, cluster_id).get(slot)
    return entry if isinstance(entry, dict) else None


def set_asset(db, cluster_id, slot, asset_id, url):
    # merge=True keeps the other slots of the map intact.
    return doc_ref(db, cluster_id).set({'assets': {slot: {'assetId': asset_id, 'url': url}}}, merge=True)


def delete_doc(db, cluster_id):
    ref = doc_ref(db, cluster_id)
    if not ref.get().exists:
        return False
    ref.delete()
    return True
