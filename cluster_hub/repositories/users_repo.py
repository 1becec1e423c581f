"""Firestore accessors for users collection."""


def doc_ref(db, uid):
    return db.collection('users').document(uid)


def get_doc(db, uid):
    return doc_ref(db, uid).get()


def get_cluster_ids(db, uid):
    snapshot = get_doc(db, uid)
    if not snapshot.exists:
        return []
    clusters = (snapshot.to_dict() or {}).get('clusters') or []
    return [str(cluster_id) for cluster_id in clusters if cluster_id]


def add_cluster(db, uid, cluster_id, *, firestore_module):
    # set(merge=True) creates the user doc on first use; update() would fail.
    return doc_ref(db, uid).set({'clusters': firestore_module.ArrayUnion([cluster_id])}, merge=True)


def remove_cluster(db, uid, cluster_id, *, firestore_module):
    ref = doc_ref(db, uid)
    if not ref.get().exists:
        return False
    ref.update({'clusters': firestore_module.ArrayRemove([cluster_id])})
    return True
