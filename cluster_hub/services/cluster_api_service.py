"""Business logic handlers for the user-facing cluster APIs."""

from werkzeug.exceptions import RequestEntityTooLarge

from cluster_hub.errors import ClientError, ClusterHubError
from cluster_hub.services import file_service


def _json_object(request):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ClientError('Request body must be a JSON object')
    return payload


def _server_error(app_ctx, message, exc):
    app_ctx.logger.exception(f"{message}: {exc}")
    return app_ctx.jsonify({'error': message}), 500


def create_cluster(app_ctx, request):
    try:
        principal = app_ctx.authenticate_user(request)
        clusters = app_ctx.require_configured()
        item = clusters.create(principal, _json_object(request))
        return app_ctx.jsonify({'message': 'Cluster created successfully!', 'data': item}), 201
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except Exception as exc:
        return _server_error(app_ctx, 'Server error while creating cluster.', exc)


def list_clusters(app_ctx, request):
    try:
        principal = app_ctx.authenticate_user(request)
        clusters = app_ctx.require_configured()
        return app_ctx.jsonify({'clusters': clusters.list(principal)})
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except Exception as exc:
        return _server_error(app_ctx, 'Server error while fetching clusters.', exc)


def get_cluster(app_ctx, request, cluster_id):
    try:
        principal = app_ctx.authenticate_user(request)
        clusters = app_ctx.require_configured()
        return app_ctx.jsonify(clusters.get(principal, cluster_id))
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except Exception as exc:
        return _server_error(app_ctx, 'Server error while fetching cluster.', exc)


def update_cluster(app_ctx, request, cluster_id):
    try:
        principal = app_ctx.authenticate_user(request)
        clusters = app_ctx.require_configured()
        item = clusters.update(principal, cluster_id, _json_object(request))
        return app_ctx.jsonify({'message': 'Cluster updated successfully!', 'data': item})
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except Exception as exc:
        return _server_error(app_ctx, 'Server error while updating cluster.', exc)


def delete_cluster(app_ctx, request, cluster_id):
    try:
        principal = app_ctx.authenticate_user(request)
        clusters = app_ctx.require_configured()
        clusters.delete(principal, cluster_id)
        return app_ctx.jsonify({'message': 'Cluster deleted successfully.', 'id': cluster_id})
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except Exception as exc:
        return _server_error(app_ctx, 'Server error while deleting cluster.', exc)


def publish_cluster(app_ctx, request, cluster_id):
    try:
        principal = app_ctx.authenticate_user(request)
        clusters = app_ctx.require_configured()
        result = clusters.publish(principal, cluster_id)
        return app_ctx.jsonify({
            'message': 'Publishing started! The cluster will be live in a minute.',
            'publishedUrl': result['publishedUrl'],
            'slug': result['slug'],
        })
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except Exception as exc:
        return _server_error(app_ctx, 'Server error while publishing cluster.', exc)


def receive_image_upload(app_ctx, request, cluster_id, principal):
    """Spool the multipart ``image`` field to disk and hand it to the upload pipeline."""
    clusters = app_ctx.require_configured()
    image = request.files.get('image')
    if image is None or not image.filename:
        raise ClientError('No image file uploaded')
    slot = (request.args.get('type', '') or '').strip()

    temp_path, size = file_service.save_upload_to_temp(image, app_ctx.config.upload_folder, prefix=cluster_id)
    # upload_image owns temp_path from here and removes it on every path.
    result = clusters.upload_image(principal, cluster_id, slot, temp_path, image.filename, image.mimetype, size)
    return {
        'imageUrl': result.url,
        'assetId': result.asset_id,
        'duplicate': result.duplicate,
        'data': result.item,
    }


def upload_cluster_image(app_ctx, request, cluster_id):
    try:
        principal = app_ctx.authenticate_user(request)
        body = receive_image_upload(app_ctx, request, cluster_id, principal)
        body['message'] = 'Image uploaded and cluster updated!'
        return app_ctx.jsonify(body)
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except RequestEntityTooLarge:
        raise
    except Exception as exc:
        return _server_error(app_ctx, 'Server error during image upload.', exc)
