"""Business logic handlers for admin APIs (HTTP Basic auth, any cluster)."""

from werkzeug.exceptions import RequestEntityTooLarge

from cluster_hub.errors import ClientError, ClusterHubError
from cluster_hub.services.cluster_api_service import receive_image_upload


def _server_error(app_ctx, message, exc):
    app_ctx.logger.exception(f"ADMIN: {message}: {exc}")
    return app_ctx.jsonify({'error': message}), 500


def admin_get_cluster(app_ctx, request, cluster_id):
    try:
        principal = app_ctx.authenticate_admin(request)
        clusters = app_ctx.require_configured()
        app_ctx.logger.info(f"ADMIN: fetching details for cluster {cluster_id}")
        return app_ctx.jsonify(clusters.get_details(principal, cluster_id))
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except Exception as exc:
        return _server_error(app_ctx, 'Server error while fetching cluster details.', exc)


def admin_update_cluster(app_ctx, request, cluster_id):
    try:
        principal = app_ctx.authenticate_admin(request)
        clusters = app_ctx.require_configured()
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ClientError('Request body must be a JSON object')
        item = clusters.update(principal, cluster_id, payload)
        return app_ctx.jsonify({'message': 'Admin successfully updated cluster!', 'data': item})
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except Exception as exc:
        return _server_error(app_ctx, 'Server error while updating cluster.', exc)


def admin_upload_cluster_image(app_ctx, request, cluster_id):
    try:
        principal = app_ctx.authenticate_admin(request)
        body = receive_image_upload(app_ctx, request, cluster_id, principal)
        body['message'] = 'Admin successfully uploaded image and updated cluster!'
        return app_ctx.jsonify(body)
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except RequestEntityTooLarge:
        raise
    except Exception as exc:
        return _server_error(app_ctx, 'Server error during image upload.', exc)


def admin_publish_cluster(app_ctx, request, cluster_id):
    try:
        principal = app_ctx.authenticate_admin(request)
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


def admin_delete_cluster(app_ctx, request, cluster_id):
    try:
        principal = app_ctx.authenticate_admin(request)
        clusters = app_ctx.require_configured()
        app_ctx.logger.info(f"ADMIN ACTION: deleting cluster {cluster_id}")
        result = clusters.delete(principal, cluster_id)
        return app_ctx.jsonify({
            'message': f'Cluster {cluster_id} and all associated data have been deleted.',
            'id': cluster_id,
            'owner': result['owner'],
        })
    except ClusterHubError as exc:
        return app_ctx.error_response(exc)
    except Exception as exc:
        return _server_error(app_ctx, 'Server error while deleting cluster.', exc)
