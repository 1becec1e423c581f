from flask import Blueprint, request

from cluster_hub.extensions import get_app_ctx
from cluster_hub.services import admin_api_service

admin_bp = Blueprint('admin_api', __name__)


@admin_bp.route('/api/admin/cluster/<cluster_id>', methods=['GET'])
def admin_get_cluster(cluster_id):
    return admin_api_service.admin_get_cluster(get_app_ctx(), request, cluster_id)


@admin_bp.route('/api/admin/cluster/<cluster_id>', methods=['PATCH'])
def admin_update_cluster(cluster_id):
    return admin_api_service.admin_update_cluster(get_app_ctx(), request, cluster_id)


@admin_bp.route('/api/admin/cluster/<cluster_id>/image', methods=['POST'])
def admin_upload_cluster_image(cluster_id):
    return admin_api_service.admin_upload_cluster_image(get_app_ctx(), request, cluster_id)


@admin_bp.route('/api/admin/cluster/<cluster_id>/publish', methods=['POST'])
def admin_publish_cluster(cluster_id):
    return admin_api_service.admin_publish_cluster(get_app_ctx(), request, cluster_id)


@admin_bp.route('/api/admin/cluster/<cluster_id>', methods=['DELETE'])
@admin_bp.route('/api/admin/delete-cluster/<cluster_id>', methods=['GET'])
def admin_delete_cluster(cluster_id):
    return admin_api_service.admin_delete_cluster(get_app_ctx(), request, cluster_id)
