from flask import Blueprint, request

from cluster_hub.extensions import get_app_ctx
from cluster_hub.services import cluster_api_service

clusters_bp = Blueprint('clusters_api', __name__)


@clusters_bp.route('/api/clusters', methods=['POST'])
def create_cluster():
    return cluster_api_service.create_cluster(get_app_ctx(), request)


@clusters_bp.route('/api/clusters', methods=['GET'])
def list_clusters():
    return cluster_api_service.list_clusters(get_app_ctx(), request)


@clusters_bp.route('/api/clusters/<cluster_id>', methods=['GET'])
def get_cluster(cluster_id):
    return cluster_api_service.get_cluster(get_app_ctx(), request, cluster_id)


@clusters_bp.route('/api/clusters/<cluster_id>', methods=['PATCH'])
def update_cluster(cluster_id):
    return cluster_api_service.update_cluster(get_app_ctx(), request, cluster_id)


@clusters_bp.route('/api/clusters/<cluster_id>', methods=['DELETE'])
def delete_cluster(cluster_id):
    return cluster_api_service.delete_cluster(get_app_ctx(), request, cluster_id)


@clusters_bp.route('/api/clusters/<cluster_id>/image', methods=['POST'])
def upload_cluster_image(cluster_id):
    return cluster_api_service.upload_cluster_image(get_app_ctx(), request, cluster_id)


@clusters_bp.route('/api/clusters/<cluster_id>/publish', methods=['POST'])
def publish_cluster(cluster_id):
    return cluster_api_service.publish_cluster(get_app_ctx(), request, cluster_id)
