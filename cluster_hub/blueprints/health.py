from flask import Blueprint, jsonify

health_bp = Blueprint('health_api', __name__)


@health_bp.route('/api', methods=['GET'])
def health():
    return jsonify({'message': 'Cluster Hub API is running!'})


@health_bp.route('/healthz', methods=['GET'])
def healthz():
    return jsonify({'status': 'ok'}), 200
