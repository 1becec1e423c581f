from flask import Flask, jsonify
from werkzeug.exceptions import MethodNotAllowed, NotFound, RequestEntityTooLarge

from .config import load_config
from .extensions import init_extensions
from .logging_config import configure_logging

# Multipart framing on top of the largest accepted image.
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


def create_app(config=None, *, db=None, cms=None, auth_module=None, firestore_module=None):
    """App factory entrypoint.

    Remote collaborators default to the real Firebase/Webflow clients built
    from ``config``; tests pass fakes for any of them.
    """
    config = config or load_config()
    configure_logging(config.log_level)

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config.max_upload_bytes + MULTIPART_OVERHEAD_BYTES
    init_extensions(app, config, db=db, cms=cms, auth_module=auth_module, firestore_module=firestore_module)

    from .blueprints import admin_bp, clusters_bp, health_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(clusters_bp)
    app.register_blueprint(admin_bp)

    max_mb = round(config.max_upload_bytes / (1024 * 1024), 2)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_request_entity_too_large(_error):
        return jsonify({'error': f'Upload too large. Max size is {max_mb:g}MB.'}), 413

    @app.errorhandler(NotFound)
    def handle_not_found(_error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(MethodNotAllowed)
    def handle_method_not_allowed(_error):
        return jsonify({'error': 'Method not allowed'}), 405

    return app
