"""Runtime wiring: Firebase, Webflow, Sentry, CORS and the per-app service context.

Remote clients are built once here and handed to the services' constructors.
Tests pass fakes through ``create_app`` instead.
"""

import json
import logging
import os
import uuid

import firebase_admin
import sentry_sdk
from firebase_admin import auth, credentials, firestore
from flask import current_app, g, jsonify, request
from sentry_sdk.integrations.flask import FlaskIntegration

from cluster_hub.clients.webflow_client import WebflowClient
from cluster_hub.errors import ConfigurationError
from cluster_hub.services import auth_service
from cluster_hub.services.asset_folder_service import AssetFolderResolver
from cluster_hub.services.asset_replacement_service import AssetReplacementCoordinator
from cluster_hub.services.asset_upload_service import AssetUploadPipeline
from cluster_hub.services.cluster_service import ClusterService

EXTENSION_KEY = 'cluster_hub'
DEFAULT_CORS_ALLOWED_ORIGINS = {
    'http://127.0.0.1:3000',
    'http://localhost:3000',
}


class AppContext:
    """Everything a request handler needs; stored in ``app.extensions``."""

    def __init__(self, config, *, db, cms, auth_module, firestore_module, logger, firebase_init_error=''):
        self.config = config
        self.db = db
        self.cms = cms
        self.auth_module = auth_module
        self.firestore_module = firestore_module
        self.logger = logger
        self.firebase_init_error = firebase_init_error
        self.jsonify = jsonify
        self.clusters = None
        if cms is not None and db is not None:
            self.clusters = build_cluster_service(config, cms=cms, db=db, auth_module=auth_module, firestore_module=firestore_module)

    def require_configured(self):
        missing = list(self.config.missing_settings())
        if self.db is None:
            missing.append('FIREBASE_ADMIN_SDK')
        if missing or self.clusters is None:
            self.logger.error(f"Request rejected, server is missing configuration: {', '.join(missing)}")
            raise ConfigurationError(f"Server is not configured: missing {', '.join(missing) or 'CMS client'}.")
        return self.clusters

    def authenticate_user(self, req):
        if self.auth_module is None:
            self.logger.error(f"Firebase auth unavailable: {self.firebase_init_error or 'not initialised'}")
            raise ConfigurationError('Server is not configured for sign-in.')
        return auth_service.authenticate_user(req, self.auth_module, self.logger)

    def authenticate_admin(self, req):
        return auth_service.authenticate_admin(req, self.config, self.logger)

    def error_response(self, exc):
        response = self.jsonify({'error': exc.message})
        response.status_code = exc.status_code
        if isinstance(exc, auth_service.AdminAuthRequired):
            response.headers['WWW-Authenticate'] = f'Basic realm="{auth_service.ADMIN_REALM}"'
        return response


def build_cluster_service(config, *, cms, db, auth_module, firestore_module):
    folders = AssetFolderResolver(cms, config.webflow_parent_folder_id)
    replacement = AssetReplacementCoordinator(cms, db)
    pipeline = AssetUploadPipeline(
        cms,
        db,
        folders,
        replacement,
        max_upload_bytes=config.max_upload_bytes,
        allowed_mime_types=config.allowed_image_mime_types,
    )
    return ClusterService(
        cms,
        db,
        pipeline,
        folders,
        firestore_module=firestore_module,
        auth_module=auth_module,
        live_base_url=config.webflow_live_base_url,
    )


def init_firebase(config, logger):
    """Return (db, auth_module, error). Failures are logged, not raised."""
    try:
        if config.firebase_credentials:
            cred = credentials.Certificate(json.loads(config.firebase_credentials))
        elif os.path.exists(config.firebase_credentials_path):
            cred = credentials.Certificate(config.firebase_credentials_path)
        else:
            raise ValueError(f"FIREBASE_ADMIN_SDK is not set and {config.firebase_credentials_path} was not found.")
        if not firebase_admin._apps:
            # httpTimeout also bounds token verification calls.
            firebase_admin.initialize_app(cred, {'httpTimeout': config.webflow_timeout_seconds})
        return firestore.client(), auth, ''
    except Exception as e:
        logger.error(f"Firebase initialization skipped: {e}")
        return None, None, str(e)


def init_webflow(config, logger):
    if config.missing_settings():
        logger.warning(f"Webflow client disabled, missing: {', '.join(config.missing_settings())}")
        return None
    return WebflowClient(
        config.webflow_api_token,
        config.webflow_site_id,
        config.webflow_collection_id,
        timeout=config.webflow_timeout_seconds,
    )


def init_sentry(config):
    if not config.sentry_dsn:
        return False
    sentry_sdk.init(
        dsn=config.sentry_dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.0,
        send_default_pii=False,
        environment=config.sentry_environment,
        release=config.sentry_release,
    )
    return True


def parse_cors_allowed_origins():
    raw = (os.getenv('CORS_ALLOWED_ORIGINS', '') or '').strip()
    if raw:
        return {part.strip().lower() for part in raw.split(',') if part.strip()}
    return set(DEFAULT_CORS_ALLOWED_ORIGINS)


def apply_cors_headers(response, allowed_origins):
    origin = str(request.headers.get('Origin', '') or '').strip()
    if not origin or not request.path.startswith('/api/'):
        return response
    if origin.lower() not in allowed_origins:
        return response
    response.headers['Access-Control-Allow-Origin'] = origin
    response.headers['Vary'] = 'Origin'
    response.headers['Access-Control-Allow-Headers'] = 'Authorization, Content-Type'
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PATCH, DELETE, OPTIONS'
    return response


def init_request_hooks(app):
    allowed_origins = parse_cors_allowed_origins()

    @app.before_request
    def handle_api_options_preflight():
        if request.method == 'OPTIONS' and request.path.startswith('/api/'):
            return apply_cors_headers(app.make_default_options_response(), allowed_origins)
        return None

    @app.before_request
    def attach_request_id():
        g.request_id = str(request.headers.get('X-Request-ID', '') or '').strip()[:120] or uuid.uuid4().hex

    @app.after_request
    def finish_response(response):
        request_id = str(getattr(g, 'request_id', '') or '').strip()
        if request_id:
            response.headers['X-Request-ID'] = request_id
        return apply_cors_headers(response, allowed_origins)


def init_extensions(app, config, *, db=None, cms=None, auth_module=None, firestore_module=None):
    logger = logging.getLogger(EXTENSION_KEY)
    firebase_init_error = ''
    if db is None and auth_module is None:
        db, auth_module, firebase_init_error = init_firebase(config, logger)
    if cms is None:
        cms = init_webflow(config, logger)
    if firestore_module is None:
        firestore_module = firestore
    init_sentry(config)
    init_request_hooks(app)

    app.extensions[EXTENSION_KEY] = AppContext(
        config,
        db=db,
        cms=cms,
        auth_module=auth_module,
        firestore_module=firestore_module,
        logger=logger,
        firebase_init_error=firebase_init_error,
    )
    return app.extensions[EXTENSION_KEY]


def get_app_ctx():
    return current_app.extensions[EXTENSION_KEY]
