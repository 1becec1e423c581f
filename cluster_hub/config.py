import os
from dataclasses import dataclass, field
from typing import FrozenSet, List

DEFAULT_ALLOWED_IMAGE_MIME_TYPES = frozenset({'image/webp'})
DEFAULT_MAX_UPLOAD_MB = 3.5
DEFAULT_WEBFLOW_TIMEOUT_SECONDS = 20.0

REQUIRED_SETTINGS = (
    ('webflow_api_token', 'WEBFLOW_API_TOKEN'),
    ('webflow_site_id', 'WEBFLOW_SITE_ID'),
    ('webflow_collection_id', 'WEBFLOW_CLUSTER_COLLECTION_ID'),
    ('webflow_parent_folder_id', 'WEBFLOW_PARENT_ASSET_FOLDER_ID'),
)
ADMIN_SETTINGS = (
    ('admin_username', 'ADMIN_USERNAME'),
    ('admin_password', 'ADMIN_PASSWORD'),
)


@dataclass(frozen=True)
class AppConfig:
    """Central config object, read once from the environment."""

    webflow_api_token: str = ''
    webflow_site_id: str = ''
    webflow_collection_id: str = ''
    webflow_parent_folder_id: str = ''
    webflow_live_base_url: str = ''
    webflow_timeout_seconds: float = DEFAULT_WEBFLOW_TIMEOUT_SECONDS
    admin_username: str = ''
    admin_password: str = ''
    firebase_credentials: str = ''
    firebase_credentials_path: str = 'firebase-credentials.json'
    max_upload_bytes: int = int(DEFAULT_MAX_UPLOAD_MB * 1024 * 1024)
    allowed_image_mime_types: FrozenSet[str] = field(default=DEFAULT_ALLOWED_IMAGE_MIME_TYPES)
    upload_folder: str = 'uploads'
    log_level: str = 'INFO'
    sentry_dsn: str = ''
    sentry_environment: str = 'production'
    sentry_release: str = 'cluster-hub'

    def missing_settings(self) -> List[str]:
        return [env_name for attr, env_name in REQUIRED_SETTINGS if not getattr(self, attr)]

    def missing_admin_settings(self) -> List[str]:
        return [env_name for attr, env_name in ADMIN_SETTINGS if not getattr(self, attr)]


def _env(name, default=''):
    return (os.getenv(name, default) or default).strip()


def _env_float(name, default):
    raw = _env(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f'{name} must be a number, got {raw!r}.')
    if value <= 0:
        raise RuntimeError(f'{name} must be greater than zero.')
    return value


def parse_mime_types(raw):
    values = {part.strip().lower() for part in str(raw or '').split(',') if part.strip()}
    return frozenset(values) or DEFAULT_ALLOWED_IMAGE_MIME_TYPES


def load_config() -> AppConfig:
    max_upload_mb = _env_float('MAX_UPLOAD_MB', DEFAULT_MAX_UPLOAD_MB)
    return AppConfig(
        webflow_api_token=_env('WEBFLOW_API_TOKEN'),
        webflow_site_id=_env('WEBFLOW_SITE_ID'),
        webflow_collection_id=_env('WEBFLOW_CLUSTER_COLLECTION_ID'),
        webflow_parent_folder_id=_env('WEBFLOW_PARENT_ASSET_FOLDER_ID'),
        webflow_live_base_url=_env('WEBFLOW_LIVE_BASE_URL').rstrip('/'),
        webflow_timeout_seconds=_env_float('WEBFLOW_TIMEOUT_SECONDS', DEFAULT_WEBFLOW_TIMEOUT_SECONDS),
        admin_username=_env('ADMIN_USERNAME'),
        admin_password=os.getenv('ADMIN_PASSWORD', '') or '',
        firebase_credentials=_env('FIREBASE_ADMIN_SDK'),
        firebase_credentials_path=_env('FIREBASE_CREDENTIALS_PATH', 'firebase-credentials.json'),
        max_upload_bytes=int(max_upload_mb * 1024 * 1024),
        allowed_image_mime_types=parse_mime_types(os.getenv('ALLOWED_IMAGE_MIME_TYPES', '')),
        upload_folder=_env('UPLOAD_FOLDER', 'uploads'),
        log_level=_env('LOG_LEVEL', 'INFO').upper(),
        sentry_dsn=_env('SENTRY_DSN'),
        sentry_environment=(
            _env('SENTRY_ENVIRONMENT') or _env('FLASK_ENV') or 'production'
        ),
        sentry_release=_env('SENTRY_RELEASE', 'cluster-hub'),
    )
