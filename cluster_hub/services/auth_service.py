"""Authentication utility helpers."""

import base64
import binascii
import hmac
from dataclasses import dataclass

from cluster_hub.errors import ConfigurationError, ForbiddenError, UnauthorizedError

ADMIN_REALM = 'Cluster Hub Admin Area'


@dataclass(frozen=True)
class Principal:
    uid: str
    email: str = ''
    is_admin: bool = False


ADMIN_PRINCIPAL = Principal(uid='admin', is_admin=True)


class AdminAuthRequired(UnauthorizedError):
    default_message = 'Admin credentials required'


def verify_firebase_token(request, auth_module, logger):
    """Return decoded Firebase token dict, or None when invalid/missing."""
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    token = auth_header.split('Bearer ', 1)[1].strip()
    if not token:
        return None
    try:
        return auth_module.verify_id_token(token)
    except Exception as exc:
        if logger is not None:
            logger.info(f"Token verification failed: {exc}")
        return None


def authenticate_user(request, auth_module, logger):
    decoded_token = verify_firebase_token(request, auth_module, logger)
    if not decoded_token or not decoded_token.get('uid'):
        raise UnauthorizedError('Please sign in to continue')
    return Principal(uid=decoded_token['uid'], email=decoded_token.get('email', '') or '')


def parse_basic_auth(auth_header):
    """Return (username, password) from a Basic header, or None."""
    scheme, _, encoded = (auth_header or '').partition(' ')
    if scheme.lower() != 'basic' or not encoded.strip():
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(':')
    if not sep:
        return None
    return username, password


def authenticate_admin(request, config, logger):
    missing = config.missing_admin_settings()
    if missing:
        if logger is not None:
            logger.error(f"Admin access is not configured: missing {', '.join(missing)}")
        raise ConfigurationError('Server is not configured for admin access.')

    credentials = parse_basic_auth(request.headers.get('Authorization', ''))
    if credentials is None:
        raise AdminAuthRequired()

    username, password = credentials
    user_ok = hmac.compare_digest(username.encode('utf-8'), config.admin_username.encode('utf-8'))
    pass_ok = hmac.compare_digest(password.encode('utf-8'), config.admin_password.encode('utf-8'))
    if not (user_ok and pass_ok):
        if logger is not None:
            logger.warning(f"Failed admin login attempt with username: {username}")
        raise ForbiddenError('The username or password you entered is incorrect.')
    return ADMIN_PRINCIPAL
