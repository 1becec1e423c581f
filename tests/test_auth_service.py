import base64
import logging
from types import SimpleNamespace

import pytest

from cluster_hub.config import AppConfig
from cluster_hub.errors import ConfigurationError, ForbiddenError, UnauthorizedError
from cluster_hub.services.auth_service import (
    ADMIN_PRINCIPAL,
    AdminAuthRequired,
    authenticate_admin,
    authenticate_user,
    parse_basic_auth,
    verify_firebase_token,
)

from conftest import FakeAuth

logger = logging.getLogger(__name__)
ADMIN_CONFIG = AppConfig(admin_username="admin", admin_password="s3cret")


def _request(authorization=None):
    headers = {} if authorization is None else {"Authorization": authorization}
    return SimpleNamespace(headers=headers)


def _basic(raw):
    return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")


def test_verify_firebase_token_requires_bearer_prefix():
    assert verify_firebase_token(_request("token-owner"), FakeAuth(), logger) is None
    assert verify_firebase_token(_request("Bearer "), FakeAuth(), logger) is None
    assert verify_firebase_token(_request("Bearer token-owner"), FakeAuth(), logger)["uid"] == "owner-1"


def test_verify_firebase_token_returns_none_for_invalid_token():
    assert verify_firebase_token(_request("Bearer forged"), FakeAuth(), logger) is None


def test_authenticate_user_builds_principal():
    principal = authenticate_user(_request("Bearer token-owner"), FakeAuth(), logger)

    assert principal.uid == "owner-1"
    assert principal.email == "owner@example.com"
    assert principal.is_admin is False


def test_authenticate_user_rejects_missing_token():
    with pytest.raises(UnauthorizedError):
        authenticate_user(_request(), FakeAuth(), logger)


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (_basic("admin:s3cret"), ("admin", "s3cret")),
        (_basic("admin:pa:ss"), ("admin", "pa:ss")),
        (_basic("no-colon"), None),
        ("Basic !!!not-base64", None),
        ("Bearer token-owner", None),
        ("", None),
    ],
)
def test_parse_basic_auth(header, expected):
    assert parse_basic_auth(header) == expected


def test_authenticate_admin_success():
    assert authenticate_admin(_request(_basic("admin:s3cret")), ADMIN_CONFIG, logger) is ADMIN_PRINCIPAL


def test_authenticate_admin_without_credentials_asks_for_them():
    with pytest.raises(AdminAuthRequired) as excinfo:
        authenticate_admin(_request(), ADMIN_CONFIG, logger)

    assert excinfo.value.status_code == 401


def test_authenticate_admin_wrong_password_is_forbidden():
    with pytest.raises(ForbiddenError):
        authenticate_admin(_request(_basic("admin:nope")), ADMIN_CONFIG, logger)


def test_authenticate_admin_unconfigured():
    with pytest.raises(ConfigurationError):
        authenticate_admin(_request(_basic("admin:s3cret")), AppConfig(), logger)
