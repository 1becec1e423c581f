"""Cluster field-data helpers: slug derivation, editable fields and image slots."""

import re

SLUG_MAX_LENGTH = 255

OWNER_FIELD = 'firebase-uid'
REQUIRED_FIELDS = ('name', 'short-description')
EDITABLE_FIELDS = frozenset({
    'name',
    'short-description',
    'long-description',
    'discord-link',
    'website-link',
    'server-rules',
    'contact-email',
    'location',
    'game',
    'game-mode',
    'pc',
    'xbox',
    'playstation',
    'crossplay',
    'pvp',
})

# Image slot -> CMS field holding that slot's hosted URL.
SLOT_FIELDS = {
    'logo-1-1': '1-1-cluster-logo-image-link',
    'banner-16-9': '16-9-banner-image-link',
    'banner-9-16': '9-16-banner-image-link',
}

_NON_SLUG_CHARS = re.compile(r'[^a-z0-9\s-]')
_WHITESPACE = re.compile(r'\s+')
_REPEATED_HYPHENS = re.compile(r'-+')


def slugify(name):
    text = str(name or '').lower()
    text = _NON_SLUG_CHARS.sub('', text).strip()
    text = _WHITESPACE.sub('-', text)
    text = _REPEATED_HYPHENS.sub('-', text)
    return text[:SLUG_MAX_LENGTH]


def field_for_slot(slot):
    return SLOT_FIELDS.get(str(slot or '').strip())


def clean_fields(raw_fields):
    """Keep only editable keys; strip string values."""
    if not isinstance(raw_fields, dict):
        return {}
    cleaned = {}
    for key, value in raw_fields.items():
        if key not in EDITABLE_FIELDS:
            continue
        if isinstance(value, str):
            value = value.strip()
        cleaned[key] = value
    return cleaned


def missing_required_fields(fields):
    return [name for name in REQUIRED_FIELDS if not str(fields.get(name) or '').strip()]
