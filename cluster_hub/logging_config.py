import logging

from flask import g, has_request_context

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s'


class RequestIdFilter(logging.Filter):
    """Stamp each record with the current request's X-Request-ID ('-' outside requests)."""

    def filter(self, record):
        request_id = '-'
        if has_request_context():
            request_id = getattr(g, 'request_id', '') or '-'
        record.request_id = request_id
        return True


def configure_logging(level: str = 'INFO') -> None:
    """Idempotent logging setup for the app factory."""
    root = logging.getLogger()
    if root.handlers:
        return
    numeric_level = getattr(logging, str(level or 'INFO').upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    for handler in root.handlers:
        handler.addFilter(RequestIdFilter())
    # urllib3 logs every pooled connection at DEBUG.
    logging.getLogger('urllib3').setLevel(max(numeric_level, logging.INFO))
