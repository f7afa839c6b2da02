"""TLS options for the receipt counter's Redis connection.

Managed Redis endpoints use ``rediss://``; redis-py reads the certificate
policy and CA bundle from the URL query string, so they are written there.
"""
from __future__ import annotations

from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

import certifi

from vatledger.core.config import settings

CERT_POLICIES = ("none", "optional", "required")


def ca_bundle_path() -> str:
    """``REDIS_SSL_CA_CERTS`` if configured, else certifi's bundle."""
    return settings.REDIS_SSL_CA_CERTS or certifi.where()


def cert_policy(value: str | None = None) -> str:
    policy = (value or settings.REDIS_SSL_CERT_REQS or "required").lower()
    return policy if policy in CERT_POLICIES else "required"


def _with_query(url: str, **params: str) -> str:
    parts = urlparse(url)
    query = parse_qs(parts.query, keep_blank_values=True)
    for key, value in params.items():
        query[key] = [value]
    return urlunparse(parts._replace(query=urlencode(query, doseq=True)))


def prepare_redis_url(url: str | None) -> str | None:
    """Return ``url`` with TLS parameters added for ``rediss://`` schemes."""
    if not url or not url.startswith("rediss://"):
        return url
    return _with_query(url, ssl_cert_reqs=cert_policy(), ssl_ca_certs=ca_bundle_path())
