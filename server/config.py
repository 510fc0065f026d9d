"""Configuration for the API server and worker."""

import os
from dataclasses import dataclass, field


def _split_env(name: str) -> list:
    return [v.strip().lower() for v in os.getenv(name, '').split(',') if v.strip()]


@dataclass
class Settings:
    """Environment-backed settings."""
    google_client_id: str = os.getenv('GOOGLE_OAUTH_CLIENT_ID', '')
    google_client_secret: str = os.getenv('GOOGLE_OAUTH_CLIENT_SECRET', '')
    google_redirect_uri: str = os.getenv('GOOGLE_OAUTH_REDIRECT_URI', '')
    allowed_google_domain: str = os.getenv('ALLOWED_GOOGLE_DOMAIN', '')
    session_secret: str = os.getenv('SESSION_SECRET', 'change-me')
    redis_url: str = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    job_timeout_s: int = int(os.getenv('LINK_AUDIT_JOB_TIMEOUT', str(60 * 30)))
    # Deployment-specific additions to the built-in lenient-domain list.
    extra_lenient_domains: list = field(default_factory=lambda: _split_env('LINK_AUDIT_EXTRA_LENIENT_DOMAINS'))


settings = Settings()
