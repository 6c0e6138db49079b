from slowapi import Limiter
from slowapi.util import get_remote_address

from navstation.config import Settings

# Configured by create_app() from the settings it is given; disabled until then.
limiter = Limiter(key_func=get_remote_address, enabled=False)

_login_limit = Settings.model_fields["login_rate_limit"].default


def configure_limiter(settings: Settings) -> None:
    """Apply the rate-limit settings of the application being built and clear old hit counters."""
    global _login_limit
    limiter.enabled = settings.rate_limit_enabled
    _login_limit = settings.login_rate_limit
    limiter.reset()


def login_rate_limit() -> str:
    return _login_limit
