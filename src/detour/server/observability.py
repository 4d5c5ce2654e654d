"""Error tracking via Sentry (``pip install detour[sentry]``)."""

from detour.config import AppConfig
from detour.errors import ConfigurationError


def init_error_tracking(config: AppConfig) -> bool:
    """Initialise ``sentry-sdk`` when ``config.sentry_dsn`` is set.

    Returns ``True`` if Sentry was initialised.

    Raises:
        ConfigurationError: If a DSN is configured but ``sentry-sdk`` is
            not installed.
    """
    if not config.sentry_dsn:
        return False

    try:
        import sentry_sdk
    except ImportError as exc:
        msg = (
            "sentry_dsn is set but sentry-sdk is not installed. "
            "Install it with: pip install detour[sentry]"
        )
        raise ConfigurationError(msg) from exc

    sentry_sdk.init(
        dsn=config.sentry_dsn,
        traces_sample_rate=config.sentry_traces_sample_rate,
        environment=config.sentry_environment,
    )
    sentry_sdk.set_context("region", {"name": config.sentry_region or "unknown"})
    return True
