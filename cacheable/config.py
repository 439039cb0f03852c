import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NAMESPACE = "__cacheable_storage__"


class Settings(BaseSettings):
    """Library configuration loaded from ``CACHEABLE_*`` environment variables and .env.

    ``namespace`` names the context-propagation namespace used by
    context-local caching. Override it when the default would collide with a
    namespace of the consuming application.
    """

    model_config = SettingsConfigDict(
        env_prefix="CACHEABLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    namespace: str = DEFAULT_NAMESPACE
    log_level: str = "WARNING"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached Settings singleton. Created on first call."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached settings. Used in tests."""
    global _settings  # noqa: PLW0603
    _settings = None


def setup_logging(log_level: str | None = None) -> None:
    """Attach a console handler to the ``cacheable`` logger.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
            Defaults to ``Settings.log_level``.
    """
    if log_level is None:
        log_level = get_settings().log_level
    level = getattr(logging, log_level.upper(), logging.WARNING)
    package_logger = logging.getLogger("cacheable")
    package_logger.setLevel(level)

    # Exact type check avoids matching subclasses (FileHandler, etc.)
    if not any(type(h) is logging.StreamHandler for h in package_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        package_logger.addHandler(console)
    for handler in package_logger.handlers:
        handler.setLevel(level)
