"""Process-wide configuration, read once from the environment at startup."""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _has_public_assets(directory: Path) -> bool:
    """Return True when *directory* holds at least one non-hidden entry."""
    try:
        return any(not entry.name.startswith(".") for entry in directory.iterdir())
    except OSError:
        return False


def resolve_public_dir(public_dir: Path, default_public_dir: Path) -> Path:
    """Pick the directory static assets are served from.

    Custom assets in *public_dir* win, then the bundled defaults; when both
    are empty the custom directory is used so that files added later are
    still picked up on restart.
    """
    if _has_public_assets(public_dir):
        return public_dir
    if _has_public_assets(default_public_dir):
        return default_public_dir
    return public_dir


class Settings(BaseModel):
    """Immutable site configuration shared by the renderer, router and proxies."""

    model_config = ConfigDict(frozen=True)

    backend_url: str = "http://127.0.0.1:8090"
    port: int = 5173
    admin_url: str = "http://admin:5174"
    admin_host: str = "localhost:5173"

    site_name: str = "Example Blog"
    site_description: str = "A calm place to write."
    site_url: str = ""
    site_language: str = "ja"
    home_welcome: str = "Welcome to your blog"
    home_top_image: str = "/default-hero.svg"
    home_top_image_alt: str = "Default hero image"
    footer_html: str = ""

    analytics_url: str = ""
    analytics_site_id: str = ""
    ads_client: str = ""

    theme: str = "ember"
    show_toc: bool = False

    enable_feed_xml: bool = True
    enable_feed_json: bool = True
    feed_items_limit: int = 20

    backend_timeout: float = 15.0

    public_dir: Path = Path("public")
    default_public_dir: Path = Path("default-public-asset")
    active_public_dir: Path = Path("public")

    log_level: str = "INFO"

    @property
    def custom_assets(self) -> bool:
        """True when the site's own public directory is the active one."""
        return self.active_public_dir == self.public_dir

    @property
    def analytics_enabled(self) -> bool:
        return bool(self.analytics_url and self.analytics_site_id)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from *environ* (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        defaults = cls()

        def text(key: str, fallback: str) -> str:
            return env.get(key, fallback)

        def flag(key: str, fallback: bool) -> bool:
            raw = env.get(key)
            if raw is None or not raw.strip():
                return fallback
            return raw.strip().lower() in _TRUTHY

        def number(key: str, fallback, cast):
            raw = env.get(key, "").strip()
            if not raw:
                return fallback
            try:
                return cast(raw)
            except ValueError:
                logger.warning("Ignoring invalid %s=%r, using %r", key, raw, fallback)
                return fallback

        public_dir = Path(text("PUBLIC_DIR", str(defaults.public_dir)))
        default_public_dir = Path(text("DEFAULT_PUBLIC_DIR", str(defaults.default_public_dir)))

        return cls(
            backend_url=text("PB_URL", defaults.backend_url),
            port=number("PORT", defaults.port, int),
            admin_url=text("ADMIN_URL", defaults.admin_url),
            admin_host=text("ADMIN_HOST", defaults.admin_host),
            site_name=text("SITE_NAME", defaults.site_name),
            site_description=text("SITE_DESCRIPTION", defaults.site_description),
            site_url=text("SITE_URL", defaults.site_url),
            site_language=text("SITE_LANGUAGE", defaults.site_language),
            home_welcome=text("HOME_WELCOME", defaults.home_welcome),
            home_top_image=text("HOME_TOP_IMAGE", defaults.home_top_image),
            home_top_image_alt=text("HOME_TOP_IMAGE_ALT", defaults.home_top_image_alt),
            footer_html=text("FOOTER_HTML", defaults.footer_html),
            analytics_url=text("ANALYTICS_URL", defaults.analytics_url),
            analytics_site_id=text("ANALYTICS_SITE_ID", defaults.analytics_site_id),
            ads_client=text("ADS_CLIENT", defaults.ads_client),
            theme=text("THEME", defaults.theme),
            show_toc=flag("SHOW_TOC", defaults.show_toc),
            enable_feed_xml=flag("ENABLE_FEED_XML", defaults.enable_feed_xml),
            enable_feed_json=flag("ENABLE_FEED_JSON", defaults.enable_feed_json),
            feed_items_limit=number("FEED_ITEMS_LIMIT", defaults.feed_items_limit, int),
            backend_timeout=number("BACKEND_TIMEOUT", defaults.backend_timeout, float),
            public_dir=public_dir,
            default_public_dir=default_public_dir,
            active_public_dir=resolve_public_dir(public_dir, default_public_dir),
            log_level=text("LOG_LEVEL", defaults.log_level).upper(),
        )
