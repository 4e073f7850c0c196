"""
Centralized configuration management.

Values are resolved from, in increasing priority:
1) `env.example` (committed, safe defaults)
2) `env.local` (optional, developer-local, MUST NOT be committed)
3) System environment variables
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger


class EnvironConfig:
    """
    Singleton configuration class that loads environment variables from env files
    and system environment, providing dictionary-like access with default values.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(EnvironConfig, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._config = {}
            self._load_config()
            EnvironConfig._initialized = True

    def _load_config(self):
        """
        Load configuration from env files and system environment.

        Priority order (later overrides earlier):
        1. env.example (committed defaults)
        2. env.local (developer-local, not committed)
        3. System environment variables (highest priority)
        """
        root = Path(__file__).parent.parent.parent

        example_path = root / "env.example"
        if example_path.exists():
            self._config.update(dotenv_values(example_path))
            logger.info("Loaded environment variables from {}", example_path)

        local_path = root / "env.local"
        if local_path.exists():
            self._config.update(dotenv_values(local_path))
            logger.info("Loaded and overrode environment variables from {}", local_path)

        self._config.update(os.environ)

    def __getitem__(self, key):
        """
        Get configuration value by key.

        Raises:
            KeyError: If key not found
        """
        if key not in self._config:
            raise KeyError(f"Configuration key '{key}' not found")

        return self._config[key]

    def get(self, key, default=None):
        return self._config.get(key, default)

    def reload(self):
        """
        Reload configuration from files and environment.
        Useful for testing or when configuration files change.
        """
        self._config.clear()
        self._load_config()
        logger.info("Configuration reloaded")

    def __contains__(self, key):
        return key in self._config

    def __iter__(self):
        return iter(self._config)

    def keys(self):
        return self._config.keys()

    def items(self):
        return self._config.items()

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None or not str(value).strip():
            return default
        return str(value).strip().lower() in {"true", "yes", "on", "1"}

    def is_debug(self) -> bool:
        return self.get_bool("DEBUG")

    def get_capability_header(self) -> str:
        """
        Get the request header whose presence marks a client with the browser extension.

        Returns:
            str: Lower-cased header name (default: x-has-extension)
        """
        name = str(self.get("CAPABILITY_HEADER") or "").strip().lower()
        return name or "x-has-extension"

    def get_upstream_timeout(self) -> float:
        """
        Get the timeout applied to every outbound platform request.

        Returns:
            float: Timeout in seconds (default: 10.0)
        """
        try:
            timeout = float(self.get("UPSTREAM_TIMEOUT_SECONDS", "10"))
            if timeout > 0:
                return timeout
            else:
                logger.warning("UPSTREAM_TIMEOUT_SECONDS value {} must be positive, defaulting to 10", timeout)
                return 10.0
        except (ValueError, TypeError):
            logger.warning(
                "Invalid UPSTREAM_TIMEOUT_SECONDS value '{}', defaulting to 10",
                self.get("UPSTREAM_TIMEOUT_SECONDS"),
            )
            return 10.0

    def get_enrich_concurrency(self) -> int:
        """
        Get how many display-name lookups may be in flight for one response.

        Returns:
            int: Concurrency (1-16, default: 4)
        """
        try:
            size = int(self.get("ENRICH_CONCURRENCY", "4"))
            if 1 <= size <= 16:
                return size
            else:
                logger.warning("ENRICH_CONCURRENCY value {} is out of range (1-16), defaulting to 4", size)
                return 4
        except (ValueError, TypeError):
            logger.warning("Invalid ENRICH_CONCURRENCY value '{}', defaulting to 4", self.get("ENRICH_CONCURRENCY"))
            return 4

    def get_youtube_base_url(self) -> str:
        return str(self.get("YOUTUBE_BASE_URL") or "https://www.youtube.com").rstrip("/")

    def get_chzzk_api_base_url(self) -> str:
        return str(self.get("CHZZK_API_BASE_URL") or "https://api.chzzk.naver.com").rstrip("/")

    def get_extension_url(self, user_agent: str | None) -> str:
        """
        Get the browser-extension install page matching the requesting browser.

        Args:
            user_agent: Raw User-Agent header, if any

        Returns:
            str: Firefox add-ons URL for Firefox, Chrome Web Store URL otherwise
        """
        if user_agent and "firefox" in user_agent.lower():
            return self.get("EXTENSION_URL_FIREFOX") or "https://addons.mozilla.org/addon/mullive/"
        return (
            self.get("EXTENSION_URL_CHROME")
            or "https://chromewebstore.google.com/detail/pahcphmhihleneomklgfbbneokhjiaim"
        )

    def get_page_title(self) -> str:
        return self.get("PAGE_TITLE") or "Mul.Live - Multiview"


config = EnvironConfig()
