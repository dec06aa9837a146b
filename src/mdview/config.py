"""Configuration management for mdview.

Supports TOML configuration format with auto-discovery.
"""

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

CONFIG_FILENAME = "mdview.toml"

MAX_DEBOUNCE_MS = 1000

BROWSER_NAMES = (
    "default",
    "chrome",
    "chrome-incognito",
    "firefox",
    "firefox-private",
    "chromium",
    "chromium-incognito",
)


@dataclass(frozen=True)
class ServerConfig:
    """Server configuration.

    Port 0 lets the operating system pick a free port.
    """

    host: str = "127.0.0.1"
    port: int = 0


@dataclass(frozen=True)
class LiveReloadConfig:
    """Live reload configuration."""

    refresh_interval: int | None = None
    ping_interval: float = 30.0
    debounce_ms: int = 500
    step_ms: int = 50


@dataclass(frozen=True)
class BrowserConfig:
    """Browser launch configuration."""

    name: str = "default"
    open: bool = True


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    live_reload: LiveReloadConfig = field(default_factory=LiveReloadConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for mdview.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Raises:
            ValueError: If the file isn't valid TOML or configuration is invalid
        """
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {path}: {e}") from e

        return cls(
            server=cls._parse_server(data.get("server")),
            live_reload=cls._parse_live_reload(data.get("live_reload")),
            browser=cls._parse_browser(data.get("browser")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        """Parse server configuration section.

        Args:
            data: Raw server section data

        Returns:
            ServerConfig instance
        """
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 0)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")
        if not 0 <= port <= 65535:
            raise ValueError("server.port must be between 0 and 65535")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_live_reload(cls, data: object) -> LiveReloadConfig:
        """Parse live_reload configuration section.

        Args:
            data: Raw live_reload section data

        Returns:
            LiveReloadConfig instance
        """
        if data is None:
            return LiveReloadConfig()

        if not isinstance(data, dict):
            raise ValueError("live_reload section must be a dictionary")

        refresh_interval = data.get("refresh_interval")
        if refresh_interval is not None:
            if not isinstance(refresh_interval, int) or isinstance(refresh_interval, bool):
                raise ValueError("live_reload.refresh_interval must be an integer")
            if refresh_interval < 1:
                raise ValueError("live_reload.refresh_interval must be at least 1")

        ping_interval = data.get("ping_interval", 30.0)
        if not isinstance(ping_interval, int | float) or isinstance(ping_interval, bool):
            raise ValueError("live_reload.ping_interval must be a number")
        if ping_interval <= 0:
            raise ValueError("live_reload.ping_interval must be positive")

        debounce_ms = data.get("debounce_ms", 500)
        if not isinstance(debounce_ms, int) or isinstance(debounce_ms, bool):
            raise ValueError("live_reload.debounce_ms must be an integer")
        if not 1 <= debounce_ms <= MAX_DEBOUNCE_MS:
            raise ValueError(f"live_reload.debounce_ms must be between 1 and {MAX_DEBOUNCE_MS}")

        step_ms = data.get("step_ms", 50)
        if not isinstance(step_ms, int) or isinstance(step_ms, bool):
            raise ValueError("live_reload.step_ms must be an integer")
        if not 1 <= step_ms <= debounce_ms:
            raise ValueError("live_reload.step_ms must be between 1 and debounce_ms")

        return LiveReloadConfig(
            refresh_interval=refresh_interval,
            ping_interval=float(ping_interval),
            debounce_ms=debounce_ms,
            step_ms=step_ms,
        )

    @classmethod
    def _parse_browser(cls, data: object) -> BrowserConfig:
        """Parse browser configuration section.

        Args:
            data: Raw browser section data

        Returns:
            BrowserConfig instance
        """
        if data is None:
            return BrowserConfig()

        if not isinstance(data, dict):
            raise ValueError("browser section must be a dictionary")

        name = data.get("name", "default")
        if not isinstance(name, str):
            raise ValueError("browser.name must be a string")
        if name not in BROWSER_NAMES:
            raise ValueError(f"browser.name must be one of: {', '.join(BROWSER_NAMES)}")

        open_browser = data.get("open", True)
        if not isinstance(open_browser, bool):
            raise ValueError("browser.open must be a boolean")

        return BrowserConfig(name=name, open=open_browser)

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        refresh_interval: int | None = None,
        browser: str | None = None,
        open_browser: bool | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            refresh_interval: Override live_reload.refresh_interval
            browser: Override browser.name
            open_browser: Override browser.open

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        live_reload = self.live_reload
        if refresh_interval is not None:
            live_reload = replace(self.live_reload, refresh_interval=refresh_interval)

        browser_config = self.browser
        if browser is not None or open_browser is not None:
            browser_config = replace(
                self.browser,
                name=browser if browser is not None else self.browser.name,
                open=open_browser if open_browser is not None else self.browser.open,
            )

        return replace(self, server=server, live_reload=live_reload, browser=browser_config)
