"""Opening the served page in a browser."""

import logging
import subprocess
import webbrowser

logger = logging.getLogger(__name__)

BROWSER_COMMANDS: dict[str, list[str]] = {
    "chrome": ["google-chrome", "--new-window"],
    "chrome-incognito": ["google-chrome", "--new-window", "--incognito"],
    "firefox": ["firefox", "--new-window"],
    "firefox-private": ["firefox", "--private-window"],
    "chromium": ["chromium", "--new-window"],
    "chromium-incognito": ["chromium", "--new-window", "--incognito"],
}


def open_browser(url: str, browser: str = "default") -> bool:
    """Open a URL, falling back to the system default browser.

    Args:
        url: URL to open
        browser: "default" or a key of BROWSER_COMMANDS

    Returns:
        True if a browser was launched
    """
    command = BROWSER_COMMANDS.get(browser)
    if command is not None:
        try:
            subprocess.Popen(
                [*command, url],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            return True
        except OSError as e:
            logger.warning(f"Failed to open {browser}, falling back to default browser: {e}")

    return webbrowser.open(url)
