"""Per-process session state.

A Session is built once at startup from the target file and never changes.
"""

from dataclasses import dataclass
from pathlib import Path

from mdview.live.hub import NotificationHub


@dataclass(frozen=True)
class Session:
    """The document being served and where its change events go."""

    file_path: Path
    root_dir: Path
    hub: NotificationHub
    refresh_interval: int | None = None

    @classmethod
    def create(cls, file_path: Path, *, refresh_interval: int | None = None) -> "Session":
        """Create a session for a Markdown file.

        Args:
            file_path: File to serve (relative or absolute)
            refresh_interval: Reload pages on a timer every N seconds instead of
                              pushing change notifications

        Returns:
            Session with canonical paths and a fresh hub

        Raises:
            FileNotFoundError: If file_path doesn't exist or isn't a file
        """
        resolved = file_path.resolve()
        if not resolved.is_file():
            raise FileNotFoundError(f"File '{file_path}' does not exist")

        return cls(
            file_path=resolved,
            root_dir=resolved.parent,
            hub=NotificationHub(),
            refresh_interval=refresh_interval,
        )

    @property
    def live_reload_enabled(self) -> bool:
        """Whether changes are pushed over WebSocket rather than polled."""
        return self.refresh_interval is None
