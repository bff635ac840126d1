"""Extension whitelist used to filter candidate image URLs."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .config_constants import DEFAULT_EXTENSIONS


class ExtensionWhitelist:
    """Case-insensitive filename suffix filter.

    Suffixes are compared with a plain ``endswith`` check against the lowercased
    filename, so ``IMAGE.JPG`` matches ``.jpg`` while ``photo.jpg.png`` does not.
    """

    def __init__(self, extensions: Optional[Iterable[str]] = None) -> None:
        if extensions is None:
            extensions = DEFAULT_EXTENSIONS
        self._extensions: Tuple[str, ...] = tuple(ext.lower() for ext in extensions)

    @property
    def extensions(self) -> Tuple[str, ...]:
        return self._extensions

    def is_whitelisted(self, filename: str) -> bool:
        """Return True when the filename ends with one of the configured suffixes."""
        lowered = filename.lower()
        return any(lowered.endswith(ext) for ext in self._extensions)

    def __repr__(self) -> str:
        return f"ExtensionWhitelist({list(self._extensions)!r})"
