from __future__ import annotations

from dataclasses import dataclass

SEPARATOR = "/"


def strip_slashes(value: str) -> str:
    return value.strip(SEPARATOR)


def directory_key(path: str) -> str:
    """Return ``path`` with exactly one trailing separator."""

    return path.rstrip(SEPARATOR) + SEPARATOR


def is_directory_key(key: str) -> bool:
    return key.endswith(SEPARATOR)


def normalize_path_prefix(prefix: str | None) -> str:
    """Normalize an adapter path prefix.

    - Surrounding whitespace and separators are ignored: ``/a/b/`` and ``a/b`` behave the same.
    - A non-empty prefix always ends with a single separator.
    - An empty prefix stays empty (keys are used verbatim).
    """

    value = strip_slashes((prefix or "").strip())
    if not value:
        return ""
    return value + SEPARATOR


@dataclass(frozen=True)
class PathPrefixer:
    """Apply and remove the adapter's key prefix.

    ``apply_prefix(remove_prefix(key)) == key`` holds for every key that carries the prefix.
    """

    prefix: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "prefix", normalize_path_prefix(self.prefix))

    def apply_prefix(self, path: str) -> str:
        return self.prefix + (path or "").lstrip(SEPARATOR)

    def remove_prefix(self, key: str) -> str:
        if self.prefix and key.startswith(self.prefix):
            return key[len(self.prefix) :]
        return key

    def directory_prefix(self, directory: str) -> str:
        """Key prefix for listing ``directory``; the bare prefix for the root."""

        if not strip_slashes(directory or ""):
            return self.prefix
        return directory_key(self.apply_prefix(directory))
