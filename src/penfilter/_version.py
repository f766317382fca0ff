"""Version of the installed ``penfilter`` distribution."""

from __future__ import annotations

import re
from importlib import metadata
from pathlib import Path

from packaging.version import InvalidVersion, Version

__all__ = ["__version__"]

_CHANGELOG = Path(__file__).resolve().parents[2] / "CHANGELOG.md"
_RELEASE_HEADING = re.compile(r"^## v(\d+\.\d+\.\d+)\b", re.MULTILINE)


def _read_version() -> str:
    try:
        return metadata.version("penfilter")
    except metadata.PackageNotFoundError:
        pass
    # Source checkout without metadata: the topmost changelog heading wins.
    try:
        text = _CHANGELOG.read_text(encoding="utf-8")
    except OSError:
        text = ""
    match = _RELEASE_HEADING.search(text)
    if match is None:
        raise RuntimeError("penfilter is not installed and CHANGELOG.md lists no release")
    return match.group(1)


def _checked(raw: str) -> str:
    try:
        release = Version(raw).release
    except InvalidVersion as exc:
        raise RuntimeError(f"penfilter version {raw!r} is not a valid version") from exc
    if len(release) != 3:
        raise RuntimeError(f"penfilter version {raw!r} is not MAJOR.MINOR.PATCH")
    return raw


__version__ = _checked(_read_version())
