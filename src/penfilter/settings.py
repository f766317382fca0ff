"""Configuration of the filter: formulas per channel and the reset timeout."""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, MutableMapping

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore[no-redef]

from .channels import ChannelFormulas

__all__ = ["FilterConfig", "FilterConfigError", "FilterSettings", "read_project_table"]

logger = logging.getLogger(__name__)

_FORMULA_KEYS = ("x", "y", "p", "tx", "ty")
_TIMEOUT_KEY = "reset_timeout_ms"
_SETTING_KEYS = frozenset(_FORMULA_KEYS + (_TIMEOUT_KEY,))
_TOOL_TABLE = "penfilter"


class FilterConfigError(RuntimeError):
    """Raised when the filter configuration is invalid."""


def read_project_table(path: str | Path) -> tuple[Dict[str, Any], Path] | None:
    """Return the ``[tool.penfilter]`` table of a ``pyproject.toml`` and its path.

    ``path`` may be the file itself or the directory containing it.  ``None``
    is returned when the file or the table is missing.
    """

    pyproject = Path(path).expanduser()
    if pyproject.is_dir():
        pyproject = pyproject / "pyproject.toml"
    if not pyproject.is_file():
        return None

    try:
        with pyproject.open("rb") as stream:
            document = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError) as exc:  # type: ignore[attr-defined]
        raise FilterConfigError(f"Unable to read '{pyproject}'") from exc

    tool = document.get("tool")
    table = tool.get(_TOOL_TABLE) if isinstance(tool, dict) else None
    if not isinstance(table, dict):
        return None
    return table, pyproject.resolve()


@dataclass(frozen=True, slots=True)
class FilterSettings:
    """Values the host hands to the stage on every reconfiguration."""

    x: str = "x"
    y: str = "y"
    p: str = "p"
    tx: str = "tx"
    ty: str = "ty"
    reset_timeout_ms: int = -1
    formulas: ChannelFormulas = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for key in _FORMULA_KEYS:
            if not isinstance(getattr(self, key), str):
                raise FilterConfigError(f"'{key}' formula must be a string")
        timeout = self.reset_timeout_ms
        if isinstance(timeout, bool) or not isinstance(timeout, int):
            raise FilterConfigError(f"'{_TIMEOUT_KEY}' must be an integer number of milliseconds")
        object.__setattr__(
            self,
            "formulas",
            ChannelFormulas(x=self.x, y=self.y, p=self.p, tx=self.tx, ty=self.ty),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, context: str = "[filter]") -> "FilterSettings":
        """Validate ``data`` and build settings; missing keys keep their defaults."""

        unknown = set(data) - _SETTING_KEYS
        if unknown:
            raise FilterConfigError(
                f"'{context}' contains unknown keys: " + ", ".join(sorted(unknown))
            )
        try:
            return cls(**dict(data))
        except FilterConfigError as exc:
            raise FilterConfigError(f"'{context}': {exc}") from None

    def as_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, key) for key in _FORMULA_KEYS + (_TIMEOUT_KEY,)}


@dataclass(frozen=True)
class _ProfileData:
    """Internal representation of a profile before inheritance is resolved."""

    settings: Dict[str, Any]
    extends: tuple[str, ...] = ()


class FilterConfig:
    """Load, validate and expose filter settings with optional profiles.

    The file layout is::

        [filter]
        x = "x"
        reset_timeout_ms = -1

        [profiles.smooth]
        x = "(x + cx) / 2"

        [profiles.smoother]
        extends = "smooth"
        y = "(y + cy) / 2"
    """

    def __init__(
        self,
        path: str | Path,
        *,
        default_profile: str | None = None,
        _injected_data: Mapping[str, Any] | None = None,
    ) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()
        self._base: Dict[str, Any] = {}
        self._profiles: Dict[str, Dict[str, Any]] = {}
        self._active_profile: str | None = None
        self._injected_data = _injected_data
        self._data_loader: Callable[[], Dict[str, Any]] = self._read_file
        if _injected_data is not None:
            self._data_loader = self._load_injected_data
            if self._path == Path("<memory>"):
                self._source_description = "in-memory mapping"
            else:
                self._source_description = f"in-memory mapping ({self._path})"
        else:
            self._source_description = f"'{self._path}'"

        self.reload_config(initial=True)

        if default_profile is not None:
            self.set_profile(default_profile)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        *,
        default_profile: str | None = None,
        source: str | Path | None = None,
    ) -> "FilterConfig":
        """Construct a configuration from ``data`` shaped like the TOML file."""

        source_path = Path(source) if source is not None else Path("<memory>")
        return cls(source_path, default_profile=default_profile, _injected_data=data)

    @classmethod
    def from_project(
        cls,
        pyproject_path: Path | None = None,
        *,
        default_profile: str | None = None,
    ) -> "FilterConfig":
        """Construct a configuration from ``[tool.penfilter]`` in ``pyproject.toml``."""

        loaded = read_project_table(pyproject_path if pyproject_path is not None else Path.cwd())
        if loaded is None or not isinstance(loaded[0].get("filter"), dict):
            raise FilterConfigError(
                "Unable to locate '[tool.penfilter.filter]' in project configuration"
            )

        table, source_path = loaded
        mapping = {"filter": table["filter"], "profiles": table.get("profiles", {})}
        return cls.from_mapping(mapping, default_profile=default_profile, source=source_path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def path(self) -> Path:
        return self._path

    @property
    def active_profile(self) -> str | None:
        with self._lock:
            return self._active_profile

    @property
    def available_profiles(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._profiles)

    def set_profile(self, profile_name: str | None) -> None:
        """Activate ``profile_name`` or clear the active profile when ``None``."""

        with self._lock:
            if profile_name is None:
                if self._active_profile is not None:
                    logger.info("Deactivated filter profile '%s'", self._active_profile)
                self._active_profile = None
                return

            if profile_name not in self._profiles:
                logger.error("Attempted to activate unknown filter profile '%s'", profile_name)
                raise KeyError(f"Unknown filter profile '{profile_name}'")

            self._active_profile = profile_name
            logger.info("Activated filter profile '%s'", profile_name)

    def reload_config(self, *, initial: bool = False) -> None:
        """Reload the configuration applying validation atomically.

        A failed reload keeps the previous configuration, except on the
        initial load where the error propagates.
        """

        with self._lock:
            try:
                raw = self._data_loader()
                base, profiles = self._validate(raw)
            except FilterConfigError:
                logger.exception(
                    "Failed to parse filter configuration from %s", self._source_description
                )
                if initial:
                    raise
                return

            self._base = base
            self._profiles = profiles

            if self._active_profile and self._active_profile not in self._profiles:
                logger.warning(
                    "Active profile '%s' no longer present after reload; clearing.",
                    self._active_profile,
                )
                self._active_profile = None

            logger.info("Reloaded filter configuration from %s", self._source_description)

    def settings(self) -> FilterSettings:
        """Return the settings for the active profile (or the base table)."""

        with self._lock:
            merged = dict(self._base)
            if self._active_profile is not None:
                merged.update(self._profiles[self._active_profile])
            context = (
                f"[profiles.{self._active_profile}]" if self._active_profile else "[filter]"
            )
            return FilterSettings.from_mapping(merged, context=context)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _read_file(self) -> Dict[str, Any]:
        if not self._path.exists():
            raise FilterConfigError(f"Configuration file '{self._path}' does not exist")

        try:
            with self._path.open("rb") as stream:
                return tomllib.load(stream)
        except (OSError, tomllib.TOMLDecodeError) as exc:  # type: ignore[attr-defined]
            raise FilterConfigError("Unable to load filter configuration") from exc

    def _load_injected_data(self) -> Dict[str, Any]:
        if not isinstance(self._injected_data, Mapping):
            raise FilterConfigError("Injected configuration must be a mapping")
        return copy.deepcopy(dict(self._injected_data))

    def _validate(
        self, data: Mapping[str, Any]
    ) -> tuple[Dict[str, Any], Dict[str, Dict[str, Any]]]:
        filter_section = data.get("filter", {})
        if not isinstance(filter_section, MutableMapping):
            raise FilterConfigError("'[filter]' must be a table")
        base = dict(filter_section)
        FilterSettings.from_mapping(base)

        profiles = self._parse_profiles(data.get("profiles"))
        resolved = self._resolve_profile_inheritance(profiles)
        for name, overrides in resolved.items():
            FilterSettings.from_mapping({**base, **overrides}, context=f"[profiles.{name}]")
        return base, resolved

    def _parse_profiles(self, profiles_section: Any) -> Dict[str, _ProfileData]:
        if profiles_section is None:
            return {}

        if not isinstance(profiles_section, MutableMapping):
            raise FilterConfigError("'[profiles]' must be a table of profile definitions")

        profiles: Dict[str, _ProfileData] = {}
        for profile_name, profile_data in profiles_section.items():
            if not isinstance(profile_data, MutableMapping):
                raise FilterConfigError(f"Profile '{profile_name}' must be represented as a table")

            extends_field = profile_data.get("extends")
            if extends_field is None:
                extends: tuple[str, ...] = ()
            elif isinstance(extends_field, str):
                extends = (extends_field,)
            elif isinstance(extends_field, list) and all(
                isinstance(item, str) for item in extends_field
            ):
                extends = tuple(extends_field)
            else:
                raise FilterConfigError(
                    f"'[profiles.{profile_name}].extends' must be a string or an array of profile names"
                )

            settings = {key: value for key, value in profile_data.items() if key != "extends"}
            profiles[str(profile_name)] = _ProfileData(settings=settings, extends=extends)

        return profiles

    def _resolve_profile_inheritance(
        self, profiles: Dict[str, _ProfileData]
    ) -> Dict[str, Dict[str, Any]]:
        """Flatten ``extends`` chains; later parents and the profile itself win."""

        resolved: Dict[str, Dict[str, Any]] = {}
        resolving: set[str] = set()

        def resolve(profile_name: str) -> Dict[str, Any]:
            if profile_name in resolved:
                return resolved[profile_name]

            if profile_name in resolving:
                raise FilterConfigError(
                    f"Circular inheritance detected while resolving profile '{profile_name}'"
                )

            resolving.add(profile_name)
            profile = profiles[profile_name]
            merged: Dict[str, Any] = {}
            for parent_name in profile.extends:
                if parent_name not in profiles:
                    raise FilterConfigError(
                        f"Profile '{profile_name}' extends unknown profile '{parent_name}'"
                    )
                merged.update(resolve(parent_name))
            merged.update(profile.settings)
            resolving.remove(profile_name)

            resolved[profile_name] = merged
            return merged

        for name in profiles:
            resolve(name)

        return resolved
