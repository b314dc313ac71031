"""Plugin options — the validated configuration surface handed to wrangler.

Raw option mappings (from a JSON file or a host's plugin config) are
validated once, here, into a frozen ``PluginOptions``. The shape of each
value is decided at this boundary as a tagged ``OptionValue`` so the
argument translator never has to re-inspect runtime types.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import Field, dataclass, field, fields
from datetime import UTC, date, datetime
from typing import Any, TypeAlias

from pagesbridge.errors import ConfigurationError

LOG_LEVELS = ("debug", "info", "log", "warn", "error", "none")

# Levels at which the bridge announces each proxied route
VERBOSE_LOG_LEVELS = frozenset({"debug", "info", "log"})

# Keys a host may inject into every plugin's options (Gatsby adds "plugins")
_IGNORED_KEYS = frozenset({"plugins"})


# -- Tagged option values ----------------------------------------------------


@dataclass(frozen=True, slots=True)
class Flag:
    """A boolean switch: ``--name`` when enabled, nothing otherwise."""

    enabled: bool


@dataclass(frozen=True, slots=True)
class Text:
    """A scalar: ``--name=value``, or nothing when empty."""

    value: str


@dataclass(frozen=True, slots=True)
class TextList:
    """Repeated scalars: one ``--name=item`` per item."""

    items: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class TextMap:
    """Key/value pairs: one ``--name=key=value`` per entry."""

    entries: tuple[tuple[str, str], ...]


OptionValue: TypeAlias = Flag | Text | TextList | TextMap


def coerce_option(value: object) -> OptionValue:
    """Decide the tagged variant for a raw option value.

    ``bool`` must be checked before other scalars (``bool`` is an ``int``).
    """
    match value:
        case Flag() | Text() | TextList() | TextMap():
            return value
        case bool():
            return Flag(value)
        case str():
            return Text(value)
        case datetime():
            return Text(value.date().isoformat())
        case date():
            return Text(value.isoformat())
        case Mapping():
            return TextMap(tuple((str(k), str(v)) for k, v in value.items()))
        case list() | tuple():
            return TextList(tuple(str(item) for item in value))
        case _:
            return Text(str(value) if value else "")


# -- Validation helpers ------------------------------------------------------


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _today() -> str:
    return datetime.now(UTC).date().isoformat()


def _string_map(key: str, value: Any) -> tuple[tuple[str, str], ...]:
    if not isinstance(value, Mapping):
        msg = f"{key!r} must be a mapping of strings to strings, got {type(value).__name__}"
        raise ConfigurationError(msg)
    for k, v in value.items():
        if not isinstance(k, str) or not isinstance(v, str):
            msg = f"{key!r} must map strings to strings, got {k!r}: {v!r}"
            raise ConfigurationError(msg)
    return tuple(value.items())


def _string_list(key: str, value: Any, *, allow_single: bool) -> tuple[str, ...]:
    if isinstance(value, str):
        if allow_single:
            return (value,)
        msg = f"{key!r} must be a list of strings, got a single string"
        raise ConfigurationError(msg)
    if not isinstance(value, Sequence) or not all(isinstance(item, str) for item in value):
        msg = f"{key!r} must be a list of strings"
        raise ConfigurationError(msg)
    return tuple(value)


def _compatibility_date(key: str, value: Any) -> str:
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value).date()
        except ValueError as exc:
            msg = f"{key!r} must be an ISO 8601 date, got {value!r}"
            raise ConfigurationError(msg) from exc
    else:
        msg = f"{key!r} must be an ISO 8601 date, got {type(value).__name__}"
        raise ConfigurationError(msg)

    if parsed > datetime.now(UTC).date():
        msg = f"{key!r} must not be a future date"
        raise ConfigurationError(msg)
    return parsed.isoformat()


def _log_level(key: str, value: Any) -> str:
    if value not in LOG_LEVELS:
        msg = f"{key!r} must be one of {', '.join(LOG_LEVELS)}, got {value!r}"
        raise ConfigurationError(msg)
    return value


# -- PluginOptions -----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PluginOptions:
    """Validated wrangler options. Immutable after creation.

    Each field carries the wrangler-facing option name in its metadata
    (camelCase, later hyphenated by the argument translator)::

        options = PluginOptions.from_mapping({"kv": "CACHE", "logLevel": "warn"})
        options.to_options()
        # (("binding", TextMap(())), ("kv", TextList(("CACHE",))), ...)
    """

    binding: tuple[tuple[str, str], ...] = field(default=(), metadata={"option": "binding"})
    kv: tuple[str, ...] = field(default=(), metadata={"option": "kv"})
    r2: tuple[str, ...] = field(default=(), metadata={"option": "r2"})
    d1: tuple[str, ...] = field(default=(), metadata={"option": "d1"})
    durable_objects: tuple[str, ...] = field(default=(), metadata={"option": "do"})
    ai: tuple[str, ...] = field(default=(), metadata={"option": "ai"})
    compatibility_flag: tuple[str, ...] = ()
    compatibility_date: str = field(default_factory=_today)
    log_level: str = "log"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PluginOptions:
        """Validate a raw option mapping.

        Accepts the camelCase option names (``logLevel``) and their
        snake_case equivalents (``log_level``).

        Raises:
            ConfigurationError: On unknown keys or values of the wrong shape.
        """
        lookup = {}
        for f in fields(cls):
            lookup[option_name(f)] = f
            lookup[f.name] = f

        values: dict[str, Any] = {}
        for key, value in raw.items():
            if key in _IGNORED_KEYS:
                continue
            f = lookup.get(key)
            if f is None:
                msg = f"Unknown plugin option {key!r}"
                raise ConfigurationError(msg)

            match f.name:
                case "binding":
                    values[f.name] = _string_map(key, value)
                case "compatibility_flag":
                    values[f.name] = _string_list(key, value, allow_single=False)
                case "compatibility_date":
                    values[f.name] = _compatibility_date(key, value)
                case "log_level":
                    values[f.name] = _log_level(key, value)
                case _:
                    values[f.name] = _string_list(key, value, allow_single=True)

        return cls(**values)

    @property
    def is_verbose(self) -> bool:
        """True when proxied routes should be announced in the log."""
        return self.log_level in VERBOSE_LOG_LEVELS

    def to_options(self) -> tuple[tuple[str, OptionValue], ...]:
        """Return ``(option_name, OptionValue)`` pairs in declaration order."""
        pairs: list[tuple[str, OptionValue]] = []
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "binding":
                value = dict(value)
            pairs.append((option_name(f), coerce_option(value)))
        return tuple(pairs)


def option_name(f: Field[Any]) -> str:
    """The wrangler-facing (camelCase) name of a ``PluginOptions`` field."""
    return f.metadata.get("option") or _camel(f.name)
