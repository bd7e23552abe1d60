"""Variable resolver: substitutes ``{{path}}`` placeholders inside nested config.

Strings, lists, tuples and dicts are walked recursively; every other value is
returned unchanged. A placeholder whose path cannot be resolved is left in the
output exactly as written. That literal ``{{...}}`` is the signal that a path
was wrong, so a miss is never an error and never becomes an empty string.

Paths are dot-separated. An all-digit segment indexes into a list, any other
segment is a key lookup into a mapping::

    resolve("Hi {{trigger.name}}", {"trigger": {"name": "Ada"}})   # "Hi Ada"
    resolve("{{trigger.tags.1}}", {"trigger": {"tags": ["x", "y"]}})  # "y"
    resolve("{{trigger.missing}}", {"trigger": {}})   # "{{trigger.missing}}"

Transform functions can wrap a path: ``{{upper(trigger.name)}}``,
``{{default(trigger.nickname, "friend")}}``, ``{{join(trigger.tags, " | ")}}``.
Each transform is total: bad input yields a best-effort string or the
original value, never an exception.
"""

import json
import logging
import re
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterator

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{([^}]+)\}\}")
_CALL_RE = re.compile(r"^([A-Za-z_]\w*)\((.*)\)$", re.DOTALL)
_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
_DATE_TOKEN_RE = re.compile(r"YYYY|MM|DD|HH|mm|ss")
_DATE_TOKENS = {"YYYY": "%Y", "MM": "%m", "DD": "%d", "HH": "%H", "mm": "%M", "ss": "%S"}


class _Missing:
    """Sentinel for a path that does not resolve."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


# ── Public API ─────────────────────────────────────────────────────────

def resolve(value: Any, scope: Mapping) -> Any:
    """Return a copy of *value* with every resolvable placeholder substituted.

    Args:
        value: str, list, tuple, dict, or any scalar.
        scope: Mapping the placeholder paths are looked up in.

    Returns:
        Same shape as *value*. Dict key order and list order are preserved;
        the input is never mutated.
    """
    if isinstance(value, str):
        return resolve_string(value, scope)
    if isinstance(value, dict):
        return {k: resolve(v, scope) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve(item, scope) for item in value]
    if isinstance(value, tuple):
        return tuple(resolve(item, scope) for item in value)
    return value


def resolve_string(text: str, scope: Mapping) -> str:
    """Substitute every non-overlapping ``{{...}}`` token in *text*."""

    def _substitute(match: re.Match) -> str:
        expr = match.group(1).strip()
        try:
            value = _evaluate(expr, scope)
        except Exception as exc:
            logger.warning("[Resolver] Failed to resolve variable %r: %s", expr, exc)
            return match.group(0)
        if value is MISSING or value is None:
            return match.group(0)
        return to_text(value)

    return PLACEHOLDER_RE.sub(_substitute, text)


def lookup_path(scope: Any, path: str) -> Any:
    """Walk a dot-separated *path* through *scope*. Returns MISSING on any miss."""
    current = scope
    for segment in path.strip().split("."):
        if current is None:
            return MISSING
        if segment.isdigit():
            if not isinstance(current, (list, tuple)):
                return MISSING
            index = int(segment)
            if index >= len(current):
                return MISSING
            current = current[index]
        elif isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        else:
            return MISSING
    return current


def iter_placeholders(value: Any) -> Iterator[str]:
    """Yield every placeholder token still present anywhere in *value*."""
    if isinstance(value, str):
        for match in PLACEHOLDER_RE.finditer(value):
            yield match.group(0)
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_placeholders(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_placeholders(item)


def to_text(value: Any) -> str:
    """String form used when a resolved value is spliced into a string."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str, ensure_ascii=False)
    return str(value)


# ── Expression evaluation ──────────────────────────────────────────────

def _evaluate(expr: str, scope: Mapping) -> Any:
    call = _CALL_RE.match(expr)
    if call and call.group(1) in TRANSFORMS:
        fn = TRANSFORMS[call.group(1)]
        args = [_eval_arg(token, scope) for token in _split_args(call.group(2))]
        return fn(*(args or [None]))
    return lookup_path(scope, expr)


def _split_args(raw: str) -> list[str]:
    """Split on commas that are not inside single or double quotes."""
    args: list[str] = []
    buf: list[str] = []
    quote = None
    for ch in raw:
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
            buf.append(ch)
        elif ch == ",":
            args.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
    tail = "".join(buf).strip()
    if tail or args:
        args.append(tail)
    return args


def _eval_arg(token: str, scope: Mapping) -> Any:
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return token[1:-1]
    if _NUMBER_RE.match(token):
        return float(token) if "." in token else int(token)
    if token in ("true", "false"):
        return token == "true"
    if token in ("", "null"):
        return None
    value = lookup_path(scope, token)
    return None if value is MISSING else value


# ── Transforms ─────────────────────────────────────────────────────────

def _coerce_datetime(value: Any):
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            # epoch milliseconds, like the timestamps webhook senders post
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        if isinstance(value, str) and value.strip():
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (ValueError, OverflowError, OSError):
        return None
    return None


def _format_date(value: Any, fmt: Any = "YYYY-MM-DD", *_: Any) -> Any:
    parsed = _coerce_datetime(value)
    if parsed is None:
        return value
    pattern = _DATE_TOKEN_RE.sub(lambda m: _DATE_TOKENS[m.group(0)], str(fmt or "YYYY-MM-DD"))
    return parsed.strftime(pattern)


def _upper(value: Any, *_: Any) -> Any:
    if value is None:
        return value
    return value.upper() if isinstance(value, str) else to_text(value)


def _lower(value: Any, *_: Any) -> Any:
    if value is None:
        return value
    return value.lower() if isinstance(value, str) else to_text(value)


def _default(value: Any, fallback: Any = None, *_: Any) -> Any:
    return fallback if value is None or value == "" else value


def _join(value: Any, separator: Any = ", ", *_: Any) -> str:
    if isinstance(value, (list, tuple)):
        sep = ", " if separator is None else to_text(separator)
        return sep.join("" if item is None else to_text(item) for item in value)
    return "" if value is None or value == "" else to_text(value)


def _first(value: Any, *_: Any) -> Any:
    if isinstance(value, (list, tuple)) and value:
        return value[0]
    return value


def _last(value: Any, *_: Any) -> Any:
    if isinstance(value, (list, tuple)) and value:
        return value[-1]
    return value


def _count(value: Any, *_: Any) -> int:
    return len(value) if isinstance(value, (list, tuple)) else 0


TRANSFORMS: dict[str, Callable[..., Any]] = {
    "formatDate": _format_date,
    "upper": _upper,
    "lower": _lower,
    "default": _default,
    "join": _join,
    "first": _first,
    "last": _last,
    "count": _count,
}
