"""Wire transformer that keeps rich values intact across JSON.

A value is sent as::

    {"json": <plain JSON>, "meta": {"values": {"<dot.path>": ["Date"]}}}

`meta` lists the paths whose JSON form must be revived on the other side
(datetimes travel as ISO strings, sets as lists). It is omitted when there is
nothing to revive. The format matches what superjson-based clients expect.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Tuple

from storefront.rpc.errors import ValidationFailed
from storefront.util.time import parse_iso


def _escape(key: Any) -> str:
    return str(key).replace("\\", "\\\\").replace(".", "\\.")


def _split_path(path: str) -> List[str]:
    parts: List[str] = []
    buf: List[str] = []
    i = 0
    while i < len(path):
        ch = path[i]
        if ch == "\\" and i + 1 < len(path):
            buf.append(path[i + 1])
            i += 2
            continue
        if ch == ".":
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
        i += 1
    parts.append("".join(buf))
    return parts


def _datetime_json(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    # Millisecond precision, like JavaScript's Date.prototype.toISOString()
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _walk(value: Any, path: Tuple[str, ...], annotations: Dict[str, List[str]]) -> Any:
    if isinstance(value, datetime):
        annotations[".".join(path)] = ["Date"]
        return _datetime_json(value)
    if isinstance(value, date):
        annotations[".".join(path)] = ["Date"]
        return _datetime_json(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, (set, frozenset)):
        annotations[".".join(path)] = ["set"]
        return [_walk(v, path + (str(i),), annotations) for i, v in enumerate(sorted(value, key=repr))]
    if isinstance(value, dict):
        return {str(k): _walk(v, path + (_escape(k),), annotations) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_walk(v, path + (str(i),), annotations) for i, v in enumerate(value)]
    return value


def serialize(value: Any) -> Dict[str, Any]:
    annotations: Dict[str, List[str]] = {}
    out: Dict[str, Any] = {"json": _walk(value, (), annotations)}
    if annotations:
        out["meta"] = {"values": annotations}
    return out


def _revive(kind: str, raw: Any) -> Any:
    if kind == "Date":
        return parse_iso(raw)
    if kind == "set":
        return set(raw)
    # Unknown annotation: keep the plain JSON value.
    return raw


def deserialize(payload: Any) -> Any:
    """Inverse of `serialize`.

    Anything that is not a {"json": ...} envelope is returned unchanged, so
    plain JSON inputs are accepted as well.
    Annotations that do not match the value raise ValidationFailed.
    """
    if not is_envelope(payload):
        return payload

    value = payload.get("json")
    try:
        return _revive_paths(value, payload.get("meta") or {})
    except (KeyError, IndexError, TypeError, ValueError, AttributeError):
        raise ValidationFailed("Invalid input envelope") from None


def _revive_paths(value: Any, meta: Dict[str, Any]) -> Any:
    annotations = meta.get("values") or {}
    if not annotations:
        return value

    # Deepest paths first so a parent set is revived after its children.
    for path, kinds in sorted(annotations.items(), key=lambda kv: -len(_split_path(kv[0]))):
        if isinstance(kinds, str):
            kinds = [kinds]
        kind = kinds[0] if kinds else ""
        if path == "":
            value = _revive(kind, value)
            continue
        parts = _split_path(path)
        parent = value
        for part in parts[:-1]:
            parent = parent[int(part)] if isinstance(parent, list) else parent[part]
        last = parts[-1]
        if isinstance(parent, list):
            parent[int(last)] = _revive(kind, parent[int(last)])
        else:
            parent[last] = _revive(kind, parent[last])
    return value


def is_envelope(payload: Any) -> bool:
    return isinstance(payload, dict) and "json" in payload and set(payload) <= {"json", "meta"}
