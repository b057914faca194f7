"""Structured output recovery for free-form generation text.

Turns whatever the LLM returned into normalized records without ever
raising.  The layers, tried in order:

1. **Fenced block** -- if the text contains a markdown code fence, its
   content is tried first, then the whole text.
2. **Greedy slice** -- first ``[`` to last ``]`` (array shape) or first
   ``{`` to last ``}`` (object shape), parsed with strict :func:`json.loads`.
3. **Balanced scan** -- if the greedy slice does not parse (trailing prose
   with brackets, two JSON blocks, ...), each opener is scanned forward to
   its matching closer, honouring string literals.
4. **Line scan** -- if no block parses, ``"key": value`` pairs are picked
   up anywhere on each line and assembled into records, each one opened
   by a ``"name"`` marker.

Parsed records are normalized against a :class:`RecordSchema`: a missing id
gets a fresh ``uuid4`` hex token, typed fields are coerced or defaulted,
list fields that are not lists become ``[]``.  Every default applied to a
field the model should have produced is reported as a warning and turns
the status into ``PARTIALLY_PARSED``.
"""

from __future__ import annotations

import json
import re
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

import structlog

from src.models.recovery import RecoveryResult, RecoveryStatus

logger = structlog.get_logger(logger_name=__name__)

Shape = Literal["array", "object"]

_JSON_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)\n?\s*```", re.DOTALL)
# "key": value   /   'key': value
_FIELD_KEY_RE = re.compile(r"""["']([A-Za-z_][\w\s-]*?)["']\s*[:：]\s*""")
_QUOTED_VALUE_RE = re.compile(r""""(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'""")
_BARE_VALUE_END_RE = re.compile(r"[,}\]]")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")

# Bounds the number of openers the balanced scan will try.
_MAX_SCAN_OPENERS = 50


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class FieldKind(str, Enum):  # noqa: UP042
    STRING = "string"
    INTEGER = "integer"
    STRING_LIST = "string_list"


@dataclass(frozen=True)
class FieldSpec:
    """Type and default for one record field.

    ``required`` fields produce a warning when they have to be defaulted;
    optional ones are filled silently.  Integers are clamped into
    ``[minimum, maximum]`` when bounds are given.
    """

    kind: FieldKind
    default: Any = None
    required: bool = True
    minimum: int | None = None
    maximum: int | None = None

    def default_value(self) -> Any:
        if self.kind is FieldKind.STRING_LIST:
            return list(self.default or [])
        return self.default


@dataclass(frozen=True)
class RecordSchema:
    fields: Mapping[str, FieldSpec]
    id_field: str = "id"


@dataclass(frozen=True)
class ObjectSchema:
    """Schema for a single object holding record collections and scalars."""

    collections: Mapping[str, RecordSchema] = field(default_factory=dict)
    scalars: Mapping[str, FieldSpec] = field(default_factory=dict)


_MISSING = object()


# ---------------------------------------------------------------------------
# Recovery
# ---------------------------------------------------------------------------

class StructuredOutputRecovery:
    """Best-effort conversion of generation text into records.

    Stateless; a single instance can be shared by every stage.
    """

    def recover(
        self,
        text: str | None,
        shape: Shape,
        schema: RecordSchema | ObjectSchema | None = None,
    ) -> RecoveryResult:
        """Recover an array of records or a single object from *text*.

        Never raises.  Returns ``RecoveryResult.empty()`` when nothing
        usable was found.
        """
        try:
            return self._recover(text, shape, schema)
        except Exception as exc:  # noqa: BLE001
            logger.error("output_recovery_failed", shape=shape, error=str(exc))
            return RecoveryResult.empty(f"recovery failed: {exc}")

    def _recover(
        self,
        text: str | None,
        shape: Shape,
        schema: RecordSchema | ObjectSchema | None,
    ) -> RecoveryResult:
        if not isinstance(text, str) or not text.strip():
            return RecoveryResult.empty("empty generation output")

        parsed = extract_json(text, shape)
        warnings: list[str] = []

        if shape == "array":
            record_schema = schema if isinstance(schema, RecordSchema) else None
            if isinstance(parsed, list):
                records = _normalize_collection(parsed, record_schema, warnings, label="item")
                return _result(records, warnings)
            raw_records = _line_scan_records(text)
            if not raw_records:
                logger.debug("output_recovery_empty", shape=shape, text_length=len(text))
                return RecoveryResult.empty("no JSON array found in output")
            warnings.append("no parseable JSON array; recovered fields by line scan")
            records = _normalize_collection(raw_records, record_schema, warnings, label="item")
            logger.warning("output_recovery_fallback", shape=shape, records=len(records))
            if not records:
                return RecoveryResult.empty(*warnings)
            return RecoveryResult(
                status=RecoveryStatus.PARTIALLY_PARSED, records=records, warnings=warnings
            )

        object_schema = schema if isinstance(schema, ObjectSchema) else None
        if isinstance(parsed, dict):
            obj = _normalize_object(parsed, object_schema, warnings)
            return _result([obj], warnings)

        if object_schema is None:
            return RecoveryResult.empty("no JSON object found in output")
        scalars = _line_scan_scalars(text, set(object_schema.scalars))
        if not scalars:
            logger.debug("output_recovery_empty", shape=shape, text_length=len(text))
            return RecoveryResult.empty("no JSON object found in output")
        warnings.append("no parseable JSON object; recovered fields by line scan")
        obj = _normalize_object(scalars, object_schema, warnings)
        logger.warning("output_recovery_fallback", shape=shape, fields=sorted(scalars))
        return RecoveryResult(status=RecoveryStatus.PARTIALLY_PARSED, records=[obj], warnings=warnings)


def _result(records: list[dict[str, Any]], warnings: list[str]) -> RecoveryResult:
    if not records:
        return RecoveryResult.empty(*warnings)
    status = RecoveryStatus.PARTIALLY_PARSED if warnings else RecoveryStatus.PARSED
    return RecoveryResult(status=status, records=records, warnings=warnings)


# ---------------------------------------------------------------------------
# JSON block extraction
# ---------------------------------------------------------------------------

def extract_json(text: str, shape: Shape) -> Any:
    """Return the first JSON value of the requested shape found in *text*, or None."""
    opener, closer = ("[", "]") if shape == "array" else ("{", "}")
    expected = list if shape == "array" else dict

    candidates: list[str] = []
    fence_match = _JSON_FENCE_RE.search(text)
    if fence_match:
        candidates.append(fence_match.group(1))
    candidates.append(text)

    for candidate in candidates:
        start = candidate.find(opener)
        end = candidate.rfind(closer)
        if start == -1 or end <= start:
            continue
        value = _loads(candidate[start : end + 1])
        if _acceptable(value, expected):
            return value
        value = _balanced_scan(candidate, opener, closer, expected)
        if value is not None:
            return value
    return None


def _acceptable(value: Any, expected: type) -> bool:
    # A bare list of strings (e.g. a "steps" array) is not a record array.
    if expected is list:
        return isinstance(value, list) and (not value or any(isinstance(v, Mapping) for v in value))
    return isinstance(value, expected)


def _loads(fragment: str) -> Any:
    try:
        return json.loads(fragment)
    except (json.JSONDecodeError, ValueError):
        return None


def _balanced_scan(text: str, opener: str, closer: str, expected: type) -> Any:
    tried = 0
    start = text.find(opener)
    while start != -1 and tried < _MAX_SCAN_OPENERS:
        tried += 1
        end = _matching_close(text, start, opener, closer)
        if end != -1:
            value = _loads(text[start : end + 1])
            if _acceptable(value, expected):
                return value
        start = text.find(opener, start + 1)
    return None


def _matching_close(text: str, start: int, opener: str, closer: str) -> int:
    """Index of the closer matching ``text[start]``, skipping string literals."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return index
    return -1


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def _normalize_collection(
    items: list[Any],
    schema: RecordSchema | None,
    warnings: list[str],
    label: str,
) -> list[dict[str, Any]]:
    id_field = schema.id_field if schema else "id"
    seen_ids: set[str] = set()
    records: list[dict[str, Any]] = []
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            warnings.append(f"{label} {index}: not an object, dropped")
            continue
        record = dict(item)
        record[id_field] = _unique_id(record.get(id_field), seen_ids, warnings, f"{label} {index}")
        if schema is not None:
            for name, spec in schema.fields.items():
                record[name] = _coerce_field(record.get(name, _MISSING), spec, warnings, f"{label} {index}", name)
        records.append(record)
    return records


def _normalize_object(
    raw: Mapping[str, Any],
    schema: ObjectSchema | None,
    warnings: list[str],
) -> dict[str, Any]:
    obj = dict(raw)
    if schema is None:
        return obj
    for key, record_schema in schema.collections.items():
        value = obj.get(key, _MISSING)
        if value is _MISSING or value is None:
            warnings.append(f"'{key}' missing, defaulted to empty")
            obj[key] = []
        elif not isinstance(value, list):
            warnings.append(f"'{key}' is not a list, defaulted to empty")
            obj[key] = []
        else:
            obj[key] = _normalize_collection(value, record_schema, warnings, label=key)
    for name, spec in schema.scalars.items():
        obj[name] = _coerce_field(obj.get(name, _MISSING), spec, warnings, "object", name)
    return obj


def _unique_id(raw_id: Any, seen: set[str], warnings: list[str], where: str) -> str:
    if isinstance(raw_id, bool):
        raw_id = None
    candidate = str(raw_id).strip() if isinstance(raw_id, (str, int, float)) else ""
    if candidate and candidate in seen:
        warnings.append(f"{where}: duplicate id '{candidate}' replaced")
        candidate = ""
    if not candidate:
        candidate = uuid.uuid4().hex
    seen.add(candidate)
    return candidate


def _coerce_field(value: Any, spec: FieldSpec, warnings: list[str], where: str, name: str) -> Any:
    if value is _MISSING or value is None:
        if spec.required:
            warnings.append(f"{where}: '{name}' missing, defaulted")
        return spec.default_value()

    coerced = _coerce(value, spec)
    if coerced is _MISSING:
        warnings.append(f"{where}: '{name}' has invalid value {value!r}, defaulted")
        return spec.default_value()
    if spec.kind is FieldKind.INTEGER:
        clamped = coerced
        if spec.minimum is not None:
            clamped = max(spec.minimum, clamped)
        if spec.maximum is not None:
            clamped = min(spec.maximum, clamped)
        if clamped != coerced:
            warnings.append(f"{where}: '{name}' out of range ({coerced}), clamped to {clamped}")
        return clamped
    return coerced


def _coerce(value: Any, spec: FieldSpec) -> Any:
    if spec.kind is FieldKind.STRING:
        if isinstance(value, str):
            return value.strip()
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return _MISSING

    if spec.kind is FieldKind.INTEGER:
        if isinstance(value, bool):
            return _MISSING
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return round(value)
        if isinstance(value, str):
            # "30 minutes", "3/5"
            match = _NUMBER_RE.search(value)
            if match:
                return round(float(match.group(0)))
        return _MISSING

    if spec.kind is FieldKind.STRING_LIST:
        if not isinstance(value, (list, tuple)):
            return _MISSING
        items: list[str] = []
        for item in value:
            text = _stringify(item)
            if text:
                items.append(text)
        return items

    return value


def _stringify(item: Any) -> str:
    if item is None:
        return ""
    if isinstance(item, str):
        return item.strip()
    if isinstance(item, Mapping):
        # {"name": "gin", "amount": "45ml"} -> "gin 45ml"
        return " ".join(_stringify(v) for v in item.values() if _stringify(v))
    if isinstance(item, (list, tuple)):
        return " ".join(_stringify(v) for v in item if _stringify(v))
    return str(item).strip()


# ---------------------------------------------------------------------------
# Line-scan fallback
# ---------------------------------------------------------------------------

def _line_fields(line: str) -> list[tuple[str, str, bool]]:
    """Every ``"key": value`` pair in *line*, as ``(key, raw_value, opens_list)``.

    Pairs are found anywhere on the line, so a whole array printed on one
    line is covered.  A quoted value missing its closing quote (output cut
    off mid-string) runs to the end of the line.  ``opens_list`` marks a
    ``[`` whose ``]`` is not on this line.
    """
    fields: list[tuple[str, str, bool]] = []
    pos = 0
    while True:
        match = _FIELD_KEY_RE.search(line, pos)
        if match is None:
            return fields
        key = match.group(1).strip()
        start = match.end()
        head = line[start : start + 1]
        if head in ('"', "'"):
            quoted = _QUOTED_VALUE_RE.match(line, start)
            end = quoted.end() if quoted else len(line)
        elif head == "[":
            close = _matching_close(line, start, "[", "]")
            if close == -1:
                fields.append((key, line[start:].strip(), True))
                return fields
            end = close + 1
        elif head == "{":
            end = start + 1
        else:
            stop = _BARE_VALUE_END_RE.search(line, start)
            end = stop.start() if stop else len(line)
        fields.append((key, line[start:end].strip(), False))
        pos = max(end, start + 1)


class _LineScanner:
    """Assembles records from ``"key": value`` pairs, one line at a time.

    Only a ``"name"`` marker opens a record.  A field that the open record
    already holds, or one seen before any name, is held back for the next
    name marker; held fields that no name ever claims are dropped, as are
    records whose name is blank.
    """

    def __init__(self) -> None:
        self._records: list[dict[str, Any]] = []
        self._current: dict[str, Any] | None = None
        self._pending: dict[str, Any] = {}
        self._list_key: str | None = None
        self._list_items: list[Any] = []

    def feed(self, line: str) -> None:
        stripped = line.strip()
        if stripped and self._list_key is not None:
            stripped = self._feed_list_line(stripped)
        if not stripped:
            return
        for key, raw, opens_list in _line_fields(stripped):
            if opens_list:
                self._list_key, self._list_items = key, []
                remainder = raw[1:].strip().rstrip(",")
                if remainder:
                    self._list_items.append(_scalar(remainder))
            elif raw.startswith("["):
                self._set(key, _inline_list(raw[1:-1]))
            elif raw not in ("", "{"):
                self._set(key, _scalar(raw))

    def finish(self) -> list[dict[str, Any]]:
        if self._list_key is not None:
            self._close_list()
        if self._current is not None:
            self._records.append(self._current)
            self._current = None
        return [record for record in self._records if str(record.get("name") or "").strip()]

    def _feed_list_line(self, stripped: str) -> str:
        """Consume one line of an open list; return what follows its ``]``."""
        if stripped.startswith("]"):
            self._close_list()
            return stripped[1:]
        body = stripped.rstrip(",").strip()
        closes = body.endswith("]")
        if closes:
            body = body[:-1].rstrip().rstrip(",")
        item = _scalar(body)
        if item not in ("", None):
            self._list_items.append(item)
        if closes:
            self._close_list()
        return ""

    def _close_list(self) -> None:
        key, self._list_key = self._list_key, None
        if key is not None:
            self._set(key, self._list_items)

    def _set(self, key: str, value: Any) -> None:
        if key == "name":
            if self._current is not None:
                self._records.append(self._current)
            self._current = {**self._pending, "name": value}
            self._pending = {}
        elif self._current is not None and key not in self._current and not self._pending:
            self._current[key] = value
        else:
            self._pending[key] = value


def _line_scan_records(text: str) -> list[dict[str, Any]]:
    scanner = _LineScanner()
    for line in text.splitlines():
        scanner.feed(line)
    return scanner.finish()


def _line_scan_scalars(text: str, wanted: set[str]) -> dict[str, Any]:
    """Pick the first value of each wanted top-level scalar key."""
    found: dict[str, Any] = {}
    for line in text.splitlines():
        for key, raw, _ in _line_fields(line):
            if key in wanted and key not in found and raw and raw[0] not in "[{":
                found[key] = _scalar(raw)
    return found


def _inline_list(body: str) -> list[Any]:
    parsed = _loads(f"[{body}]")
    if isinstance(parsed, list):
        return parsed
    return [_scalar(part) for part in body.split(",") if part.strip()]


def _scalar(raw: str) -> Any:
    raw = raw.strip()
    value = _loads(raw)
    if value is not None and not isinstance(value, (list, dict)):
        return value
    return raw.strip("\"'").strip()
