"""Render index definitions as mongosh ``createIndex`` statements.

Used for indexes that exist in the source but not in the target when
automatic repair is not authorized, so an operator can apply them by hand.
Rendering is pure and total: it never raises for a valid
``IndexDefinition``.

Usage:
    from mongo_drift.schema.statement import render_create_index

    idx = IndexDefinition(name="idx_email", keys=[("email", 1)], unique=True)
    render_create_index("users", idx)
    # 'db.users.createIndex({ email: 1 }, { name: "idx_email", unique: true })'
"""

import json
import re
from typing import Any

from bson import json_util

from mongo_drift.schema.models import COMPARED_PROPERTIES, IndexDefinition

_IDENTIFIER = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")

_STATEMENT = re.compile(
    r'^\s*db\.(?:getCollection\((?P<quoted>"(?:[^"\\]|\\.)*")\)|(?P<bare>[A-Za-z_$][A-Za-z0-9_$]*))'
    r"\.createIndex\((?P<args>.*)\)\s*;?\s*$",
    re.DOTALL,
)


# ------------------------------------------------------------------
# Formatting helpers (shared with the comparator)
# ------------------------------------------------------------------


def format_value(value: Any) -> str:
    """Render a value as relaxed Extended JSON.

    Falls back to plain JSON with ``str()`` for objects BSON cannot encode.
    """
    try:
        return json_util.dumps(value, json_options=json_util.RELAXED_JSON_OPTIONS)
    except (TypeError, ValueError):
        return json.dumps(value, default=str)


def _format_field(field: str) -> str:
    if _IDENTIFIER.fullmatch(field):
        return field
    return json.dumps(field)


def format_keys(keys: list[tuple[str, Any]]) -> str:
    """Render an ordered key specification, e.g. ``{ email: 1, "a.b": -1 }``."""
    if not keys:
        return "{}"
    parts = [f"{_format_field(field)}: {format_value(direction)}" for field, direction in keys]
    return "{ " + ", ".join(parts) + " }"


def _collection_ref(collection: str) -> str:
    if _IDENTIFIER.fullmatch(collection):
        return f"db.{collection}"
    return f"db.getCollection({json.dumps(collection)})"


# ------------------------------------------------------------------
# Rendering
# ------------------------------------------------------------------


def render_create_index(collection: str, definition: IndexDefinition) -> str:
    """Render a ``createIndex`` statement for one index.

    Options appear in a fixed order -- name, unique, sparse,
    expireAfterSeconds, partialFilterExpression, collation -- and absent
    options are omitted.  An explicit ``unique: false`` is rendered, since
    it is not the same definition as an absent ``unique``.

    Args:
        collection: Collection the index belongs to.
        definition: Index to render.

    Returns:
        The statement, or a ``//`` comment line when the definition has no
        keys to render.
    """
    if not definition.keys:
        return (
            f"// Could not determine index keys for index '{definition.name}' "
            f"on collection '{collection}'"
        )

    options = [f"name: {format_value(definition.name)}"]
    for field_name, attr in COMPARED_PROPERTIES:
        value = getattr(definition, attr)
        if value is not None:
            options.append(f"{field_name}: {format_value(value)}")

    return (
        f"{_collection_ref(collection)}.createIndex("
        f"{format_keys(definition.keys)}, {{ {', '.join(options)} }})"
    )


# ------------------------------------------------------------------
# Parsing
# ------------------------------------------------------------------


def _quote_bare_keys(text: str) -> str:
    """Quote unquoted object keys so shell syntax becomes valid JSON."""
    out: list[str] = []
    i = 0
    length = len(text)
    in_string = False

    while i < length:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
            continue

        match = _IDENTIFIER.match(text, i)
        if match and not (out and (out[-1][-1:].isalnum() or out[-1][-1:] in "_$.")):
            word = match.group(0)
            rest = text[match.end():].lstrip()
            out.append(json.dumps(word) if rest.startswith(":") else word)
            i = match.end()
            continue

        out.append(ch)
        i += 1

    return "".join(out)


def parse_create_index(statement: str) -> tuple[str, IndexDefinition]:
    """Parse a statement produced by ``render_create_index``.

    Args:
        statement: ``db.<collection>.createIndex(<keys>, <options>)``.

    Returns:
        Tuple of (collection name, IndexDefinition).

    Raises:
        ValueError: If the statement is not a ``createIndex`` call with a
            key document and an options document.
        IndexDecodeError: If the options carry no string ``name``.
    """
    match = _STATEMENT.match(statement)
    if not match:
        raise ValueError(f"Not a createIndex statement: {statement!r}")

    if match.group("quoted") is not None:
        collection = json.loads(match.group("quoted"))
    else:
        collection = match.group("bare")

    args = json_util.loads(_quote_bare_keys(f"[{match.group('args')}]"))
    if len(args) != 2 or not all(isinstance(arg, dict) for arg in args):
        raise ValueError(f"Expected key and option documents in: {statement!r}")

    keys, options = args
    record = dict(options)
    record["key"] = keys
    return collection, IndexDefinition.from_record(record)
