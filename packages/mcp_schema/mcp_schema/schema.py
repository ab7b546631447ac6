"""Flatten pydantic JSON schemas for LLM tool calling.

Function-calling backends accept a narrow subset of JSON Schema: no
``$defs``/``$ref``, no ``anyOf`` unions, no defaults or numeric/string
constraints. Input models inherit from ``FlatBaseModel`` so the schema
advertised by the MCP server is already in that subset.
"""

from copy import deepcopy
from typing import Any

from pydantic import BaseModel

DROPPED_KEYWORDS = frozenset(
    [
        "$defs",
        "$ref",
        "title",
        "default",
        "additionalProperties",
        "const",
        "minimum",
        "maximum",
        "exclusiveMinimum",
        "exclusiveMaximum",
        "minLength",
        "maxLength",
        "minItems",
        "maxItems",
        "pattern",
        "examples",
        "uniqueItems",
    ]
)


def _resolve_ref(ref: str, defs: dict[str, Any]) -> tuple[str, dict[str, Any]] | None:
    name = ref.rsplit("/", 1)[-1]
    if ref.startswith("#/$defs/") and name in defs:
        return name, defs[name]
    return None


def _collapse_union(node: dict[str, Any], members: list[Any]) -> dict[str, Any]:
    """Replace ``anyOf`` with its first non-null member.

    ``str | None`` becomes ``{"type": "string", "nullable": true}``; wider
    unions keep the first member and note the alternatives in the
    description.
    """
    concrete = [m for m in members if isinstance(m, dict) and m.get("type") != "null"]
    collapsed = {k: v for k, v in node.items() if k != "anyOf"}
    if not concrete:
        collapsed.setdefault("type", "string")
        return collapsed

    collapsed.update(concrete[0])
    if "description" in node:
        collapsed["description"] = node["description"]
    if len(concrete) > 1:
        names = [str(m.get("type", "object")) for m in concrete]
        note = f"(One of: {', '.join(names)})"
        desc = collapsed.get("description")
        collapsed["description"] = f"{desc} {note}" if desc else note
    if len(concrete) < len(members):
        collapsed["nullable"] = True
    return collapsed


def _flatten(node: Any, defs: dict[str, Any], stack: frozenset[str]) -> Any:
    if isinstance(node, list):
        return [_flatten(item, defs, stack) for item in node]
    if not isinstance(node, dict):
        return node

    ref = node.get("$ref")
    if isinstance(ref, str):
        resolved = _resolve_ref(ref, defs)
        if resolved is not None:
            name, target = resolved
            siblings = {k: v for k, v in node.items() if k != "$ref"}
            if name in stack:
                return {"type": "object", "description": f"(recursive: {name})"}
            merged = {**deepcopy(target), **siblings}
            return _flatten(merged, defs, stack | {name})

    if isinstance(node.get("anyOf"), list):
        return _flatten(_collapse_union(node, node["anyOf"]), defs, stack)

    flat: dict[str, Any] = {}
    for key, value in node.items():
        if key in DROPPED_KEYWORDS:
            continue
        if key == "properties" and isinstance(value, dict):
            flat[key] = {
                prop: _flatten(schema, defs, stack) for prop, schema in value.items()
            }
        else:
            flat[key] = _flatten(value, defs, stack)

    if flat.get("type") == "array" and "items" not in flat:
        flat["items"] = {"type": "string"}
    return flat


def _mark_optional(schema: dict[str, Any]) -> None:
    """Prefix descriptions of non-required properties with ``(Optional)``."""
    required = set(schema.get("required", []))
    for name, prop in schema.get("properties", {}).items():
        if not isinstance(prop, dict):
            continue
        if name not in required:
            desc = prop.get("description", "")
            if not desc.startswith("(Optional)"):
                prop["description"] = f"(Optional) {desc}".rstrip()
        if prop.get("type") == "object":
            _mark_optional(prop)
        elif prop.get("type") == "array" and isinstance(prop.get("items"), dict):
            _mark_optional(prop["items"])


def flatten_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``schema`` with refs inlined and unions collapsed."""
    defs = schema.get("$defs", {})
    flattened = _flatten(schema, defs, frozenset())
    _mark_optional(flattened)
    return flattened


class FlatBaseModel(BaseModel):
    """BaseModel whose ``model_json_schema()`` is already flattened."""

    @classmethod
    def model_json_schema(cls, **kwargs: Any) -> dict[str, Any]:
        return flatten_schema(super().model_json_schema(**kwargs))


# Output schemas are validated by the MCP SDK with jsonschema, which does not
# understand ``nullable``; keep them as plain pydantic models.
OutputBaseModel = BaseModel
