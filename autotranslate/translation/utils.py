"""
Catalog utility functions for flatten/rebuild of nested JSON structures
and for catalogs shipped as TypeScript or CommonJS modules.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

MODULE_EXTENSIONS = (".ts", ".js")

# The object literal assigned to the export variable (or exported directly)
MODULE_OBJECT_PATTERN = re.compile(r"(?:=|export\s+default)\s*(\{.*\})", re.DOTALL)


def flatten_json(obj: Any, path: str = "", pairs: List[Tuple[str, Any]] = None) -> List[Tuple[str, Any]]:
    """
    Flatten nested JSON into key-value pairs.

    Args:
        obj: JSON object to flatten
        path: Current key path
        pairs: Accumulator list (created if None)

    Returns:
        List of (key_path, value) tuples

    Example:
        >>> flatten_json({"home": {"title": "Hello"}})
        [("home.title", "Hello")]
    """
    if pairs is None:
        pairs = []

    if isinstance(obj, dict):
        for key, value in obj.items():
            new_path = f"{path}.{key}" if path else key
            if isinstance(value, dict):
                flatten_json(value, new_path, pairs)
            else:
                pairs.append((new_path, value))
    elif path:
        pairs.append((path, obj))

    return pairs


def translatable_pairs(obj: Any) -> Dict[str, str]:
    """Flattened catalog restricted to non-blank string values, in source order."""
    return {
        key: value
        for key, value in flatten_json(obj)
        if isinstance(value, str) and value.strip()
    }


def build_json_from_pairs(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    """
    Rebuild nested JSON from key-value pairs.

    Args:
        pairs: List of (key_path, value) tuples

    Returns:
        Nested dictionary

    Example:
        >>> build_json_from_pairs([("home.title", "Hello")])
        {"home": {"title": "Hello"}}
    """
    result = {}

    for path, value in pairs:
        keys = path.split('.')
        node = result

        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                # A leaf already sits where a branch is needed; the branch wins
                node[key] = {}
            node = node[key]

        node[keys[-1]] = value

    return result


def has_nested_structure(obj: Any) -> bool:
    """True if any value of the top-level mapping is itself a mapping."""
    return isinstance(obj, dict) and any(isinstance(value, dict) for value in obj.values())


def module_variable_name(file_stem: str) -> str:
    """Identifier used for the exported catalog object ('zh-hans' -> 'zhhans')."""
    return re.sub(r"\W", "", file_stem) or "translations"


def render_catalog_module(
    data: Dict[str, Any],
    extension: str,
    variable_name: str,
    source_language: str,
    indent: Optional[int] = 2,
) -> str:
    """
    Render a catalog as a TypeScript or CommonJS module.

    Args:
        data: Catalog object (nested or flat)
        extension: ".ts" (`as const` + `export default`) or ".js" (`module.exports`)
        variable_name: Name of the exported constant
        source_language: Noted in the generated header
        indent: JSON indentation, None for compact output

    Returns:
        Module source text
    """
    body = json.dumps(data, ensure_ascii=False, indent=indent)
    header = (
        "/**\n"
        f" * {variable_name} translations\n"
        f" * Auto-generated from {source_language} source\n"
        " */\n\n"
    )
    if extension == ".ts":
        return f"{header}const {variable_name} = {body} as const;\n\nexport default {variable_name};\n"
    return f"{header}const {variable_name} = {body};\n\nmodule.exports = {variable_name};\n"


def parse_catalog_module(content: str) -> Any:
    """
    Read the catalog object back out of a module written by render_catalog_module.

    Only JSON-compatible object literals are understood.

    Raises:
        ValueError: No object literal found, or it is not valid JSON
    """
    match = MODULE_OBJECT_PATTERN.search(content)
    if not match:
        raise ValueError("no exported object literal found")
    return json.loads(match.group(1))
