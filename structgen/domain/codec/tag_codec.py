"""Tag-delimited text codec.

Nested values are rendered as ``<name>content</name>`` markup, which costs
fewer tokens than JSON for the same prompt object and is what the generation
service is asked to answer in. Decoding is tolerant: it never raises and
falls back to returning raw text when no tag pairs can be found.

    >>> encode({"a": {"b": "x", "c": [1, 2]}})
    '<a><b>x</b><c><item>1</item><item>2</item></c></a>'
    >>> decode("<a><b>x</b><c><item>1</item><item>2</item></c></a>")
    {'a': {'b': 'x', 'c': [1, 2]}}

Strings whose text is ``true``/``false`` or looks like an unsigned number are
recovered as booleans and numbers; that loss is accepted.
"""

import re
from typing import Any, Dict, Optional

ITEM_TAG = "item"
ARRAY_TAG = "array"
EMPTY_TAG = "empty"
VALUE_TAG = "value"

_INVALID_TAG_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_TAG_PAIR = re.compile(r"<([^>\s/]+)(?:[^>]*)>(.*?)</\1>", re.DOTALL)
_NUMBER = re.compile(r"^\d+(\.\d+)?$")


def sanitize_tag_name(name: str) -> str:
    """Make an arbitrary key usable as a tag name"""

    safe = _INVALID_TAG_CHARS.sub("_", str(name))
    if not safe[:1].isalpha():
        safe = f"tag_{safe}"
    return safe


def _wrap(tag_name: str, content: str) -> str:
    tag = sanitize_tag_name(tag_name)
    return f"<{tag}>{content}</{tag}>"


def _render_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_structured(value: Any) -> bool:
    return isinstance(value, (dict, list, tuple))


def encode(value: Any, tag_name: Optional[str] = None) -> str:
    """Encode a nested value as tag-delimited text"""

    if isinstance(value, (list, tuple)):
        items = "".join(
            _wrap(ITEM_TAG, encode(item) if _is_structured(item) else _render_scalar(item))
            for item in value
            if item is not None
        )
        return _wrap(tag_name or ARRAY_TAG, items)

    if isinstance(value, dict):
        entries = [(key, item) for key, item in value.items() if item is not None]
        if not entries:
            return _wrap(tag_name or EMPTY_TAG, "")

        parts = []
        for key, item in entries:
            if _is_structured(item):
                parts.append(encode(item, str(key)))
            else:
                parts.append(_wrap(str(key), _render_scalar(item)))
        content = "".join(parts)
        return _wrap(tag_name, content) if tag_name else content

    return _wrap(tag_name or VALUE_TAG, _render_scalar(value))


class _AggregatedList(list):
    """List built from repeated sibling tags, as opposed to a decoded <item> array"""


def _classify(text: str) -> Any:
    if text == "true":
        return True
    if text == "false":
        return False
    if _NUMBER.match(text):
        return float(text) if "." in text else int(text)
    return text


def decode(text: str) -> Any:
    """Decode tag-delimited text back into a nested value"""

    content = text.strip()
    if "<" not in content:
        return content

    result: Dict[str, Any] = {}
    matched = False
    for match in _TAG_PAIR.finditer(content):
        matched = True
        tag_name, inner = match.group(1), match.group(2)

        if "<" in inner.strip():
            child = decode(inner)
        else:
            child = _classify(inner.strip())

        if tag_name not in result:
            result[tag_name] = child
        elif isinstance(result[tag_name], _AggregatedList):
            result[tag_name].append(child)
        else:
            result[tag_name] = _AggregatedList([result[tag_name], child])

    if not matched:
        return content

    if len(result) == 1 and ITEM_TAG in result:
        items = result[ITEM_TAG]
        return list(items) if isinstance(items, _AggregatedList) else [items]

    # Default wrapper of an untagged sequence
    if len(result) == 1 and isinstance(result.get(ARRAY_TAG), list):
        return list(result[ARRAY_TAG])

    return {key: list(val) if isinstance(val, _AggregatedList) else val for key, val in result.items()}


def extract_tag_content(text: str, tag_name: str) -> Optional[str]:
    """Return the raw text between the first <tag_name> and its closing tag"""

    tag = re.escape(tag_name)
    match = re.search(rf"<{tag}(?:\s[^>]*)?>(.*?)</{tag}>", text, re.DOTALL)
    return match.group(1) if match else None
