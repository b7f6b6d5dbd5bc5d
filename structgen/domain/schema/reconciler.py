from typing import Any, Dict, Iterable, Optional

from structgen.domain.codec.tag_codec import decode, extract_tag_content
from structgen.domain.schema.shape_descriptor import FieldSpec, KindTag, ShapeDescriptor


def unwrap_root(decoded: Any, declared: Iterable[str]) -> Dict[str, Any]:
    """Drop one extra root tag wrapped around the answer.

    A single-key mapping whose value is itself a mapping is unwrapped, unless
    that key is a declared output field.
    """

    if not isinstance(decoded, dict):
        return {}
    if len(decoded) == 1:
        key, value = next(iter(decoded.items()))
        if isinstance(value, dict) and key not in declared:
            return value
    return decoded


def _reconcile_fields(fields: Iterable[FieldSpec], source: Dict[str, Any], raw_scope: Optional[str]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for spec in fields:
        if spec.tag_name not in source:
            continue

        value = source[spec.tag_name]
        raw = extract_tag_content(raw_scope, spec.tag_name) if raw_scope else None
        tag = spec.kind.tag

        if tag is KindTag.TEXT:
            if isinstance(value, (dict, list)):
                # Markup inside the text was scanned as nested tags
                if raw is not None:
                    value = raw
            elif not isinstance(value, str) and raw is not None:
                value = raw.strip()
        elif tag is KindTag.ENUM:
            if not isinstance(value, str) and raw is not None and raw.strip() in spec.kind.values:
                value = raw.strip()
        elif tag is KindTag.RECORD and isinstance(value, dict):
            value = _reconcile_fields(spec.kind.fields, value, raw)

        result[spec.name] = value
    return result


def reconcile(response: str, descriptor: ShapeDescriptor) -> Dict[str, Any]:
    """Decode a response and align it with the declared output fields.

    Text fields whose decoded value is not a string (markup mis-read as nested
    tags, or a literal coerced to a boolean or number) take the raw text
    between their tags instead. Undeclared keys are dropped and missing
    fields are omitted.
    """

    if not response:
        return {}

    declared = [spec.tag_name for spec in descriptor.fields]
    source = unwrap_root(decode(response), declared)
    return _reconcile_fields(descriptor.fields, source, response)
