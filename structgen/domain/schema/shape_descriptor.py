"""Prompt-facing description of a declared output shape.

An output shape is a pydantic model whose fields are scalars (text, numbers,
booleans, enums) or nested models. Each field is classified once into a
:class:`ScalarKind`; the skeleton embedded in prompts, the per-field
instructions, and post-decode reconciliation are all driven by that
classification rather than by re-inspecting annotations.
"""

import types
import typing
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from structgen.domain.codec.tag_codec import sanitize_tag_name
from structgen.domain.errors import OutputShapeError

PATH_SEPARATOR = "_"
TASK_INSTRUCTION = "Generate a response matching the output format exactly, using XML tags for each field"

_UNION_TYPES = (typing.Union, getattr(types, "UnionType", typing.Union))
_SEQUENCE_TYPES = (list, tuple, set, frozenset)


class KindTag(str, Enum):
    TEXT = "text"
    BOOLEAN = "boolean"
    NUMBER = "number"
    ENUM = "enum"
    RECORD = "record"
    ARRAY = "array"
    OTHER = "other"


@dataclass(frozen=True)
class ScalarKind:
    """Classification of a field's underlying type, with wrappers removed"""
    tag: KindTag
    values: Tuple[Any, ...] = ()
    fields: Tuple["FieldSpec", ...] = ()

    @property
    def is_record(self) -> bool:
        return self.tag is KindTag.RECORD


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: ScalarKind
    description: str = ""

    @property
    def tag_name(self) -> str:
        return sanitize_tag_name(self.name)


@dataclass(frozen=True)
class FieldConstraint:
    path: str
    text: str

    def render(self) -> str:
        return f"- {self.path} SHOULD be {self.text}"


def _unwrap_optional(annotation: Any) -> Any:
    while typing.get_origin(annotation) in _UNION_TYPES:
        members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(members) != 1:
            break
        annotation = members[0]
    return annotation


def classify(annotation: Any, _models: Tuple[type, ...] = (), _path: str = "") -> ScalarKind:
    """Compute the kind of an annotation, unwrapping Optional/nullable"""

    annotation = _unwrap_optional(annotation)
    origin = typing.get_origin(annotation)

    if origin is typing.Literal:
        return ScalarKind(KindTag.ENUM, values=typing.get_args(annotation))
    if origin in _SEQUENCE_TYPES or annotation in _SEQUENCE_TYPES:
        return ScalarKind(KindTag.ARRAY)
    if origin is not None:
        return ScalarKind(KindTag.OTHER)

    if isinstance(annotation, type):
        if issubclass(annotation, BaseModel):
            if annotation in _models:
                raise OutputShapeError(
                    f"Recursive models are not supported in output schema. "
                    f"Found {annotation.__name__} again at path: {_path}.",
                    path=_path
                )
            return ScalarKind(KindTag.RECORD, fields=tuple(describe_fields(annotation, _models, _path)))
        if issubclass(annotation, Enum):
            return ScalarKind(KindTag.ENUM, values=tuple(member.value for member in annotation))
        if annotation is bool:
            return ScalarKind(KindTag.BOOLEAN)
        if issubclass(annotation, (int, float, Decimal)):
            return ScalarKind(KindTag.NUMBER)
        if issubclass(annotation, str):
            return ScalarKind(KindTag.TEXT)

    return ScalarKind(KindTag.OTHER)


def describe_fields(model: Type[BaseModel], _models: Tuple[type, ...] = (), _prefix: str = "") -> List[FieldSpec]:
    models = _models + (model,)
    return [
        FieldSpec(
            name=name,
            kind=classify(info.annotation, models, f"{_prefix}.{name}" if _prefix else name),
            description=info.description or ""
        )
        for name, info in model.model_fields.items()
    ]


def _derived_constraint(kind: ScalarKind) -> Optional[str]:
    if kind.tag is KindTag.BOOLEAN:
        return 'either "true" or "false"'
    if kind.tag is KindTag.ENUM:
        allowed = ", ".join(f'"{value}"' for value in kind.values)
        return f"exactly one of these values: {allowed}"
    return None


class ShapeDescriptor:
    """Skeleton, per-field instructions and field kinds of an output shape"""

    def __init__(self, model: Type[BaseModel]):
        self.model = model
        self.fields: List[FieldSpec] = describe_fields(model)
        self._kinds: Dict[str, ScalarKind] = {spec.name: spec.kind for spec in self.fields}

    def ensure_no_arrays(self):
        """Reject shapes with an array at any depth"""

        path = self._find_array(self.fields, "")
        if path is not None:
            key = path.rsplit(".", 1)[-1]
            raise OutputShapeError(
                f"Arrays are not supported in output schema. Found array at path: {path}. "
                f"Use individual fields like {key}_1, {key}_2 instead.",
                path=path
            )

    def _find_array(self, fields: Tuple[FieldSpec, ...], prefix: str) -> Optional[str]:
        for spec in fields:
            path = f"{prefix}.{spec.name}" if prefix else spec.name
            if spec.kind.tag is KindTag.ARRAY:
                return path
            if spec.kind.is_record:
                nested = self._find_array(spec.kind.fields, path)
                if nested is not None:
                    return nested
        return None

    def kind_of(self, name: str) -> Optional[ScalarKind]:
        return self._kinds.get(name)

    def skeleton(self) -> Dict[str, Any]:
        """Mapping mirroring the shape, with empty strings for scalar fields"""

        return self._skeleton(self.fields)

    def _skeleton(self, fields) -> Dict[str, Any]:
        return {
            spec.tag_name: self._skeleton(spec.kind.fields) if spec.kind.is_record else ""
            for spec in fields
        }

    def field_constraints(self) -> List[FieldConstraint]:
        """Flattened per-field instructions, parents before children"""

        constraints: List[FieldConstraint] = []
        self._collect_constraints(self.fields, "", constraints)
        return constraints

    def _collect_constraints(self, fields, prefix: str, constraints: List[FieldConstraint]):
        for spec in fields:
            path = f"{prefix}{PATH_SEPARATOR}{spec.tag_name}" if prefix else spec.tag_name
            text = spec.description
            constraint = _derived_constraint(spec.kind)
            if constraint:
                text = f"{text}. Must be {constraint}" if text else f"Must be {constraint}"
            if text:
                constraints.append(FieldConstraint(path=path, text=text))
            if spec.kind.is_record:
                self._collect_constraints(spec.kind.fields, path, constraints)

    def task_description(self) -> str:
        lines = [constraint.render() for constraint in self.field_constraints()]
        if not lines:
            return TASK_INSTRUCTION
        return TASK_INSTRUCTION + "\naccording to the following instructions:\n\n" + "\n".join(lines)
