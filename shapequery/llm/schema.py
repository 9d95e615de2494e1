"""
Derive protobuf schema text from a target shape.

The schema is embedded verbatim into a prompt, so the output for a given
shape is fully deterministic: messages appear root first and then in the
order they are first referenced, fields in declaration order.
"""
import dataclasses
import datetime
import decimal
import enum
import logging
import types
import typing
import uuid
from collections import abc
from typing import Any, Dict, List, Literal, Tuple, Union

from pydantic import BaseModel, PydanticUndefinedAnnotation, RootModel

from .errors import SchemaError

logger = logging.getLogger(__name__)

_SCALARS: Dict[Any, str] = {
    str: "string",
    int: "int64",
    float: "double",
    bool: "bool",
    bytes: "bytes",
    # JSON encodes these as strings
    datetime.date: "string",
    datetime.datetime: "string",
    datetime.time: "string",
    datetime.timedelta: "string",
    uuid.UUID: "string",
    decimal.Decimal: "string",
}

_MAP_KEYS: Dict[Any, str] = {str: "string", int: "int64", bool: "bool"}

_REPEATED_ORIGINS = (list, set, frozenset, abc.Sequence, abc.Set, abc.MutableSequence)
_MAP_ORIGINS = (dict, abc.Mapping, abc.MutableMapping)


@dataclasses.dataclass
class _Field:
    name: str
    annotation: Any
    required: bool


def _is_message(tp: Any) -> bool:
    if not isinstance(tp, type):
        return False
    if issubclass(tp, BaseModel):
        return not issubclass(tp, RootModel)
    return dataclasses.is_dataclass(tp)


def _message_fields(shape: type) -> List[_Field]:
    if issubclass(shape, BaseModel):
        if not shape.__pydantic_complete__:
            try:
                shape.model_rebuild()
            except PydanticUndefinedAnnotation as e:
                raise SchemaError(shape, f"unresolved annotation ({e.name})") from e
        return [
            _Field(info.alias or name, info.annotation, info.is_required())
            for name, info in shape.model_fields.items()
        ]
    try:
        hints = typing.get_type_hints(shape)
    except NameError as e:
        raise SchemaError(shape, f"unresolved annotation ({e})") from e
    fields = []
    for f in dataclasses.fields(shape):
        required = f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        fields.append(_Field(f.name, hints[f.name], required))
    return fields


def _strip_annotated(tp: Any) -> Any:
    while typing.get_origin(tp) is typing.Annotated:
        tp = typing.get_args(tp)[0]
    return tp


def _split_optional(tp: Any) -> Tuple[Any, bool]:
    """Return (inner type, is_optional) for X | None style annotations."""
    tp = _strip_annotated(tp)
    if typing.get_origin(tp) not in (Union, types.UnionType):
        return tp, False
    args = [a for a in typing.get_args(tp) if a is not type(None)]
    if len(args) != 1:
        return tp, False
    return _strip_annotated(args[0]), len(args) < len(typing.get_args(tp))


def _camel(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


class _SchemaBuilder:
    def __init__(self, root: type):
        self.root = root
        self.messages: List[str] = []
        self.enums: List[str] = []
        # proto name -> the python type (or literal values) it was emitted for
        self.names: Dict[str, Any] = {}
        # enum value -> enum name, values share the package scope in proto2
        self.enum_values: Dict[str, str] = {}
        self.pending: List[type] = []

    def build(self) -> str:
        self._register(self.root.__name__, self.root)
        self.pending.append(self.root)
        while self.pending:
            shape = self.pending.pop(0)
            self.messages.append(self._render_message(shape))
        return 'syntax = "proto2";\n\n' + "\n\n".join(self.messages + self.enums) + "\n"

    def _register(self, name: str, owner: Any) -> bool:
        """Reserve a proto type name; False if it already belongs to owner."""
        existing = self.names.get(name)
        if existing is None:
            self.names[name] = owner
            return True
        if existing == owner:
            return False
        raise SchemaError(self.root, f"two different types are both named '{name}'")

    def _render_message(self, shape: type) -> str:
        lines = [f"message {shape.__name__} {{"]
        for number, field in enumerate(_message_fields(shape), start=1):
            label, type_name = self._field_type(shape, field)
            lines.append(f"  {label}{type_name} {field.name} = {number};")
        lines.append("}")
        return "\n".join(lines)

    def _field_type(self, owner: type, field: _Field) -> Tuple[str, str]:
        where = f"{owner.__name__}.{field.name}"
        tp, optional = _split_optional(field.annotation)
        origin = typing.get_origin(tp)

        if origin in _MAP_ORIGINS or tp is dict:
            if optional:
                raise SchemaError(self.root, f"{where}: map fields cannot be optional")
            return "", self._map_type(owner, field, tp, where)

        if origin in _REPEATED_ORIGINS or origin is tuple or tp in (list, set, tuple):
            if optional:
                raise SchemaError(self.root, f"{where}: repeated fields cannot be optional")
            return "repeated ", self._element_type(owner, field, self._item_type(tp, where), where)

        label = "optional " if optional or not field.required else "required "
        return label, self._element_type(owner, field, tp, where)

    def _item_type(self, tp: Any, where: str) -> Any:
        args = typing.get_args(tp)
        if typing.get_origin(tp) is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return args[0]
            raise SchemaError(self.root, f"{where}: only variable length tuples are supported")
        if len(args) != 1:
            raise SchemaError(self.root, f"{where}: repeated field needs an item type")
        return args[0]

    def _map_type(self, owner: type, field: _Field, tp: Any, where: str) -> str:
        args = typing.get_args(tp)
        if len(args) != 2:
            raise SchemaError(self.root, f"{where}: map field needs key and value types")
        key = _strip_annotated(args[0])
        if key not in _MAP_KEYS:
            raise SchemaError(self.root, f"{where}: unsupported map key type {key!r}")
        value = self._element_type(owner, field, args[1], where)
        return f"map<{_MAP_KEYS[key]}, {value}>"

    def _element_type(self, owner: type, field: _Field, tp: Any, where: str) -> str:
        """Resolve a single (non-repeated) type to its proto type name."""
        tp = _strip_annotated(tp)
        if tp in _SCALARS:
            return _SCALARS[tp]
        if _is_message(tp):
            if self._register(tp.__name__, tp):
                self.pending.append(tp)
            return tp.__name__
        if isinstance(tp, type) and issubclass(tp, enum.Enum):
            return self._enum_type(tp.__name__, tp, [m.value for m in tp], where)
        if typing.get_origin(tp) is Literal:
            values = list(typing.get_args(tp))
            return self._enum_type(owner.__name__ + _camel(field.name), tuple(values), values, where)
        if typing.get_origin(tp) is not None:
            raise SchemaError(self.root, f"{where}: cannot express {tp!r} as a single field type")
        raise SchemaError(self.root, f"{where}: unsupported type {tp!r}")

    def _enum_type(self, name: str, owner: Any, values: List[Any], where: str) -> str:
        if not values or not all(isinstance(v, str) and v.isidentifier() for v in values):
            raise SchemaError(self.root, f"{where}: enum values must be identifier strings")
        if self._register(name, owner):
            for value in values:
                other = self.enum_values.setdefault(value, name)
                if other != name:
                    raise SchemaError(
                        self.root, f"{where}: enum value '{value}' is already used by enum '{other}'"
                    )
            body = [f"enum {name} {{"]
            body.extend(f"  {value} = {index};" for index, value in enumerate(values))
            body.append("}")
            self.enums.append("\n".join(body))
        return name


def derive_schema(shape: type) -> str:
    """
    Describe a pydantic model or dataclass as proto2 schema text.

    Args:
        shape: The target model class

    Returns:
        str: Schema text listing every message and enum the shape uses

    Raises:
        SchemaError: If the shape uses a construct protobuf cannot express
    """
    if not _is_message(shape):
        raise SchemaError(shape, "target must be a pydantic model or a dataclass")
    schema = _SchemaBuilder(shape).build()
    logger.debug(f"Derived schema for {shape.__name__} ({len(schema)} chars)")
    return schema
