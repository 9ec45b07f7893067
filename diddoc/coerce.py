"""Value coercion engine.

Converts loosely-typed decoded JSON (``None``, ``bool``, ``int``/``float``,
``str``, ``bytes``, lists and mappings) into a statically described
destination shape. The engine is a depth-first recursive descent over the
source tree; each (source kind, destination kind) pair is one branch below.

Destination shapes form a closed set (``ShapeKind``):

    STRING   bool -> "true"/"false", str as is, bytes decoded as UTF-8
    ANY      value stored verbatim
    RECORD   dataclass built field by field from a mapping, keyed by the
             field's serialization tag; missing entries keep defaults
    MAP      opaque pass-through, source must have the exact mapping type
    LIST     list/tuple coerced element-wise; a bare value becomes a
             single-element list
    NUMBER, BOOLEAN
             valid descriptors that the engine refuses as destinations

Records declare their wire layout with ``tagged(...)`` dataclass fields; the
table is compiled once per class by ``record_fields``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from diddoc.errors import ErrorKind, coercion_error

DEFAULT_MAX_DEPTH = 64


class ShapeKind(Enum):
    """Destination kinds understood by the engine."""
    STRING = "string"
    ANY = "any"
    RECORD = "record"
    MAP = "map"
    LIST = "list"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class Shape:
    """Static description of a coercion destination."""
    kind: ShapeKind
    elem: Optional["Shape"] = None
    record_type: Optional[type] = None
    map_type: Optional[type] = None

    def __str__(self) -> str:
        if self.kind == ShapeKind.LIST:
            return f"list[{self.elem}]"
        if self.kind == ShapeKind.RECORD and self.record_type is not None:
            return self.record_type.__name__
        if self.kind == ShapeKind.MAP and self.map_type is not None:
            return self.map_type.__name__
        return self.kind.value


STRING = Shape(ShapeKind.STRING)
ANY = Shape(ShapeKind.ANY)
NUMBER = Shape(ShapeKind.NUMBER)
BOOLEAN = Shape(ShapeKind.BOOLEAN)


def list_of(elem: Shape) -> Shape:
    return Shape(ShapeKind.LIST, elem=elem)


def record(cls: type) -> Shape:
    if not dataclasses.is_dataclass(cls) or not isinstance(cls, type):
        raise TypeError(f"record shape requires a dataclass type, got {cls!r}")
    return Shape(ShapeKind.RECORD, record_type=cls)


def mapping(map_type: type = dict) -> Shape:
    return Shape(ShapeKind.MAP, map_type=map_type)


STRING_LIST = list_of(STRING)
ANY_LIST = list_of(ANY)


# ---------------------------------------------------------------------------
# Record field tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecordField:
    """One compiled entry of a record's field table."""
    name: str
    tag: str
    shape: Shape
    omit_empty: bool


def tagged(
    tag: str,
    shape: Shape = STRING,
    *,
    default: Any = "",
    omit_empty: bool = True,
) -> Any:
    """Declare a record field with its serialization tag and shape."""
    return dataclasses.field(
        default=default,
        metadata={"tag": tag, "shape": shape, "omit_empty": omit_empty},
    )


@lru_cache(maxsize=None)
def record_fields(cls: type) -> Tuple[RecordField, ...]:
    """Compile the field table of a record class.

    Fields without ``tagged`` metadata use their attribute name as the tag
    and accept any value.
    """
    table: List[RecordField] = []
    for f in dataclasses.fields(cls):
        meta = f.metadata or {}
        table.append(RecordField(
            name=f.name,
            tag=meta.get("tag", f.name),
            shape=meta.get("shape", ANY),
            omit_empty=bool(meta.get("omit_empty", True)),
        ))
    return tuple(table)


def is_record(value: Any) -> bool:
    """True for dataclass instances (not dataclass types)."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _configured_max_depth() -> int:
    # Local import keeps the engine importable without touching config state.
    from diddoc.config import get_config

    return int(get_config().coercion.max_depth.get())


def coerce(value: Any, shape: Shape, *, max_depth: Optional[int] = None, path: str = "$") -> Any:
    """Coerce ``value`` into ``shape``.

    ``None`` at the top of the call yields the destination's zero value.
    Raises ``CoercionError`` on any incompatible (source, destination) pair
    and when the tree is nested deeper than ``max_depth`` levels.
    """
    limit = _configured_max_depth() if max_depth is None else max_depth
    if value is None:
        return zero_value(shape, path)
    return _coerce(value, shape, 0, limit, path)


def zero_value(shape: Shape, path: str = "$") -> Any:
    """Default value a destination takes when its source is absent."""
    if shape.kind == ShapeKind.STRING:
        return ""
    if shape.kind == ShapeKind.LIST:
        return []
    if shape.kind == ShapeKind.RECORD:
        return shape.record_type()  # type: ignore[misc]
    if shape.kind in (ShapeKind.ANY, ShapeKind.MAP):
        return None
    raise coercion_error(
        ErrorKind.UNSUPPORTED_DESTINATION,
        f"cannot coerce into {shape}",
        path,
    )


def _coerce(value: Any, shape: Shape, depth: int, limit: int, path: str) -> Any:
    if depth > limit:
        raise coercion_error(ErrorKind.TOO_DEEP, f"value nested deeper than {limit} levels", path)

    kind = shape.kind
    if kind == ShapeKind.STRING:
        return _to_string(value, path)
    if kind == ShapeKind.ANY:
        return value
    if kind == ShapeKind.RECORD:
        return _to_record(value, shape, depth, limit, path)
    if kind == ShapeKind.MAP:
        return _to_map(value, shape, path)
    if kind == ShapeKind.LIST:
        return _to_list(value, shape, depth, limit, path)
    raise coercion_error(
        ErrorKind.UNSUPPORTED_DESTINATION,
        f"cannot coerce into {shape}",
        path,
    )


def _to_string(value: Any, path: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as ex:
            raise coercion_error(
                ErrorKind.UNSUPPORTED_SOURCE, f"bytes are not valid UTF-8: {ex.reason}", path
            ) from ex
    raise coercion_error(ErrorKind.UNSUPPORTED_SOURCE, "cannot coerce into string", path, value)


def _to_record(value: Any, shape: Shape, depth: int, limit: int, path: str) -> Any:
    cls = shape.record_type
    if is_record(value):
        if type(value) is not cls:
            raise coercion_error(
                ErrorKind.STRUCT_MISMATCH,
                f"expected {cls.__name__}, got record {type(value).__name__}",  # type: ignore[union-attr]
                path,
            )
        return value
    if isinstance(value, Mapping):
        kwargs: Dict[str, Any] = {}
        for rf in record_fields(cls):  # type: ignore[arg-type]
            if rf.tag not in value:
                continue
            source = value[rf.tag]
            if source is None:
                # null entries behave like missing ones
                continue
            kwargs[rf.name] = _coerce(source, rf.shape, depth + 1, limit, f"{path}.{rf.tag}")
        return cls(**kwargs)  # type: ignore[misc]
    raise coercion_error(
        ErrorKind.STRUCT_MISMATCH,
        f"cannot coerce into {cls.__name__}",  # type: ignore[union-attr]
        path,
        value,
    )


def _to_map(value: Any, shape: Shape, path: str) -> Any:
    if type(value) is shape.map_type:
        return value
    raise coercion_error(
        ErrorKind.MAP_MISMATCH,
        f"expected exactly {shape.map_type.__name__}",  # type: ignore[union-attr]
        path,
        value,
    )


def _to_list(value: Any, shape: Shape, depth: int, limit: int, path: str) -> List[Any]:
    elem = shape.elem or ANY
    if isinstance(value, (bytes, bytearray)) and elem.kind == ShapeKind.STRING:
        return [_to_string(value, f"{path}[0]")]
    if isinstance(value, (list, tuple)):
        out: List[Any] = []
        for i, item in enumerate(value):
            item_path = f"{path}[{i}]"
            if item is None:
                if elem.kind != ShapeKind.ANY:
                    raise coercion_error(
                        ErrorKind.UNSUPPORTED_SOURCE, f"null element in {shape}", item_path
                    )
                out.append(None)
                continue
            out.append(_coerce(item, elem, depth + 1, limit, item_path))
        return out
    # A bare scalar, mapping or record stands for a one-element list.
    return [_coerce(value, elem, depth + 1, limit, f"{path}[0]")]


def coerce_into(target: Any, attr: str, value: Any, *, max_depth: Optional[int] = None) -> None:
    """Coerce ``value`` to the declared shape of ``target.attr`` and assign it.

    ``target`` must be a mutable record instance.
    """
    if not is_record(target):
        raise coercion_error(
            ErrorKind.NOT_A_POINTER, "target must be a record instance", attr, target
        )
    params = getattr(type(target), "__dataclass_params__", None)
    if params is not None and params.frozen:
        raise coercion_error(
            ErrorKind.UNADDRESSABLE, f"{type(target).__name__} is frozen", attr
        )
    for rf in record_fields(type(target)):
        if rf.name == attr:
            setattr(target, attr, coerce(value, rf.shape, max_depth=max_depth, path=rf.tag))
            return
    raise coercion_error(
        ErrorKind.UNADDRESSABLE, f"{type(target).__name__} has no field {attr!r}", attr
    )


def record_to_dict(value: Any, encode: Callable[[Any], Any]) -> Dict[str, Any]:
    """Serialize a record using its field table.

    ``encode`` is applied to every emitted field value.
    """
    out: Dict[str, Any] = {}
    for rf in record_fields(type(value)):
        v = getattr(value, rf.name)
        if rf.omit_empty and (v is None or v == "" or v == [] or v == {}):
            continue
        out[rf.tag] = encode(v)
    return out
