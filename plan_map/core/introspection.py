"""Type introspection.

Discovers the mappable members of dataclasses, Pydantic models and plain
classes, and classifies annotations for correspondence and conversion
decisions. Results are cached per class.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import datetime
import decimal
import dis
import enum
import functools
import inspect
import types
import typing
import uuid
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

SCALAR_TYPES: tuple[type, ...] = (
    str,
    bytes,
    int,
    float,
    complex,
    decimal.Decimal,
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
)

# Bare container classes are never treated as nested objects.
CONTAINER_TYPES: tuple[type, ...] = (list, tuple, set, frozenset, dict)

# Collection origin -> factory used to rebuild a converted collection.
COLLECTION_FACTORIES: dict[Any, type] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Set: set,
    collections.abc.MutableSet: set,
}


@dataclass(frozen=True)
class MemberInfo:
    """A readable and/or writable member of a class."""

    name: str
    annotation: Any = None  # None when unknown
    readable: bool = True
    writable: bool = True
    frozen: bool = False
    is_property: bool = False


def is_pydantic_model(cls: Any) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def _clean(annotation: Any) -> Any:
    """Normalize unusable annotations to None."""
    if annotation is None or annotation is Any or isinstance(annotation, str):
        return None
    if isinstance(annotation, typing.ForwardRef):
        return None
    return annotation


def _type_hints(obj: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError, AttributeError):
        # Unresolvable forward references fall back to raw annotations
        return dict(getattr(obj, "__annotations__", {}))


def _is_class_var(annotation: Any) -> bool:
    return annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar


def _init_parameters(cls: type) -> list[inspect.Parameter]:
    if cls.__init__ is object.__init__:
        return []
    try:
        sig = inspect.signature(cls.__init__)
    except (ValueError, TypeError):
        return []
    return [
        param
        for name, param in sig.parameters.items()
        if name != "self"
        and param.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]


def _loads_local(instruction: dis.Instruction, name: str) -> bool:
    if not instruction.opname.startswith("LOAD_FAST"):
        return False
    argval = instruction.argval
    if isinstance(argval, tuple):
        return bool(argval[-1] == name)
    return bool(argval == name)


def _assigned_in_init(cls: type) -> dict[str, Any]:
    """Attributes stored as ``self.<name> = ...`` by ``__init__`` anywhere in the MRO.

    Maps each name to the annotation of the same-named ``__init__`` parameter.
    """
    names: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        init = vars(klass).get("__init__")
        if init is None or not inspect.isfunction(init):
            continue
        init = inspect.unwrap(init)
        code = init.__code__
        if not code.co_argcount:
            continue
        hints = _type_hints(init)
        self_name = code.co_varnames[0]
        previous: dis.Instruction | None = None
        for instruction in dis.get_instructions(init):
            if (
                instruction.opname == "STORE_ATTR"
                and previous is not None
                and _loads_local(previous, self_name)
                and instruction.argval not in names
            ):
                names[instruction.argval] = hints.get(instruction.argval)
            previous = instruction
    return names


def _property_members(cls: type) -> dict[str, MemberInfo]:
    members: dict[str, MemberInfo] = {}
    for klass in reversed(cls.__mro__):
        if klass is object or klass.__module__.startswith("pydantic"):
            continue
        for name, attr in vars(klass).items():
            if name.startswith("_") or not isinstance(attr, property):
                continue
            annotation = None
            if attr.fget is not None:
                annotation = _type_hints(attr.fget).get("return")
            members[name] = MemberInfo(
                name=name,
                annotation=_clean(annotation),
                readable=attr.fget is not None,
                writable=attr.fset is not None,
                is_property=True,
            )
    return members


@functools.lru_cache(maxsize=None)
def get_members(cls: type) -> types.MappingProxyType[str, MemberInfo]:
    """Return the members of a class in declaration order.

    Detection order:
    1. Pydantic BaseModel -> model_fields, then computed fields (read-only)
    2. dataclass -> dataclasses.fields()
    3. Plain class -> class annotations, then attributes ``__init__`` stores
       on ``self``, then remaining ``__init__`` parameters (write-only)

    Properties declared anywhere in the MRO are added last; a property
    without a setter is readable but not writable.
    """
    members: dict[str, MemberInfo] = {}

    if is_pydantic_model(cls):
        frozen = bool(cls.model_config.get("frozen"))
        for name, info in cls.model_fields.items():
            members[name] = MemberInfo(name=name, annotation=_clean(info.annotation), frozen=frozen)
        for name, info in cls.model_computed_fields.items():
            members[name] = MemberInfo(
                name=name,
                annotation=_clean(info.return_type),
                writable=False,
                is_property=True,
            )
    elif dataclasses.is_dataclass(cls):
        hints = _type_hints(cls)
        frozen = cls.__dataclass_params__.frozen  # type: ignore[attr-defined]
        for f in dataclasses.fields(cls):
            members[f.name] = MemberInfo(
                name=f.name,
                annotation=_clean(hints.get(f.name, f.type)),
                frozen=frozen,
            )
    else:
        properties = _property_members(cls)
        for name, hint in _type_hints(cls).items():
            if name.startswith("_") or _is_class_var(hint):
                continue
            members[name] = MemberInfo(name=name, annotation=_clean(hint))
        for name, hint in _assigned_in_init(cls).items():
            if name not in members and name not in properties and not name.startswith("_"):
                members[name] = MemberInfo(name=name, annotation=_clean(hint))
        init_hints = _type_hints(cls.__init__)
        for param in _init_parameters(cls):
            if param.name in members or param.name in properties or param.name.startswith("_"):
                continue
            # Accepted by __init__ but never stored on the instance
            members[param.name] = MemberInfo(
                name=param.name,
                annotation=_clean(init_hints.get(param.name)),
                readable=False,
            )

    for name, member in _property_members(cls).items():
        if name not in members:
            members[name] = member

    return types.MappingProxyType(members)


def readable_members(cls: type) -> dict[str, MemberInfo]:
    return {name: m for name, m in get_members(cls).items() if m.readable}


def writable_members(cls: type) -> dict[str, MemberInfo]:
    return {name: m for name, m in get_members(cls).items() if m.writable}


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip ``None`` from ``X | None`` / ``Optional[X]``.

    Returns the inner annotation and whether it was optional. Unions of
    several non-None members are returned unchanged.
    """
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = typing.get_args(annotation)
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1 and len(rest) < len(args):
            return rest[0], True
    return annotation, False


def collection_element(annotation: Any) -> tuple[type, Any] | None:
    """Return ``(factory, element_annotation)`` for a homogeneous collection annotation."""
    origin = typing.get_origin(annotation)
    if origin not in COLLECTION_FACTORIES:
        return None
    args = typing.get_args(annotation)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple, _clean(args[0])
        return None
    return COLLECTION_FACTORIES[origin], _clean(args[0]) if args else None


def is_enum(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, enum.Enum)


def is_scalar(annotation: Any) -> bool:
    """Primitive-like types that are never mapped through nested plans."""
    return isinstance(annotation, type) and issubclass(annotation, SCALAR_TYPES)


def is_object_type(annotation: Any) -> bool:
    """True for user-defined object shapes (candidates for nesting and flattening)."""
    inner, _ = unwrap_optional(annotation)
    if typing.get_origin(inner) is not None or not isinstance(inner, type):
        return False
    if inner is object or issubclass(inner, CONTAINER_TYPES):
        return False
    return not is_scalar(inner) and not is_enum(inner)


def is_complex(annotation: Any) -> bool:
    """Object-typed annotation, or a collection of object-typed elements."""
    inner, _ = unwrap_optional(annotation)
    collection = collection_element(inner)
    if collection is not None:
        return collection[1] is not None and is_complex(collection[1])
    return is_object_type(inner)


def _init_default(cls: type, name: str) -> Any:
    for param in _init_parameters(cls):
        if param.name == name and param.default is not inspect.Parameter.empty:
            return param.default
    return None


def _dataclass_default(f: dataclasses.Field[Any]) -> Any:
    if f.default is not dataclasses.MISSING:
        return f.default
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory()
    return None


def create_instance(cls: type) -> Any:
    """Default-construct a destination instance.

    Classes that can be called without arguments are. Otherwise the
    instance is created without running ``__init__``: declared defaults
    are applied and every other member is set to None.
    """
    if is_pydantic_model(cls):
        if all(not info.is_required() for info in cls.model_fields.values()):
            return cls()
        instance = cls.model_construct()
        for name in cls.model_fields:
            if name not in instance.__dict__:
                object.__setattr__(instance, name, None)
        return instance

    if dataclasses.is_dataclass(cls):
        fields = [f for f in dataclasses.fields(cls) if f.init]
        if all(
            f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
            for f in fields
        ):
            return cls()
        instance = cls.__new__(cls)
        for f in dataclasses.fields(cls):
            object.__setattr__(instance, f.name, _dataclass_default(f))
        return instance

    required = [p for p in _init_parameters(cls) if p.default is inspect.Parameter.empty]
    if not required:
        return cls()
    instance = cls.__new__(cls)
    for member in get_members(cls).values():
        if member.writable and not member.is_property:
            object.__setattr__(instance, member.name, _init_default(cls, member.name))
    return instance


def set_member(instance: Any, member: MemberInfo, value: Any) -> None:
    """Assign a member value, bypassing ``__setattr__`` for frozen shapes."""
    if member.frozen:
        object.__setattr__(instance, member.name, value)
    else:
        setattr(instance, member.name, value)
