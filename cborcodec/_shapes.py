"""Destination shapes — what the caller wants a decoded item to become.

A shape is handed to the decoder instead of relying on runtime
introspection of some target object.  The closed set:

    Scalar(kind)              INT, UINT, BOOL, TEXT, BYTES, FLOAT32, FLOAT64, FLOAT
    Array(element, ...)       ordered collection
    Map(key, value)           associative collection
    Record(cls, ...)          dataclass, keyed by field name or positional
    Tagged(name, numbers)     DATETIME, URI, REGEX
    Nullable(inner)           null/undefined → None, else inner
    ANY                       inferred from the wire header

Records describe their fields with ``Field`` entries.  By default these are
derived once from ``dataclasses.fields``: ``metadata={"cbor": "name"}``
overrides the wire name, ``metadata={"cbor": "-"}`` ignores the field, and
``metadata={"shape": ...}`` overrides the shape inferred from the type hint.
"""

from __future__ import annotations

import dataclasses
import re
import typing
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import ParseResult, SplitResult

from ._constants import TAG_EPOCH, TAG_REGEX, TAG_RFC3339, TAG_URI
from ._errors import ERR_UNSUPPORTED_TYPE, CBORError
from ._values import Float32


class Shape:
    """Base class for destination shapes."""

    name: str = "shape"

    def zero(self) -> Any:
        """Value used for a record field the wire never mentioned."""
        return None

    def __repr__(self) -> str:
        return self.name


# ── Scalars ──────────────────────────────────────────────────

class Scalar(Shape):
    """A scalar kind.  One instance per kind, so shapes compare by identity."""

    _instances: Dict[str, "Scalar"] = {}

    _ZEROS: Dict[str, Callable[[], Any]] = {
        "int": int,
        "uint": int,
        "bool": bool,
        "text": str,
        "bytes": bytes,
        "float32": Float32,
        "float64": float,
        "float": float,
    }

    def __new__(cls, kind: str) -> "Scalar":
        inst = cls._instances.get(kind)
        if inst is None:
            if kind not in cls._ZEROS:
                raise ValueError("unknown scalar kind {!r}".format(kind))
            inst = super().__new__(cls)
            inst.kind = kind
            cls._instances[kind] = inst
        return inst

    @property
    def name(self) -> str:  # type: ignore[override]
        return self.kind

    def zero(self) -> Any:
        return self._ZEROS[self.kind]()


INT = Scalar("int")
UINT = Scalar("uint")
BOOL = Scalar("bool")
TEXT = Scalar("text")
BYTES = Scalar("bytes")
FLOAT32 = Scalar("float32")
FLOAT64 = Scalar("float64")
FLOAT = Scalar("float")


class _AnyShape(Shape):
    name = "any"


ANY = _AnyShape()


# ── Containers ───────────────────────────────────────────────

class Array(Shape):
    """Ordered collection of ``element``.

    ``size`` is the expected element count.  An incoming count that differs
    simply produces a longer or shorter result, unless ``strict`` is set, in
    which case it is a type mismatch.  ``factory`` builds the final
    container from a list (``tuple`` for tuple-typed fields).
    """

    def __init__(self, element: Shape = ANY, size: Optional[int] = None,
                 strict: bool = False, factory: Callable[[List[Any]], Any] = list) -> None:
        self.element = element
        self.size = size
        self.strict = strict
        self.factory = factory

    @property
    def name(self) -> str:  # type: ignore[override]
        if self.size is not None:
            return "array[{}]".format(self.size)
        return "array"

    def zero(self) -> Any:
        return self.factory([])


class Map(Shape):
    name = "map"

    def __init__(self, key: Shape = ANY, value: Shape = ANY) -> None:
        self.key = key
        self.value = value

    def zero(self) -> Any:
        return {}


class Nullable(Shape):
    def __init__(self, inner: Shape) -> None:
        self.inner = inner

    @property
    def name(self) -> str:  # type: ignore[override]
        return "optional {}".format(self.inner.name)


class Tagged(Shape):
    """A semantic value that must arrive wrapped in one of ``numbers``."""

    def __init__(self, name: str, numbers: Tuple[int, ...]) -> None:
        self._name = name
        self.numbers = numbers

    @property
    def name(self) -> str:  # type: ignore[override]
        return self._name


DATETIME = Tagged("datetime", (TAG_RFC3339, TAG_EPOCH))
URI = Tagged("uri", (TAG_URI,))
REGEX = Tagged("regex", (TAG_REGEX,))


# ── Records ──────────────────────────────────────────────────

class Field:
    """One record field: wire name, attribute, shape and access flags."""

    __slots__ = ("name", "attr", "shape", "settable", "ignore")

    def __init__(self, name: str, attr: Optional[str] = None, shape: Shape = ANY,
                 settable: bool = True, ignore: bool = False) -> None:
        self.name = name
        self.attr = attr or name
        self.shape = shape
        self.settable = settable
        self.ignore = ignore

    @property
    def active(self) -> bool:
        return self.settable and not self.ignore

    def __repr__(self) -> str:
        return "Field({!r}, attr={!r}, shape={!r})".format(self.name, self.attr, self.shape)


class Record(Shape):
    """A dataclass encoded as a keyed map (verbose) or a positional array.

    ``strict`` decides what happens to incoming keys with no matching field:
    ERR_UNKNOWN_FIELD when true, skipped when false, and the decoder's own
    policy when left as None.
    """

    def __init__(self, cls: type, fields: Optional[Sequence[Field]] = None,
                 strict: Optional[bool] = None) -> None:
        if not dataclasses.is_dataclass(cls):
            raise CBORError(ERR_UNSUPPORTED_TYPE,
                            "record type {} is not a dataclass".format(cls.__name__))
        self.cls = cls
        self.strict = strict
        self._fields: Optional[List[Field]] = list(fields) if fields is not None else None
        self._table: Optional[Dict[str, Field]] = None
        self._required: Optional[List[Tuple[str, Shape]]] = None

    @property
    def name(self) -> str:  # type: ignore[override]
        return "record {}".format(self.cls.__name__)

    @property
    def fields(self) -> List[Field]:
        """All declared fields, in declaration order."""
        if self._fields is None:
            self._fields = _fields_of(self.cls)
        return self._fields

    @property
    def active_fields(self) -> List[Field]:
        """Fields that take part in encoding and decoding."""
        return [f for f in self.fields if f.active]

    @property
    def table(self) -> Dict[str, Field]:
        """Wire name → field, built once per descriptor."""
        if self._table is None:
            self._table = {f.name: f for f in self.active_fields}
        return self._table

    def build(self, values: Dict[str, Any]) -> Any:
        """Instantiate the dataclass from attr → value, zero-filling the rest."""
        if self._required is None:
            hints = _type_hints(self.cls)
            self._required = [
                (f.name, shape_for(hints.get(f.name, Any)))
                for f in dataclasses.fields(self.cls)
                if f.init
                and f.default is dataclasses.MISSING
                and f.default_factory is dataclasses.MISSING  # type: ignore[misc]
            ]
        kwargs = dict(values)
        for attr, shape in self._required:
            if attr not in kwargs:
                kwargs[attr] = shape.zero()
        return self.cls(**kwargs)

    def zero(self) -> Any:
        return self.build({})


def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Unresolvable forward references: fields fall back to ANY.
        return {}


def _fields_of(cls: type) -> List[Field]:
    hints = _type_hints(cls)
    out: List[Field] = []
    for f in dataclasses.fields(cls):
        override = f.metadata.get("cbor")
        ignore = override == "-"
        name = override if override and not ignore else f.name.lower()
        shape = f.metadata.get("shape") or shape_for(hints.get(f.name, Any))
        settable = f.init and not f.name.startswith("_")
        out.append(Field(name, f.name, shape, settable=settable, ignore=ignore))
    return out


# ── Type hint → shape ────────────────────────────────────────

def shape_for(annotation: Any) -> Shape:
    """Translate a type annotation into a shape.  Unknown hints become ANY."""
    if annotation is Any or annotation is None:
        return ANY
    if isinstance(annotation, Shape):
        return annotation
    if annotation is bool:
        return BOOL
    if annotation is int:
        return INT
    if annotation is Float32:
        return FLOAT32
    if annotation is float:
        return FLOAT
    if annotation is str:
        return TEXT
    if annotation is bytes:
        return BYTES
    if annotation is datetime:
        return DATETIME
    if annotation in (SplitResult, ParseResult):
        return URI
    if annotation is re.Pattern:
        return REGEX
    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        return Record(annotation)

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin is list:
        return Array(shape_for(args[0]) if args else ANY)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return Array(shape_for(args[0]), factory=tuple)
        if args:
            return Array(ANY, size=len(args), strict=True, factory=tuple)
        return Array(ANY, factory=tuple)
    if origin is dict:
        if args:
            return Map(shape_for(args[0]), shape_for(args[1]))
        return Map()
    if origin is typing.Union:
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1:
            inner = shape_for(rest[0])
            return Nullable(inner) if len(rest) < len(args) else inner
        return ANY
    if origin is re.Pattern:
        return REGEX
    if annotation is list:
        return Array()
    if annotation is tuple:
        return Array(factory=tuple)
    if annotation is dict:
        return Map()
    return ANY
