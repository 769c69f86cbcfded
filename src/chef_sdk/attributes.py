"""Recursive attribute trees for node and cookbook metadata JSON."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from enum import Enum
from typing import Any

from .errors import ReadOnlyAttributeError


class AttributeKind(str, Enum):
    NULL = "null"
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


Scalar = str | int | float | bool


class AttributeList:
    """A JSON-shaped value: null, a scalar, a sequence or a mapping of attributes.

    Nodes expose ``normal`` as a mutable tree and ``automatic``/``default``/
    ``override`` as read-only trees; read-only applies to every descendant.
    Build instances with :meth:`from_json` or the per-type factories.
    """

    __slots__ = ("_kind", "_scalar", "_items", "_children", "_read_only")

    def __init__(
        self,
        kind: AttributeKind,
        *,
        scalar: Scalar | None = None,
        items: list[AttributeList] | None = None,
        children: dict[str, AttributeList] | None = None,
    ) -> None:
        self._kind = kind
        self._scalar = scalar
        self._items = items if kind is AttributeKind.SEQUENCE else None
        self._children = children if kind is AttributeKind.MAPPING else None
        if kind is AttributeKind.SEQUENCE and self._items is None:
            self._items = []
        if kind is AttributeKind.MAPPING and self._children is None:
            self._children = {}
        self._read_only = False

    # -- factories ---------------------------------------------------------

    @classmethod
    def null(cls) -> AttributeList:
        return cls(AttributeKind.NULL)

    @classmethod
    def string(cls, value: str) -> AttributeList:
        return cls(AttributeKind.SCALAR, scalar=str(value))

    @classmethod
    def integer(cls, value: int) -> AttributeList:
        return cls(AttributeKind.SCALAR, scalar=int(value))

    @classmethod
    def number(cls, value: float) -> AttributeList:
        return cls(AttributeKind.SCALAR, scalar=float(value))

    @classmethod
    def boolean(cls, value: bool) -> AttributeList:
        return cls(AttributeKind.SCALAR, scalar=bool(value))

    @classmethod
    def sequence(cls, values: Iterable[Any] = ()) -> AttributeList:
        return cls(AttributeKind.SEQUENCE, items=[cls.coerce(value) for value in values])

    @classmethod
    def mapping(cls, values: Mapping[str, Any] | None = None) -> AttributeList:
        children = {str(key): cls.coerce(value) for key, value in (values or {}).items()}
        return cls(AttributeKind.MAPPING, children=children)

    @classmethod
    def from_json(cls, value: Any) -> AttributeList:
        """Convert a decoded JSON value into an attribute tree."""
        if value is None:
            return cls.null()
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, int):
            return cls.integer(value)
        if isinstance(value, float):
            return cls.number(value)
        if isinstance(value, str):
            return cls.string(value)
        if isinstance(value, Mapping):
            return cls.mapping(value)
        if isinstance(value, (list, tuple)):
            return cls.sequence(value)
        raise TypeError(f"{type(value).__name__} is not a supported attribute value")

    @classmethod
    def coerce(cls, value: Any) -> AttributeList:
        if isinstance(value, AttributeList):
            return value
        return cls.from_json(value)

    # -- inspection --------------------------------------------------------

    @property
    def kind(self) -> AttributeKind:
        return self._kind

    @property
    def is_mapping(self) -> bool:
        return self._kind is AttributeKind.MAPPING

    @property
    def is_sequence(self) -> bool:
        return self._kind is AttributeKind.SEQUENCE

    @property
    def is_null(self) -> bool:
        return self._kind is AttributeKind.NULL

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def value(self) -> Scalar | None:
        """The scalar value; None for null and container nodes."""
        return self._scalar

    def __len__(self) -> int:
        if self._items is not None:
            return len(self._items)
        if self._children is not None:
            return len(self._children)
        return 1

    def __iter__(self) -> Iterator[Any]:
        if self._children is not None:
            return iter(self._children)
        if self._items is not None:
            return iter(self._items)
        return iter((self._scalar,))

    def __contains__(self, key: object) -> bool:
        if self._children is not None:
            return key in self._children
        if self._items is not None:
            return key in self._items
        return key == self._scalar

    def __getitem__(self, key: str | int) -> AttributeList:
        if isinstance(key, str):
            return self._require_mapping()[key]
        return self._require_sequence()[key]

    def get(self, key: str, default: AttributeList | None = None) -> AttributeList | None:
        return self._require_mapping().get(key, default)

    def items(self) -> Iterator[tuple[str, AttributeList]]:
        if self._children is None:
            return iter(())
        return iter(self._children.items())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributeList):
            return NotImplemented
        return self.to_data() == other.to_data()

    __hash__ = None  # type: ignore[assignment]

    # -- mutation ----------------------------------------------------------

    def _check_writable(self) -> None:
        if self._read_only:
            raise ReadOnlyAttributeError("Attribute tree is read-only")

    def _require_mapping(self) -> dict[str, AttributeList]:
        if self._children is None:
            raise TypeError(f"{self._kind.value} attribute is not a mapping")
        return self._children

    def _require_sequence(self) -> list[AttributeList]:
        if self._items is None:
            raise TypeError(f"{self._kind.value} attribute is not a sequence")
        return self._items

    def __setitem__(self, key: str | int, value: Any) -> None:
        self._check_writable()
        if isinstance(key, str):
            children = self._require_mapping()
            if value is None:
                children.pop(key, None)
            else:
                children[key] = self.coerce(value)
        else:
            self._require_sequence()[key] = self.coerce(value)

    def __delitem__(self, key: str | int) -> None:
        self._check_writable()
        if isinstance(key, str):
            del self._require_mapping()[key]
        else:
            del self._require_sequence()[key]

    def append(self, value: Any) -> None:
        self._check_writable()
        self._require_sequence().append(self.coerce(value))

    def insert(self, index: int, value: Any) -> None:
        self._check_writable()
        self._require_sequence().insert(index, self.coerce(value))

    def make_read_only(self) -> AttributeList:
        self._read_only = True
        if self._children is not None:
            for child in self._children.values():
                child.make_read_only()
        elif self._items is not None:
            for item in self._items:
                item.make_read_only()
        return self

    # -- conversion --------------------------------------------------------

    def to_data(self) -> Any:
        """Return plain JSON-compatible Python values."""
        if self._children is not None:
            return {key: child.to_data() for key, child in self._children.items()}
        if self._items is not None:
            return [item.to_data() for item in self._items]
        return self._scalar

    def _scalar_text(self) -> str:
        if self._kind is AttributeKind.NULL:
            return "null"
        return str(self._scalar)

    def to_short_string(self) -> str:
        if self._children is not None:
            return "{ ... }"
        if self._items is not None:
            return "[ ... ]"
        return self._scalar_text()

    def to_long_string(self) -> str:
        if self._children is not None:
            inner = ", ".join(f'"{key}" : {child.to_long_string()}' for key, child in self._children.items())
            return "{ " + inner + " }"
        if self._items is not None:
            return "[ " + ", ".join(item.to_long_string() for item in self._items) + " ]"
        return self._scalar_text()

    def __str__(self) -> str:
        if self._children is not None:
            inner = ", ".join(f'"{key}" : {child.to_short_string()}' for key, child in self._children.items())
            return "{ " + inner + " }"
        if self._items is not None:
            return "[ " + ", ".join(item.to_short_string() for item in self._items) + " ]"
        return self._scalar_text()

    def __repr__(self) -> str:
        flag = ", read_only" if self._read_only else ""
        return f"AttributeList({self._kind.value}{flag}: {self})"
