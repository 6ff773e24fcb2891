"""
A compact structured-document model for the fuzzing engine to act on.

Nodes are plain dataclasses. Most fields are optional and start out absent, so
a freshly constructed instance is sparse. Each node offers the small accessor
protocol the mutators rely on:

- `has(name)` tells whether a field is populated,
- `ensure(name)` returns the field's node, constructing and attaching a
  default instance first when it is absent,
- `add(name)` appends a new default element to a repeated field,
- `attach(name, value)` sets a field and returns the value.

Polymorphic "value[x]"-style fields are modelled with `Choice`, a sum type
whose discriminant is the concrete type of its single active value.
"""

from __future__ import annotations

import dataclasses
import functools
import types
import typing
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, ClassVar, TypeVar

N = TypeVar("N", bound="Node")


class SynthesisError(Exception):
    """A default instance of the requested type cannot be constructed."""


# ---------------------------------------------------------------------------
# Choice elements
# ---------------------------------------------------------------------------


class Choice:
    """
    An exactly-one-of-N slot.

    `alternatives` lists the concrete node types that may be active. At most
    one value is held at a time; setting a new value replaces the old one, so
    two alternatives can never be populated together.
    """

    def __init__(self, *alternatives: type[Node]):
        if not alternatives:
            raise ValueError("A Choice needs at least one alternative")
        self.alternatives: tuple[type[Node], ...] = tuple(alternatives)
        self.value: Node | None = None

    @property
    def is_set(self) -> bool:
        return self.value is not None

    @property
    def active(self) -> type[Node] | None:
        """The discriminant: the type of the active alternative."""
        return type(self.value) if self.value is not None else None

    def set(self, value: N) -> N:
        if type(value) not in self.alternatives:
            names = ", ".join(alt.__name__ for alt in self.alternatives)
            raise TypeError(f"{type(value).__name__} is not one of the alternatives ({names})")
        self.value = value
        return value

    def clear(self) -> None:
        self.value = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Choice):
            return NotImplemented
        return self.alternatives == other.alternatives and self.value == other.value

    def __repr__(self) -> str:
        names = "|".join(alt.__name__ for alt in self.alternatives)
        return f"Choice[{names}]({self.value!r})"


def choice(*alternatives: type[Node] | str) -> Any:
    """
    Declare a Choice dataclass field.

    Alternatives may be given by class or by class name, the latter for types
    defined further down in this module.
    """

    def factory() -> Choice:
        resolved = [globals()[alt] if isinstance(alt, str) else alt for alt in alternatives]
        return Choice(*resolved)

    return field(default_factory=factory)


# ---------------------------------------------------------------------------
# Field introspection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldSpec:
    name: str
    target: Any
    repeated: bool = False
    is_choice: bool = False

    @property
    def is_node(self) -> bool:
        return isinstance(self.target, type) and issubclass(self.target, Node)


def _unwrap_hint(name: str, hint: Any) -> FieldSpec:
    origin = typing.get_origin(hint)
    if origin in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(args) != 1:
            raise TypeError(f"Field {name!r} has an unsupported union type {hint!r}")
        return _unwrap_hint(name, args[0])
    if origin is list:
        (item,) = typing.get_args(hint)
        return FieldSpec(name, item, repeated=True)
    if hint is Choice:
        return FieldSpec(name, Choice, is_choice=True)
    return FieldSpec(name, hint)


@functools.lru_cache(maxsize=None)
def field_specs(cls: type[Node]) -> dict[str, FieldSpec]:
    """Resolve the declared fields of a node class, in declaration order."""
    hints = typing.get_type_hints(cls)
    return {f.name: _unwrap_hint(f.name, hints[f.name]) for f in dataclasses.fields(cls)}


def create_default(cls: type[N]) -> N:
    """Construct the default (empty) instance of a concrete node type."""
    if not (isinstance(cls, type) and issubclass(cls, Node)):
        raise SynthesisError(f"{cls!r} is not a document node type")
    if cls.abstract:
        raise SynthesisError(f"{cls.__name__} is abstract and has no default instance")
    try:
        return cls()
    except TypeError as e:
        raise SynthesisError(f"Could not construct {cls.__name__}: {e}") from e


# ---------------------------------------------------------------------------
# Base node types
# ---------------------------------------------------------------------------


@dataclass
class Node:
    """Base of the document type system."""

    abstract: ClassVar[bool] = True

    @property
    def type_name(self) -> str:
        return type(self).__name__

    def spec(self, name: str) -> FieldSpec:
        try:
            return field_specs(type(self))[name]
        except KeyError:
            raise AttributeError(f"{self.type_name} has no field {name!r}") from None

    def has(self, name: str) -> bool:
        value = getattr(self, name)
        if isinstance(value, Choice):
            return value.is_set
        if isinstance(value, list):
            return bool(value)
        return value is not None

    def ensure(self, name: str, factory: Callable[[type], Any] | None = None) -> Any:
        """
        Return the node held by `name`, attaching a default instance when absent.

        `factory` builds the missing instance from its type; the plain default
        constructor is used when omitted.
        """
        spec = self.spec(name)
        value = getattr(self, name)
        if spec.repeated or spec.is_choice:
            return value
        if value is None:
            if not spec.is_node:
                raise SynthesisError(f"{self.type_name}.{name} does not hold a node")
            value = (factory or create_default)(spec.target)
            setattr(self, name, value)
        return value

    def add(self, name: str, factory: Callable[[type], Any] | None = None) -> Any:
        """Append a default instance to the repeated field `name` and return it."""
        spec = self.spec(name)
        if not spec.repeated:
            raise AttributeError(f"{self.type_name}.{name} is not a repeated field")
        item = (factory or create_default)(spec.target)
        getattr(self, name).append(item)
        return item

    def attach(self, name: str, value: Any) -> Any:
        self.spec(name)
        setattr(self, name, value)
        return value


@dataclass
class Element(Node):
    id: str | None = None
    extension: list[Extension] = field(default_factory=list)


@dataclass
class PrimitiveElement(Element):
    """An element wrapping a single scalar `value`."""


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class NarrativeStatus(str, Enum):
    GENERATED = "generated"
    EXTENSIONS = "extensions"
    ADDITIONAL = "additional"
    EMPTY = "empty"


class IdentifierUse(str, Enum):
    USUAL = "usual"
    OFFICIAL = "official"
    TEMP = "temp"
    SECONDARY = "secondary"
    OLD = "old"


class NameUse(str, Enum):
    USUAL = "usual"
    OFFICIAL = "official"
    TEMP = "temp"
    NICKNAME = "nickname"
    ANONYMOUS = "anonymous"
    OLD = "old"
    MAIDEN = "maiden"


class QuantityComparator(str, Enum):
    LESS_THAN = "<"
    LESS_OR_EQUAL = "<="
    GREATER_OR_EQUAL = ">="
    GREATER_THAN = ">"


class AdministrativeGender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


class BundleType(str, Enum):
    DOCUMENT = "document"
    MESSAGE = "message"
    TRANSACTION = "transaction"
    TRANSACTION_RESPONSE = "transaction-response"
    BATCH = "batch"
    BATCH_RESPONSE = "batch-response"
    HISTORY = "history"
    SEARCHSET = "searchset"
    COLLECTION = "collection"


class ObservationStatus(str, Enum):
    REGISTERED = "registered"
    PRELIMINARY = "preliminary"
    FINAL = "final"
    AMENDED = "amended"
    CORRECTED = "corrected"
    CANCELLED = "cancelled"
    ENTERED_IN_ERROR = "entered-in-error"
    UNKNOWN = "unknown"


class MedicationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ENTERED_IN_ERROR = "entered-in-error"


class TaskStatus(str, Enum):
    DRAFT = "draft"
    REQUESTED = "requested"
    RECEIVED = "received"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    READY = "ready"
    CANCELLED = "cancelled"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    FAILED = "failed"
    COMPLETED = "completed"
    ENTERED_IN_ERROR = "entered-in-error"


class TaskIntent(str, Enum):
    UNKNOWN = "unknown"
    PROPOSAL = "proposal"
    PLAN = "plan"
    ORDER = "order"
    ORIGINAL_ORDER = "original-order"
    REFLEX_ORDER = "reflex-order"
    FILLER_ORDER = "filler-order"
    INSTANCE_ORDER = "instance-order"
    OPTION = "option"


# ---------------------------------------------------------------------------
# Primitive elements
# ---------------------------------------------------------------------------


@dataclass
class StringType(PrimitiveElement):
    abstract: ClassVar[bool] = False
    value: str | None = None


@dataclass
class UriType(PrimitiveElement):
    abstract: ClassVar[bool] = False
    value: str | None = None


@dataclass
class CodeType(PrimitiveElement):
    abstract: ClassVar[bool] = False
    value: str | None = None


@dataclass
class IdType(PrimitiveElement):
    abstract: ClassVar[bool] = False
    value: str | None = None


@dataclass
class BooleanType(PrimitiveElement):
    abstract: ClassVar[bool] = False
    value: bool | None = None


@dataclass
class IntegerType(PrimitiveElement):
    abstract: ClassVar[bool] = False
    value: int | None = None


@dataclass
class DecimalType(PrimitiveElement):
    abstract: ClassVar[bool] = False
    value: Decimal | None = None


@dataclass
class DateTimeType(PrimitiveElement):
    abstract: ClassVar[bool] = False
    value: str | None = None


@dataclass
class DateType(PrimitiveElement):
    abstract: ClassVar[bool] = False
    value: str | None = None


# ---------------------------------------------------------------------------
# Complex elements
# ---------------------------------------------------------------------------


@dataclass
class Extension(Element):
    abstract: ClassVar[bool] = False
    url: str | None = None
    value: Choice = choice(
        "StringType",
        "BooleanType",
        "IntegerType",
        "CodeType",
        "DateTimeType",
        "Coding",
        "Identifier",
        "Reference",
        "Quantity",
        "Period",
    )


@dataclass
class Period(Element):
    abstract: ClassVar[bool] = False
    start: DateTimeType | None = None
    end: DateTimeType | None = None


@dataclass
class Coding(Element):
    abstract: ClassVar[bool] = False
    system: UriType | None = None
    version: StringType | None = None
    code: CodeType | None = None
    display: StringType | None = None
    user_selected: BooleanType | None = None


@dataclass
class CodeableConcept(Element):
    abstract: ClassVar[bool] = False
    coding: list[Coding] = field(default_factory=list)
    text: StringType | None = None


@dataclass
class Identifier(Element):
    abstract: ClassVar[bool] = False
    use: IdentifierUse | None = None
    system: UriType | None = None
    value: StringType | None = None
    period: Period | None = None


@dataclass
class Quantity(Element):
    abstract: ClassVar[bool] = False
    value: DecimalType | None = None
    comparator: QuantityComparator | None = None
    unit: StringType | None = None
    system: UriType | None = None
    code: CodeType | None = None


@dataclass
class Reference(Element):
    abstract: ClassVar[bool] = False
    reference: StringType | None = None
    type: UriType | None = None
    identifier: Identifier | None = None
    display: StringType | None = None


@dataclass
class Meta(Element):
    abstract: ClassVar[bool] = False
    version_id: IdType | None = None
    last_updated: DateTimeType | None = None
    profile: list[UriType] = field(default_factory=list)
    security: list[Coding] = field(default_factory=list)
    tag: list[Coding] = field(default_factory=list)


@dataclass
class Narrative(Element):
    abstract: ClassVar[bool] = False
    status: NarrativeStatus | None = None
    div: StringType | None = None


@dataclass
class HumanName(Element):
    abstract: ClassVar[bool] = False
    use: NameUse | None = None
    family: StringType | None = None
    given: list[StringType] = field(default_factory=list)
    period: Period | None = None


@dataclass
class BundleEntry(Element):
    abstract: ClassVar[bool] = False
    full_url: UriType | None = None
    resource: Resource | None = None


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@dataclass
class Resource(Node):
    """A self-contained document; may be embedded in other documents."""

    id: str | None = None
    meta: Meta | None = None
    language: CodeType | None = None
    implicit_rules: UriType | None = None


@dataclass
class DomainResource(Resource):
    """A resource carrying narrative, extensions and contained resources."""

    text: Narrative | None = None
    contained: list[Resource] = field(default_factory=list)
    extension: list[Extension] = field(default_factory=list)
    modifier_extension: list[Extension] = field(default_factory=list)


@dataclass
class Bundle(Resource):
    abstract: ClassVar[bool] = False
    identifier: Identifier | None = None
    type: BundleType | None = None
    timestamp: DateTimeType | None = None
    entry: list[BundleEntry] = field(default_factory=list)

    def add_entry(self, resource: Resource | None = None) -> BundleEntry:
        entry = BundleEntry(resource=resource)
        self.entry.append(entry)
        return entry


@dataclass
class Patient(DomainResource):
    abstract: ClassVar[bool] = False
    identifier: list[Identifier] = field(default_factory=list)
    active: BooleanType | None = None
    name: list[HumanName] = field(default_factory=list)
    gender: AdministrativeGender | None = None
    birth_date: DateType | None = None
    deceased: Choice = choice(BooleanType, DateTimeType)


@dataclass
class Observation(DomainResource):
    abstract: ClassVar[bool] = False
    identifier: list[Identifier] = field(default_factory=list)
    status: ObservationStatus | None = None
    code: CodeableConcept | None = None
    subject: Reference | None = None
    effective: Choice = choice(DateTimeType, Period)
    value: Choice = choice(Quantity, CodeableConcept, StringType, BooleanType, IntegerType, Period)


@dataclass
class Medication(DomainResource):
    abstract: ClassVar[bool] = False
    identifier: list[Identifier] = field(default_factory=list)
    code: CodeableConcept | None = None
    status: MedicationStatus | None = None
    manufacturer: Reference | None = None


@dataclass
class Task(DomainResource):
    abstract: ClassVar[bool] = False
    identifier: list[Identifier] = field(default_factory=list)
    status: TaskStatus | None = None
    intent: TaskIntent | None = None
    description: StringType | None = None
    focus: Reference | None = None
    authored_on: DateTimeType | None = None


RESOURCE_TYPES: dict[str, type[Resource]] = {
    cls.__name__: cls for cls in (Bundle, Patient, Observation, Medication, Task)
}

ELEMENT_TYPES: dict[str, type[Element]] = {
    cls.__name__: cls
    for cls in (
        StringType,
        UriType,
        CodeType,
        IdType,
        BooleanType,
        IntegerType,
        DecimalType,
        DateTimeType,
        DateType,
        Extension,
        Period,
        Coding,
        CodeableConcept,
        Identifier,
        Quantity,
        Reference,
        Meta,
        Narrative,
        HumanName,
        BundleEntry,
    )
}


# ---------------------------------------------------------------------------
# Dict conversion
# ---------------------------------------------------------------------------


def _encode(value: Any) -> Any:
    if isinstance(value, Node):
        return to_dict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    return value


def to_dict(node: Node) -> dict[str, Any]:
    """Convert a node graph into JSON-ready dictionaries, skipping absent fields."""
    data: dict[str, Any] = {}
    if isinstance(node, Resource):
        data["resourceType"] = node.type_name
    for spec in field_specs(type(node)).values():
        value = getattr(node, spec.name)
        if isinstance(value, Choice):
            if value.is_set:
                data[spec.name] = {value.value.type_name: _encode(value.value)}
        elif isinstance(value, list):
            if value:
                data[spec.name] = [_encode(item) for item in value]
        elif value is not None:
            data[spec.name] = _encode(value)
    return data


def _decode(target: Any, raw: Any) -> Any:
    if isinstance(target, type) and issubclass(target, Node):
        return from_dict(target, raw)
    if isinstance(target, type) and issubclass(target, Enum):
        return target(raw)
    if target is Decimal:
        return Decimal(str(raw))
    return raw


def from_dict(cls: type[N], data: dict[str, Any]) -> N:
    """
    Rebuild a node graph from the output of `to_dict`.

    For (abstract) resource targets the concrete type is taken from the
    `resourceType` key.
    """
    if issubclass(cls, Resource):
        type_name = data.get("resourceType", cls.__name__)
        if type_name not in RESOURCE_TYPES:
            raise ValueError(f"Unknown resource type {type_name!r}")
        cls = RESOURCE_TYPES[type_name]  # type: ignore[assignment]

    node = create_default(cls)
    for spec in field_specs(cls).values():
        raw = data.get(spec.name)
        if raw is None:
            continue
        if spec.is_choice:
            slot: Choice = getattr(node, spec.name)
            ((alt_name, alt_raw),) = raw.items()
            alternatives = {alt.__name__: alt for alt in slot.alternatives}
            if alt_name not in alternatives:
                raise ValueError(f"{alt_name!r} is not an alternative of {cls.__name__}.{spec.name}")
            slot.set(from_dict(alternatives[alt_name], alt_raw))
        elif spec.repeated:
            setattr(node, spec.name, [_decode(spec.target, item) for item in raw])
        else:
            setattr(node, spec.name, _decode(spec.target, raw))
    return node
