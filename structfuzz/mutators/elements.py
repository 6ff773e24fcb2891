"""Registrations for the complex element types."""

from __future__ import annotations

from structfuzz.catalog import MutatorCatalog
from structfuzz.context import EngineContext
from structfuzz.logbook import LogEntry, noop, operation, parent
from structfuzz.model import (
    RESOURCE_TYPES,
    BundleEntry,
    CodeableConcept,
    Coding,
    Extension,
    HumanName,
    Identifier,
    IdentifierUse,
    Meta,
    Narrative,
    NarrativeStatus,
    NameUse,
    Period,
    Quantity,
    QuantityComparator,
    Reference,
    StringType,
    UriType,
)
from structfuzz.mutators.common import child, children, choice_of, enum_field, remove, scalar
from structfuzz.primitives import PrimitiveHint

# -- Extension --------------------------------------------------------------


def fuzz_child_extension(ctx: EngineContext, extension: Extension) -> LogEntry:
    nested = ctx.choose_one(extension.extension)
    if nested is None:
        return noop(f"Extension with ID '{extension.id}' does not have any child extensions")
    return ctx.fuzz_child(extension, True, lambda: nested)


def reshape_child_extensions(ctx: EngineContext, extension: Extension) -> LogEntry:
    """
    Drop a random subset of the child extensions; an extension without
    children and without a value gets a batch of random children instead.
    """
    if extension.extension:
        dropped = {id(ext) for ext in ctx.choose_many(extension.extension)}
        if not dropped:
            return noop(f"no child extensions selected for removal from extension {extension.id}")
        extension.extension = [ext for ext in extension.extension if id(ext) not in dropped]
        return operation(
            f"Remove {len(dropped)} child extension(s) from extension {extension.id}"
        )
    if not extension.value.is_set:
        amount = ctx.randomness().next_int(1, 10)
        for idx in range(amount):
            nested = ctx.factory.create(Extension)
            nested.url = ctx.randomness().url(idx)
            nested.value.set(ctx.factory.create_random_element(nested.value.alternatives))
            extension.extension.append(nested)
        return operation(f"Add {amount} child extension(s) to extension {extension.id}")
    return ctx.fuzz_choice(extension, extension.value)


# -- Coding -----------------------------------------------------------------


def set_random_coding_version(ctx: EngineContext, coding: Coding) -> LogEntry:
    version = ctx.randomness().version()
    if coding.version is not None and coding.version.value == version:
        return noop(f"Coding already has Version {version}")
    coding.version = StringType(value=version)
    system = coding.system.value if coding.system else None
    code = coding.code.value if coding.code else None
    return operation(f"Set random Version {version} to Coding {system} {code}")


# -- Identifier -------------------------------------------------------------


def append_system_version(ctx: EngineContext, identifier: Identifier) -> LogEntry:
    system = ctx.ensure(identifier, "system")
    old = system.value
    system.value = f"{old}|{ctx.randomness().version()}"
    return operation(f"Append random Version to IdentifierSystem: {old} -> {system.value}")


def change_identifier_value(ctx: EngineContext, identifier: Identifier) -> LogEntry:
    value = identifier.value.value if identifier.value else None
    if value and ctx.randomness().next_boolean():
        new = value[0] + value
    elif value:
        new = value + value[-1]
    else:
        new = ctx.randomness().regex_string("[0-9]{5,30}")
    identifier.value = StringType(value=new)
    return operation(f"Change Identifier Value: {value} -> {new}")


def swap_identifier_value_and_system(ctx: EngineContext, identifier: Identifier) -> LogEntry:
    value = identifier.value.value if identifier.value else None
    system = identifier.system.value if identifier.system else None
    if value == system:
        return noop(f"Identifier Value and System are both {value!r}, nothing to swap")
    identifier.value = StringType(value=system) if system is not None else None
    identifier.system = UriType(value=value) if value is not None else None
    return operation(f"Swap Identifier Value and System: {value} <-> {system}")


# -- Period -----------------------------------------------------------------


def swap_period_bounds(ctx: EngineContext, period: Period) -> LogEntry:
    if not period.has("start") and not period.has("end"):
        return noop("Period has neither start nor end to swap")
    period.start, period.end = period.end, period.start
    return operation("Swap start and end of Period")


# -- Reference --------------------------------------------------------------


def replace_reference_value(ctx: EngineContext, reference: Reference) -> LogEntry:
    """Replace either the type or the id part of a `Type/id` reference."""
    rnd = ctx.randomness()
    old = reference.reference.value if reference.reference else None
    tokens = old.split("/") if old else [rnd.pick_one(list(RESOURCE_TYPES)), rnd.uuid()]
    if len(tokens) == 2:
        if rnd.next_boolean():
            new = f"{tokens[0]}/{rnd.uuid()}"
        else:
            other_types = [name for name in RESOURCE_TYPES if name != tokens[0]]
            new = f"{rnd.pick_one(other_types)}/{tokens[1]}"
    else:
        new = rnd.uuid()
    reference.reference = StringType(value=new)
    return operation(f"Replace Reference value: {old} -> {new}")


# -- Meta -------------------------------------------------------------------


def add_random_profiles(ctx: EngineContext, meta: Meta) -> LogEntry:
    rnd = ctx.randomness()
    entries = []
    for _ in range(rnd.next_int(1, 2)):
        profile = UriType(value=rnd.url(rnd.uuid()))
        meta.profile.append(profile)
        entries.append(ctx.fuzz_child("Fuzz new random Profile for Meta", True, lambda: profile))
    return parent("Add random Profiles to Meta", entries)


# -- Narrative --------------------------------------------------------------


def change_narrative_status(ctx: EngineContext, narrative: Narrative) -> LogEntry:
    old = narrative.status or NarrativeStatus.GENERATED
    new = ctx.choose_enum(NarrativeStatus, old)
    narrative.status = new
    return operation(f"Change Status of Narrative {narrative.id}: {old.value} -> {new.value}")


# -- BundleEntry ------------------------------------------------------------


def fuzz_entry_resource(ctx: EngineContext, entry: BundleEntry) -> LogEntry:
    if entry.resource is None:
        resource = entry.attach("resource", ctx.factory.create_random_resource())
        return ctx.fuzz_child(entry, False, lambda: resource)
    return ctx.fuzz_child_resources(entry, [entry.resource])


def register_element_mutators(catalog: MutatorCatalog) -> None:
    catalog.register(
        Extension,
        [
            scalar("url", PrimitiveHint.URI),
            choice_of("value"),
            fuzz_child_extension,
            reshape_child_extensions,
        ],
    )
    catalog.register(
        Coding,
        [
            child("system"),
            child("code"),
            child("display"),
            child("version"),
            child("user_selected"),
            set_random_coding_version,
        ],
    )
    catalog.register(CodeableConcept, [children("coding"), child("text")])
    catalog.register(
        Identifier,
        [
            child("system"),
            child("value"),
            child("period"),
            enum_field("use", IdentifierUse),
            append_system_version,
            change_identifier_value,
            remove("value"),
            swap_identifier_value_and_system,
            remove("system"),
        ],
    )
    catalog.register(Period, [child("start"), child("end"), swap_period_bounds])
    catalog.register(
        Quantity,
        [
            child("value"),
            child("unit"),
            child("system"),
            child("code"),
            enum_field("comparator", QuantityComparator),
        ],
    )
    catalog.register(
        Reference,
        [
            child("reference"),
            child("type"),
            child("display"),
            child("identifier"),
            replace_reference_value,
        ],
    )
    catalog.register(
        Meta,
        [
            child("version_id"),
            child("last_updated"),
            children("security"),
            children("profile"),
            children("tag"),
            add_random_profiles,
        ],
    )
    catalog.register(Narrative, [change_narrative_status, child("div")])
    catalog.register(
        HumanName,
        [
            enum_field("use", NameUse),
            child("family"),
            children("given"),
            child("period"),
        ],
    )
    catalog.register(BundleEntry, [child("full_url"), fuzz_entry_resource])
