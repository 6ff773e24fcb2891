"""
Registrations for resources, including the base sets shared by every
resource and every domain resource.
"""

from __future__ import annotations

from structfuzz.catalog import Mutator, MutatorCatalog
from structfuzz.context import EngineContext
from structfuzz.logbook import LogEntry, noop, parent
from structfuzz.model import (
    AdministrativeGender,
    Bundle,
    BundleType,
    DomainResource,
    Medication,
    MedicationStatus,
    Meta,
    Observation,
    ObservationStatus,
    Patient,
    Resource,
    TaskIntent,
    TaskStatus,
    Task,
    UriType,
)
from structfuzz.mutators.common import child, children, choice_of, enum_field, fuzz_identity

# -- Base sets --------------------------------------------------------------


def fuzz_contained(ctx: EngineContext, resource: DomainResource) -> LogEntry:
    return ctx.fuzz_child_resources(resource, resource.contained)


def add_random_contained(ctx: EngineContext, resource: DomainResource) -> LogEntry:
    if not ctx.randomness().child_dice.toss():
        return noop(f"do not add a contained resource to {resource.type_name}")
    contained = ctx.factory.create_random_resource()
    resource.contained.append(contained)
    message = (
        f"Add random Resource {contained.type_name} to {resource.type_name} "
        f"with ID {resource.id}"
    )
    return parent(message, ctx.fuzz_child(resource, False, lambda: contained))


# Identity is listed twice so that it is picked more often.
RESOURCE_BASE: list[Mutator] = [
    fuzz_identity,
    fuzz_identity,
    child("meta"),
    child("language"),
    child("implicit_rules"),
]

DOMAIN_RESOURCE_BASE: list[Mutator] = [
    children("extension"),
    children("modifier_extension"),
    child("text"),
    fuzz_contained,
    add_random_contained,
]


# -- Bundle -----------------------------------------------------------------


def fuzz_entry_resources(ctx: EngineContext, bundle: Bundle) -> LogEntry:
    resources = [entry.resource for entry in bundle.entry if entry.resource is not None]
    return ctx.fuzz_child_resources(bundle, resources)


def fuzz_entry_full_urls(ctx: EngineContext, bundle: Bundle) -> LogEntry:
    def first_full_url() -> UriType:
        return bundle.add_entry().attach("full_url", ctx.factory.create(UriType))

    urls = [entry.full_url for entry in bundle.entry if entry.full_url is not None]
    return ctx.fuzz_child_types(bundle, urls, first_full_url)


def add_random_entries(ctx: EngineContext, bundle: Bundle) -> LogEntry:
    rnd = ctx.randomness()
    amount = rnd.next_int(1, 3)
    entries = []
    for _ in range(amount):
        resource = ctx.factory.create_random_resource()
        resource.id = rnd.uuid()
        resource.meta = Meta(profile=[UriType(value=rnd.url())])
        bundle.add_entry(resource)
        if rnd.next_boolean():
            entries.append(ctx.fuzz_child(bundle, True, lambda: resource))
        else:
            entries.append(ctx.fuzz_child(resource, True, lambda: resource.meta))
    return parent(f"Randomly add {amount} entries to Bundle {bundle.id}", entries)


def register_resource_mutators(catalog: MutatorCatalog) -> None:
    catalog.set_base(Resource, RESOURCE_BASE)
    catalog.set_base(DomainResource, DOMAIN_RESOURCE_BASE)

    catalog.register(
        Bundle,
        [
            fuzz_entry_resources,
            child("identifier"),
            enum_field("type", BundleType),
            child("timestamp"),
            fuzz_entry_full_urls,
            add_random_entries,
        ],
    )
    catalog.register(
        Patient,
        [
            children("identifier"),
            child("active"),
            children("name"),
            enum_field("gender", AdministrativeGender),
            child("birth_date"),
            choice_of("deceased"),
        ],
    )
    catalog.register(
        Observation,
        [
            children("identifier"),
            enum_field("status", ObservationStatus),
            child("code"),
            child("subject"),
            choice_of("effective"),
            choice_of("value"),
        ],
    )
    catalog.register(
        Medication,
        [
            children("identifier"),
            child("code"),
            enum_field("status", MedicationStatus),
            child("manufacturer"),
        ],
    )
    catalog.register(
        Task,
        [
            children("identifier"),
            enum_field("status", TaskStatus),
            enum_field("intent", TaskIntent),
            child("description"),
            child("focus"),
            child("authored_on"),
        ],
    )
