"""
The `structfuzz.mutators` package holds the per-type registrations: for every
type of the document model, the list of corruptions that apply to it.

`register_default_mutators` fills a catalog with all of them. Base sets are
declared first so that they end up ahead of the type-specific entries.
"""

from structfuzz.catalog import MutatorCatalog
from structfuzz.model import Element
from structfuzz.mutators.common import ELEMENT_BASE
from structfuzz.mutators.elements import register_element_mutators
from structfuzz.mutators.primitive import register_primitive_mutators
from structfuzz.mutators.resources import register_resource_mutators


def register_default_mutators(catalog: MutatorCatalog) -> MutatorCatalog:
    catalog.set_base(Element, ELEMENT_BASE)
    register_primitive_mutators(catalog)
    register_element_mutators(catalog)
    register_resource_mutators(catalog)
    return catalog


__all__ = [
    "register_default_mutators",
    "register_element_mutators",
    "register_primitive_mutators",
    "register_resource_mutators",
]
