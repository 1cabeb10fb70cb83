from fixtory import descriptors
from fixtory.config import configure
from fixtory.factories import Builder, Factory, FieldDescriptor, FieldKind, UnresolvedFieldError
from fixtory.persistence import IntegrityError, MemoryStore, Store, StoreError

gen = descriptors.Generators()
fake = descriptors.FakerProxy()
call = descriptors.CallDescriptor
lazy = descriptors.LazyDescriptor
seq = descriptors.SequenceDescriptor
sub = descriptors.SubFactoryDescriptor


__all__ = [
    "Builder",
    "Factory",
    "FieldDescriptor",
    "FieldKind",
    "IntegrityError",
    "MemoryStore",
    "Store",
    "StoreError",
    "UnresolvedFieldError",
    "call",
    "configure",
    "fake",
    "gen",
    "lazy",
    "seq",
    "sub",
]
