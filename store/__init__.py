"""
Annotation store and its persistence ports.

    store = AnnotationStore(NearestTownResolver(), FilePort("data/storage"))
    store.add(-33.9, 18.4, note="clinic referral")
"""
from .annotations import AnnotationStore, DEFAULT_KEY, store_from_config
from .ports import FilePort, InMemoryPort, PersistencePort, port_from_config

__all__ = ["AnnotationStore", "DEFAULT_KEY", "store_from_config", "FilePort", "InMemoryPort", "PersistencePort", "port_from_config"]
