"""
Collections component - typed entity collections over the key/value store.
"""

from ._impl import CollectionRepo, IdSetRepo, load_value
from .ports import CollectionRepoPort, IdSetRepoPort

__all__ = [
    "CollectionRepo",
    "CollectionRepoPort",
    "IdSetRepo",
    "IdSetRepoPort",
    "load_value",
]
