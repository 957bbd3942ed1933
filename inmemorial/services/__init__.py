"""Services - the operations behind the HTTP routes."""

from inmemorial.services.users import UserService
from inmemorial.services.memorials import MemorialService, UPDATABLE_FIELDS
from inmemorial.services.tributes import TributeService

__all__ = [
    "UserService",
    "MemorialService",
    "TributeService",
    "UPDATABLE_FIELDS",
]
