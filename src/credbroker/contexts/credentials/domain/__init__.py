from .entities import STORED_SECRET_FIELDS, StoredSecret

__all__ = [
    "STORED_SECRET_FIELDS",
    "StoredSecret",
]
