"""Models module initialization - import all models here."""
from app.models.kv_entry import KVEntry

__all__ = ["KVEntry"]
