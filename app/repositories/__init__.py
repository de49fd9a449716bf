"""
app/repositories package marker.
"""

from app.repositories.seed_record_repository import SeedRecordError, SeedRecordPayload, SeedRecordRepository

__all__ = [
    "SeedRecordError",
    "SeedRecordPayload",
    "SeedRecordRepository",
]
