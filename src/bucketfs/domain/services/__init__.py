"""Domain services."""

from bucketfs.domain.services.listing import iter_entries

__all__ = ["iter_entries"]
