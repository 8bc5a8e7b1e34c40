from __future__ import annotations


class SeedError(RuntimeError):
    pass


class StoreUnavailable(SeedError):
    """The store could not be reached, or the lookup against it failed."""


class WriteFailure(SeedError):
    """The insert was rejected for a reason other than the record already existing."""


class InvalidTarget(SeedError):
    """The database or collection name is not one the store accepts."""
