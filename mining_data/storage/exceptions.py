"""
Storage Errors

Raised by the storage layer for conditions the caller cannot safely
continue past. Entry points decide whether to exit, retry or degrade.
"""


class StorageError(Exception):
    """Base class for storage failures"""


class DatabaseConnectionError(StorageError):
    """The database server could not be reached"""


class SchemaVersionError(StorageError):
    """The schema version row could not be created or updated"""


class MinerResolutionError(StorageError):
    """A miner could not be looked up or created"""


class PoolNotFoundError(StorageError):
    """No pool exists for the requested algorithm"""

    def __init__(self, algorithm_id, algorithm_name=None):
        self.algorithm_id = algorithm_id
        self.algorithm_name = algorithm_name
        label = algorithm_name if algorithm_name else f"id {algorithm_id}"
        super().__init__(f"No pool found for this algorithm: {label}")
