"""
Error taxonomy for schema-driven data access
"""


class SchemaBrowserError(Exception):
    """Base class for all schema browser errors"""


class CatalogFetchError(SchemaBrowserError):
    """Column or index metadata could not be fetched; schema is unknown"""


class NoPrimaryKeyError(SchemaBrowserError):
    """Row-level update/delete requested on a table without a primary key"""

    def __init__(self, table: str):
        super().__init__(f"Table {table} has no primary key; row edit and delete are disabled")
        self.table = table


class ExecutionError(SchemaBrowserError):
    """The store rejected or failed a statement. The message is the driver's text verbatim."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QueryGenerationError(SchemaBrowserError):
    """The text-to-query service failed or returned nothing usable"""
