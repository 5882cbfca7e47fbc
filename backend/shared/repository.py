"""
Base repository for Supabase table access.

Repositories own one table each. Queries run through ``_execute`` so
transport and PostgREST failures surface as portal exceptions rather
than client-library errors.
"""

from typing import Callable, Generic, TypeVar, Union

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from .exceptions import ExternalServiceError, PortalError

T = TypeVar("T")
R = TypeVar("R")

StoreError = Union[httpx.HTTPError, APIError]


class BaseRepository(Generic[T]):
    """
    Base class for table repositories.

    Subclasses implement the domain queries against ``self._rows()``,
    map rows to ``T`` themselves, and may override ``_translate_error``
    to raise module-specific exceptions.
    """

    service_name = "database"

    def __init__(self, db: Client, table: str) -> None:
        self._db = db
        self._table = table

    @property
    def table(self) -> str:
        return self._table

    def _rows(self):
        """Query builder for the repository's table."""
        return self._db.table(self._table)

    def _execute(self, query: Callable[[], R]) -> R:
        try:
            return query()
        except (httpx.HTTPError, APIError) as e:
            raise self._translate_error(e) from e

    def _translate_error(self, error: StoreError) -> PortalError:
        if isinstance(error, APIError):
            message = error.message or f"{self._table} request failed"
            details = {"postgres_code": error.code, "table": self._table}
        else:
            message = str(error) or f"{self._table} request failed"
            details = {"table": self._table}
        return ExternalServiceError(message, service=self.service_name, details=details)
