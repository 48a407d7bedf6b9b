from enum import Enum
from typing import Generic, TypeVar, Optional
from pydantic import BaseModel

T = TypeVar("T")


class PersistenceStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


class ServiceResult(BaseModel, Generic[T]):
    """
    Outcome of a payment operation.

    ``data`` is the primary result; persistence is best-effort and reported
    separately, so a failed write never turns a created order into an error.
    """

    data: Optional[T] = None
    persistence: PersistenceStatus = PersistenceStatus.OK
    persistence_error: Optional[str] = None
