"""
Module: stock_kernel.selectors.base
Responsibility: Common base for the read-only selectors over stock tables.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain DTOs; never from engines or services.

Invariants enforced:
    - Selectors only read.  No add, delete, flush or commit on the session.
    - Results leave as frozen domain DTOs, never as ORM instances.
    - The caller owns the session.  A stock query runs its reference read
      and its log read on the same session, one after the other.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from stock_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Read-only access to one primary table, parameterised by its model."""

    def __init__(self, session: Session):
        self.session = session
