from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from faker import Faker
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class BaseSeeder(ABC):
    """
    Base class for AppHub data seeders.

    ``priority`` orders execution, lowest first: 0-100 for rows the app needs
    to boot (site settings), 500+ for demo catalog data. Seeders flagged
    ``demo`` only run when demo data was requested.
    """

    priority: int = 100
    demo: bool = False

    def __init__(self, session: Session, fake: Optional[Faker] = None):
        self.session = session
        self.fake = fake or Faker()

    @property
    def name(self) -> str:
        return type(self).__name__

    def should_run(self) -> bool:
        """Return False to skip, e.g. when the rows already exist."""
        return True

    @abstractmethod
    def run(self) -> None:
        ...

    def log(self, message: str) -> None:
        logger.info("[%s] %s", self.name, message)
