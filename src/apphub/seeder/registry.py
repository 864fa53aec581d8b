from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Type

from faker import Faker
from sqlalchemy.orm import Session

from .base import BaseSeeder

logger = logging.getLogger(__name__)


@dataclass
class SeedReport:
    ran: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class SeederRegistry:
    _seeders: List[Type[BaseSeeder]] = []

    @classmethod
    def register(cls, seeder_cls: Type[BaseSeeder]) -> Type[BaseSeeder]:
        if seeder_cls not in cls._seeders:
            cls._seeders.append(seeder_cls)
        return seeder_cls

    @classmethod
    def seeders(cls, *, include_demo: bool = True) -> List[Type[BaseSeeder]]:
        selected = [s for s in cls._seeders if include_demo or not s.demo]
        return sorted(selected, key=lambda s: s.priority)

    @classmethod
    def run_all(
        cls, session: Session, *, include_demo: bool = True, seed: Optional[int] = None
    ) -> SeedReport:
        """Run the selected seeders in priority order, committing after each one."""
        if seed is not None:
            Faker.seed(seed)
        fake = Faker()
        report = SeedReport()

        for seeder_cls in cls.seeders(include_demo=include_demo):
            seeder = seeder_cls(session, fake)
            if not seeder.should_run():
                seeder.log("Nothing to do.")
                report.skipped.append(seeder.name)
                continue
            try:
                seeder.run()
                session.commit()
            except Exception:
                session.rollback()
                logger.exception("Seeder %s failed", seeder.name)
                raise
            seeder.log("Completed.")
            report.ran.append(seeder.name)

        logger.info("Seeding finished: %d ran, %d skipped", len(report.ran), len(report.skipped))
        return report
