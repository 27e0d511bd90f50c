"""Union of university-scoped and public events."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Protocol

from models import Event, UserProfile

logger = logging.getLogger(__name__)


class EventRepository(Protocol):
    def get_current_user(self, access_token: str) -> str: ...

    def get_profile(self, user_id: str) -> Optional[UserProfile]: ...

    def fetch_scoped_events(self, university: str, since: datetime) -> List[Event]: ...

    def fetch_public_events(self, since: datetime) -> List[Event]: ...


@dataclass
class MergeResult:
    events: List[Event] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    failed: bool = False


def start_of_today(now: Optional[datetime] = None) -> datetime:
    """Local midnight of the current day, timezone-aware."""
    now = (now or datetime.now()).astimezone()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class VisibilityMerger:
    """
    Fetches the events a viewer may see.

    Scoped and public partitions are disjoint, so the union is a plain
    concatenation. A failed partition degrades to empty; the merge only
    fails when every partition that was queried failed.
    """

    def __init__(self, repository: EventRepository):
        self.repository = repository

    async def merge(
        self, university: Optional[str], since: Optional[datetime] = None
    ) -> MergeResult:
        since = since or start_of_today()
        result = MergeResult()

        names = []
        calls = []
        if university:
            names.append("university")
            calls.append(
                asyncio.to_thread(self.repository.fetch_scoped_events, university, since)
            )
        else:
            logger.info("No university for viewer; querying public events only")
        names.append("public")
        calls.append(asyncio.to_thread(self.repository.fetch_public_events, since))

        outcomes = await asyncio.gather(*calls, return_exceptions=True)
        partitions = list(zip(names, outcomes))

        for name, outcome in partitions:
            if isinstance(outcome, Exception):
                logger.warning(f"{name} events unavailable, continuing without them: {outcome}")
                result.errors.append(f"{name}: {outcome}")
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.events.extend(outcome)

        result.failed = len(result.errors) == len(partitions)
        if result.failed:
            logger.error(f"All event queries failed: {result.errors}")
        else:
            logger.info(
                f"Merged {len(result.events)} events "
                f"(university={university or 'none'}, since={since.isoformat()})"
            )
        return result
