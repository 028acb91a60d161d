"""Cross-event statistics.

Reads every event once plus one grouped membership count, then partitions
and sums in memory. Nothing is written.
"""

from collections import Counter
from datetime import UTC, datetime

import structlog

from src.models.base import ensure_utc
from src.repositories.event_repo import EventRepository
from src.repositories.participant_repo import ParticipantRepository
from src.ticketing.schemas import (
    ParticipationTrend,
    StatisticsOverview,
    TicketUtilization,
)

logger = structlog.get_logger()


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


class EventStatisticsAggregator:
    """Builds the statistics overview across all events."""

    def __init__(self, events: EventRepository, participants: ParticipantRepository):
        self._events = events
        self._participants = participants

    async def compute_overview(self, now: datetime | None = None) -> StatisticsOverview:
        """Compute counts, utilization, monthly histogram and per-event trends.

        Args:
            now: Reference time for the active/completed/upcoming partition
                (defaults to the current UTC time)
        """
        now = ensure_utc(now) if now is not None else datetime.now(UTC)
        events = await self._events.get_all()
        counts = await self._participants.count_by_event()

        active = completed = upcoming = 0
        total_tickets = sold_tickets = 0
        by_month: Counter[str] = Counter()
        trends: list[ParticipationTrend] = []

        for event in events:
            if event.is_active(now):
                active += 1
            elif event.is_completed(now):
                completed += 1
            elif event.is_upcoming(now):
                upcoming += 1

            members = counts.get(event.id, 0)
            total_tickets += event.capacity
            sold_tickets += members
            by_month[event.start_date.strftime("%B")] += 1
            trends.append(
                ParticipationTrend(
                    event_id=event.id,
                    event_name=event.name,
                    total_tickets=event.capacity,
                    sold_tickets=members,
                    remaining_tickets=event.tickets_remaining,
                )
            )

        overview = StatisticsOverview(
            total_events=len(events),
            active_events=active,
            completed_events=completed,
            upcoming_events=upcoming,
            total_participants=sold_tickets,
            average_participants_per_event=_ratio(sold_tickets, len(events)),
            ticket_utilization=TicketUtilization(
                total_tickets=total_tickets,
                sold_tickets=sold_tickets,
                utilization_rate=_ratio(sold_tickets, total_tickets),
            ),
            events_by_month=dict(by_month),
            participation_trends=trends,
        )
        logger.debug(
            "statistics computed",
            total_events=overview.total_events,
            total_participants=overview.total_participants,
        )
        return overview
