"""Statistics service - uptime and latency aggregates over check history.

All reads. Every operation works on a service with no history at all and
returns the defaults the status page expects: no recorded failures means
100% uptime, whatever the hit count.
"""
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models import Failure, Hit, Service

TIME_FORMAT = "%A %I:%M%p, %b %d %Y"


def uptime_percent(hits: int, failures: int) -> int:
    """Share of hits among all checks, as a percentage rounded half up.

    Defined as 100 when there are no failures, including when there are
    no hits either.
    """
    if failures == 0:
        return 100
    total = hits + failures
    # Half up: 12.5 gives 13
    return (hits * 200 + total) // (total * 2)


class StatsService:
    """Read-side aggregation over hits and failures."""

    def __init__(self, window_hours: Optional[int] = None, limited_hits_count: Optional[int] = None):
        self._window_hours = window_hours
        self._limited_hits_count = limited_hits_count

    @property
    def window(self) -> timedelta:
        return timedelta(hours=self._window_hours or settings.online_window_hours)

    @property
    def limited_hits_count(self) -> int:
        return self._limited_hits_count or settings.limited_hits_count

    async def total_hits(self, session: AsyncSession, service: Service) -> int:
        result = await session.execute(
            select(func.count(Hit.id)).where(Hit.service_id == service.id)
        )
        return result.scalar_one()

    async def total_hits_since(self, session: AsyncSession, service: Service, since: datetime) -> int:
        result = await session.execute(
            select(func.count(Hit.id)).where(Hit.service_id == service.id, Hit.created_at >= since)
        )
        return result.scalar_one()

    async def total_failures(self, session: AsyncSession, service: Service) -> int:
        result = await session.execute(
            select(func.count(Failure.id)).where(Failure.service_id == service.id)
        )
        return result.scalar_one()

    async def total_failures_since(self, session: AsyncSession, service: Service, since: datetime) -> int:
        result = await session.execute(
            select(func.count(Failure.id)).where(
                Failure.service_id == service.id, Failure.created_at >= since
            )
        )
        return result.scalar_one()

    async def sum(self, session: AsyncSession, service: Service) -> float:
        """Total latency of all hits, in seconds."""
        result = await session.execute(
            select(func.coalesce(func.sum(Hit.latency), 0.0)).where(Hit.service_id == service.id)
        )
        return float(result.scalar_one())

    async def avg_time(self, session: AsyncSession, service: Service) -> int:
        """Average hit latency in milliseconds."""
        result = await session.execute(
            select(func.avg(Hit.latency)).where(Hit.service_id == service.id)
        )
        avg = result.scalar_one()
        return round(avg * 1000) if avg is not None else 0

    async def hits(self, session: AsyncSession, service: Service) -> List[Hit]:
        """All hits, oldest first."""
        result = await session.execute(
            select(Hit).where(Hit.service_id == service.id).order_by(Hit.id)
        )
        return list(result.scalars().all())

    async def limited_hits(self, session: AsyncSession, service: Service, limit: Optional[int] = None) -> List[Hit]:
        """Most recent hits, newest first."""
        result = await session.execute(
            select(Hit)
            .where(Hit.service_id == service.id)
            .order_by(Hit.id.desc())
            .limit(limit or self.limited_hits_count)
        )
        return list(result.scalars().all())

    async def limited_failures(self, session: AsyncSession, service: Service, limit: int = 10) -> List[Failure]:
        """Most recent failures, newest first."""
        result = await session.execute(
            select(Failure)
            .where(Failure.service_id == service.id)
            .order_by(Failure.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def online_since(self, session: AsyncSession, service: Service, since: datetime) -> float:
        failures = await self.total_failures_since(session, service, since)
        if failures == 0:
            return 100.0
        hits = await self.total_hits_since(session, service, since)
        return float(uptime_percent(hits, failures))

    async def online_24(self, session: AsyncSession, service: Service) -> float:
        """Uptime percentage over the trailing window (24 hours by default)."""
        return await self.online_since(session, service, datetime.utcnow() - self.window)

    async def avg_uptime(self, session: AsyncSession, service: Service) -> str:
        """Lifetime uptime percentage as an integer string."""
        failures = await self.total_failures(session, service)
        if failures == 0:
            return "100"
        hits = await self.total_hits(session, service)
        return str(uptime_percent(hits, failures))

    async def small_text(self, session: AsyncSession, service: Service) -> str:
        """One-line current status, e.g. "Online since Monday 03:04PM, Jan 02 2006"."""
        if service.online:
            since = await self._first_after_latest(session, service, Hit, Failure)
            label = "Online"
        else:
            since = await self._first_after_latest(session, service, Failure, Hit)
            label = "Offline"
        if since is None:
            # Latest row is of the other kind, e.g. an externally reported failure
            since = await self._latest(session, service, Hit if service.online else Failure)
        since = since or service.created_at or datetime.utcnow()
        return f"{label} since {since.strftime(TIME_FORMAT)}"

    async def _first_after_latest(self, session: AsyncSession, service: Service, current, opposite) -> Optional[datetime]:
        """Start of the current run: the first `current` row after the latest `opposite` row."""
        latest_opposite = await self._latest(session, service, opposite)

        query = select(current.created_at).where(current.service_id == service.id)
        if latest_opposite is not None:
            query = query.where(current.created_at > latest_opposite)
        result = await session.execute(query.order_by(current.id).limit(1))
        return result.scalar_one_or_none()

    async def _latest(self, session: AsyncSession, service: Service, model) -> Optional[datetime]:
        result = await session.execute(
            select(model.created_at)
            .where(model.service_id == service.id)
            .order_by(model.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def downtime(self, session: AsyncSession, service: Service) -> timedelta:
        """How long an offline service has gone without a hit."""
        if service.online:
            return timedelta(0)
        last_hit = await self._latest(session, service, Hit)
        since = last_hit or service.created_at
        if since is None:
            return timedelta(0)
        return max(datetime.utcnow() - since, timedelta(0))

    async def graph_data(self, session: AsyncSession, service: Service) -> List[dict]:
        """Average latency per hour over the trailing window, oldest first.

        Hours without hits are left out.
        """
        cutoff = datetime.utcnow() - self.window
        result = await session.execute(
            select(Hit.created_at, Hit.latency)
            .where(Hit.service_id == service.id, Hit.created_at >= cutoff)
            .order_by(Hit.id)
        )
        buckets = {}
        for created_at, latency in result.all():
            hour = created_at.replace(minute=0, second=0, microsecond=0)
            buckets.setdefault(hour, []).append(latency)

        return [
            {"x": hour, "y": round(sum(values) / len(values) * 1000)}
            for hour, values in sorted(buckets.items())
        ]

    async def count_online(self, session: AsyncSession) -> int:
        """Number of services whose last check found them online."""
        result = await session.execute(
            select(func.count(Service.id)).where(Service.online.is_(True))
        )
        return result.scalar_one()


# Global instance
stats_service = StatsService()
