# salonbook/core/timeline.py

from typing import List, NamedTuple, Optional, Sequence

from salonbook.core.timewindow import TimeWindow, merge
from salonbook.errors import InvalidServiceConfiguration
from salonbook.schemas import PhaseKind, ServiceDurationProfile


class Phase(NamedTuple):
    kind: PhaseKind
    window: TimeWindow
    service: Optional[str] = None


class ServiceTimeline(NamedTuple):
    start: int
    end: int
    phases: List[Phase]
    occupied: List[TimeWindow]

    @property
    def span(self) -> TimeWindow:
        return TimeWindow(self.start, self.end)

    @property
    def gaps(self) -> List[TimeWindow]:
        return [p.window for p in self.phases if p.kind == PhaseKind.gap]


def validate_profile(profile: ServiceDurationProfile) -> ServiceDurationProfile:
    label = profile.name or "service"
    if profile.duration <= 0:
        raise InvalidServiceConfiguration(f"{label}: duration must be positive")
    if profile.processing_wait_time < 0 or profile.processing_duration < 0:
        raise InvalidServiceConfiguration(f"{label}: processing times cannot be negative")
    if profile.processing_wait_time + profile.processing_duration > profile.duration:
        raise InvalidServiceConfiguration(
            f"{label}: processing_wait_time + processing_duration "
            f"({profile.processing_wait_time} + {profile.processing_duration}) "
            f"exceeds duration ({profile.duration})"
        )
    return profile


def service_phases(start: int, profile: ServiceDurationProfile) -> List[Phase]:
    """Active / gap / active phases of one service, empty phases dropped."""
    end = start + profile.duration
    if not profile.has_gap:
        return [Phase(PhaseKind.active, TimeWindow(start, end), profile.name)]

    gap_start = start + profile.processing_wait_time
    gap_end = gap_start + profile.processing_duration
    phases = [
        Phase(PhaseKind.active, TimeWindow(start, gap_start), profile.name),
        Phase(PhaseKind.gap, TimeWindow(gap_start, gap_end), profile.name),
        Phase(PhaseKind.active, TimeWindow(gap_end, end), profile.name),
    ]
    return [p for p in phases if not p.window.is_empty()]


def build_timeline(start: int, services: Sequence[ServiceDurationProfile]) -> ServiceTimeline:
    """
    Lay services back to back from start.

    Each service starts where the previous one ended. The stylist is
    occupied during every active phase; gaps are free for other clients.
    """
    if not services:
        raise InvalidServiceConfiguration("At least one service is required")

    phases = []
    cursor = start
    for profile in services:
        validate_profile(profile)
        phases.extend(service_phases(cursor, profile))
        cursor += profile.duration

    occupied = merge(p.window for p in phases if p.kind == PhaseKind.active)
    return ServiceTimeline(start=start, end=cursor, phases=phases, occupied=occupied)
