"""Decide whether a workload has been unready long enough to lose its PDB."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from .resources import PodObservation, Workload
from .utils import InvalidDurationError, parse_duration

logger = logging.getLogger(__name__)


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def unready_duration(pod: PodObservation, now: datetime) -> timedelta:
    """
    How long the pod has been continuously unready.

    Ready pods, pods without a Ready condition and conditions without a
    transition time count as zero.
    """
    if pod.ready is not False or pod.last_transition_time is None:
        return timedelta(0)

    elapsed = _utc(now) - _utc(pod.last_transition_time)
    return max(elapsed, timedelta(0))


def min_unready_duration(pods: Sequence[PodObservation], now: datetime) -> Optional[timedelta]:
    """Smallest unready duration across the pods, None if there are none."""
    durations = [unready_duration(pod, now) for pod in pods]
    if not durations:
        return None
    return min(durations)


def is_stuck_unready(
    pods: Sequence[PodObservation],
    effective_ttl: timedelta,
    now: Optional[datetime] = None
) -> bool:
    """
    Check whether every pod has been unready for at least effective_ttl.

    A zero TTL disables the check and an empty pod set is never stuck.
    """
    if effective_ttl <= timedelta(0):
        return False

    now = now or datetime.now(timezone.utc)
    shortest = min_unready_duration(pods, now)
    if shortest is None:
        return False

    return shortest >= effective_ttl


def effective_ttl(workload: Workload, default_ttl: timedelta, annotation: str) -> timedelta:
    """
    Resolve the TTL for a workload.

    Args:
        workload: The workload, whose annotations may carry an override
        default_ttl: Controller wide default
        annotation: Annotation key holding the override

    Returns:
        The override if it parses as a non-negative duration, else default_ttl
    """
    raw = workload.annotations.get(annotation)
    if raw is None:
        return default_ttl

    try:
        ttl = parse_duration(raw)
    except InvalidDurationError:
        logger.warning(
            f"Ignoring invalid {annotation}={raw!r} on {workload.key}, using default"
        )
        return default_ttl

    if ttl < timedelta(0):
        logger.warning(
            f"Ignoring negative {annotation}={raw!r} on {workload.key}, using default"
        )
        return default_ttl

    return ttl
