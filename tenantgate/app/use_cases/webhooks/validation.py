from typing import Iterable, Optional

import httpx

from tenantgate.domain.entities import AVAILABLE_EVENTS
from tenantgate.domain.errors import ValidationError

MAX_RETRIES_RANGE = (0, 10)
RETRY_DELAY_RANGE = (5, 3600)


def validate_url(url: str) -> Optional[ValidationError]:
    """http(s) URL that the delivery client can send to; reachability is not checked"""
    invalid = ValidationError("The url must be a valid http or https URL")
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return invalid
    if parsed.scheme not in ("http", "https") or not parsed.host:
        return invalid
    return None


def validate_events(events: Iterable[str]) -> Optional[ValidationError]:
    events = list(events)
    if not events:
        return ValidationError("At least one event is required")
    unknown = sorted(set(events) - set(AVAILABLE_EVENTS))
    if unknown:
        return ValidationError(f"Unknown events: {', '.join(unknown)}")
    return None


def validate_retry_policy(
    max_retries: Optional[int], retry_delay: Optional[int]
) -> Optional[ValidationError]:
    low, high = MAX_RETRIES_RANGE
    if max_retries is not None and not low <= max_retries <= high:
        return ValidationError(f"max_retries must be between {low} and {high}")
    low, high = RETRY_DELAY_RANGE
    if retry_delay is not None and not low <= retry_delay <= high:
        return ValidationError(f"retry_delay must be between {low} and {high} seconds")
    return None
