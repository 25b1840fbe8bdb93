"""Availability policies for customer-facing listings.

The geo filter only answers set membership. How an endpoint reacts to an empty seller set
is a policy choice:
- MARK: list everything, flag each product `isAvailable`
- STRICT: list only products from sellers in range; otherwise return nothing plus a message
  telling the client what to do
"""

from dataclasses import dataclass
from enum import Enum

from marketplace.services.geo import GeoPoint

MESSAGE_LOCATION_REQUIRED = "Location is required to view products. Please enable location access."
MESSAGE_NO_SELLERS_NEARBY = "No sellers available in your area. Please update your location."


class AvailabilityPolicy(str, Enum):
    MARK = "mark"
    STRICT = "strict"


@dataclass(frozen=True)
class AvailabilityOutcome:
    """What a listing should do with a seller set.

    restrict_to: seller IDs the query must be limited to, or None for no restriction.
    An empty set means the listing is empty without querying.
    """

    restrict_to: frozenset[int] | None
    message: str | None
    location_resolved: bool

    @property
    def is_empty(self) -> bool:
        return self.restrict_to is not None and not self.restrict_to


def is_available(seller_id: int | None, nearby: set[int] | frozenset[int]) -> bool:
    """A product is available iff its seller is in range."""
    return seller_id is not None and seller_id in nearby


def resolve_availability(
    point: GeoPoint | None,
    nearby: set[int],
    policy: AvailabilityPolicy,
) -> AvailabilityOutcome:
    location_resolved = point is not None

    if policy == AvailabilityPolicy.MARK:
        return AvailabilityOutcome(restrict_to=None, message=None, location_resolved=location_resolved)

    if point is None:
        return AvailabilityOutcome(
            restrict_to=frozenset(),
            message=MESSAGE_LOCATION_REQUIRED,
            location_resolved=False,
        )
    if not nearby:
        return AvailabilityOutcome(
            restrict_to=frozenset(),
            message=MESSAGE_NO_SELLERS_NEARBY,
            location_resolved=True,
        )
    return AvailabilityOutcome(restrict_to=frozenset(nearby), message=None, location_resolved=True)
