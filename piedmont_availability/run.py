import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from piedmont_availability import catalog, dates, token_acquisition
from piedmont_availability.availability import AvailabilityClient
from piedmont_availability.catalog import ServiceCatalog
from piedmont_availability.gateway import BookerGateway
from piedmont_availability.models import AvailabilityResponse, ServiceInfo
from piedmont_availability.token_cache import TokenCache

logger = logging.getLogger(__name__)

_default_client: Optional[AvailabilityClient] = None
_default_client_lock = threading.Lock()


def create_client() -> AvailabilityClient:
    """Wires token cache -> gateway -> catalog -> availability client."""
    token_cache = TokenCache(acquire=token_acquisition.BrowserTokenAcquirer())
    gateway = BookerGateway(token_cache)
    return AvailabilityClient(gateway, ServiceCatalog(gateway))


def get_default_client() -> AvailabilityClient:
    """Process-wide client, so every request shares one token cache."""
    global _default_client
    with _default_client_lock:
        if _default_client is None:
            _default_client = create_client()
        return _default_client


def reset_default_client():
    global _default_client
    with _default_client_lock:
        _default_client = None


def build_availability_response(days=None, client: Optional[AvailabilityClient] = None) -> AvailabilityResponse:
    """Core orchestration: resolves the date window, target services and their availability.

    Either every target service is covered or an AvailabilityError propagates.
    """
    client = client or get_default_client()
    days = dates.clamp_days(days)

    from_date = dates.today()
    to_date = dates.date_plus_days(days)
    logger.info(f"Checking availability from {from_date} to {to_date} ({days} days)")

    services = catalog.order_services(client.catalog.list_target_services())
    availability = client.get_all_availability(from_date, to_date, services)

    total_slots = sum(len(slots) for by_date in availability.values() for slots in by_date.values())
    logger.info(f"Found {total_slots} slots across {len(services)} services")

    return AvailabilityResponse(
        availability=availability,
        services=[ServiceInfo.from_service(s) for s in services],
        from_date=from_date,
        to_date=to_date,
        fetched_at=datetime.now(timezone.utc).isoformat(),
    )
