import re
from dataclasses import dataclass
from urllib.parse import quote, unquote, urlparse

from piedmont_availability import config

_PATH_RE = re.compile(
    r"^/location/(?P<slug>[^/]+)/service/(?P<service_id>\d+)/(?P<name>[^/]+)"
    r"/availability/(?P<date>\d{4}-\d{2}-\d{2})/any-provider/?$"
)


@dataclass(frozen=True)
class BookingLink:
    service_id: int
    service_name: str
    date: str


def build_booking_url(service_id: int, service_name: str, date: str, location_slug: str = config.LOCATION_SLUG) -> str:
    """Deep link into the Booker booking flow for one service on one day."""
    encoded_name = quote(service_name, safe="")
    return (
        f"{config.BOOKING_SITE_BASE}/location/{location_slug}"
        f"/service/{service_id}/{encoded_name}/availability/{date}/any-provider"
    )


def parse_booking_url(url: str) -> BookingLink:
    """Inverse of build_booking_url. Raises ValueError for anything else."""
    parsed = urlparse(url)
    match = _PATH_RE.match(parsed.path)
    if not match or f"{parsed.scheme}://{parsed.netloc}" != config.BOOKING_SITE_BASE:
        raise ValueError(f"Not a booking URL: {url}")
    return BookingLink(
        service_id=int(match.group("service_id")),
        service_name=unquote(match.group("name")),
        date=match.group("date"),
    )
