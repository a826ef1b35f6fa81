import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from piedmont_availability import config
from piedmont_availability.gateway import BookerGateway
from piedmont_availability.models import BookerMenuGroup, BookerMenuItem, BookerMenuSection, Service

logger = logging.getLogger(__name__)

MENU_INCLUDE = "menu-groups,menu-groups.menu-group-items,menu-group-items"

_HOURS_RE = re.compile(r"(\d+)\s*hr", re.IGNORECASE)
_MINUTES_RE = re.compile(r"(\d+)\s*min", re.IGNORECASE)


def parse_duration(duration_str: str) -> int:
    """Parses a display duration like '30 min' or '1 hr 10 min' into minutes."""
    total_minutes = 0

    hours = _HOURS_RE.search(duration_str or "")
    if hours:
        total_minutes += int(hours.group(1)) * 60

    minutes = _MINUTES_RE.search(duration_str or "")
    if minutes:
        total_minutes += int(minutes.group(1))

    return total_minutes


def parse_price(price_str: str) -> Decimal:
    """Parses a display price like '$1,234.50' into a Decimal."""
    cleaned = (price_str or "").replace("$", "").replace(",", "").strip()
    try:
        price = Decimal(cleaned)
    except InvalidOperation:
        logger.warning(f"Unparseable price '{price_str}', using 0")
        return Decimal("0")
    if not price.is_finite():
        logger.warning(f"Non-finite price '{price_str}', using 0")
        return Decimal("0")
    return price


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def flatten_menu(payload: Any) -> List[Service]:
    """Flattens Booker's sections -> groups -> items menu into Service records.

    Items without a ServiceId are not bookable and are dropped. A service listed
    in several groups is kept once, under the first group. Records that do not
    look like menu entries are skipped with a warning.
    """
    if not isinstance(payload, dict):
        logger.error("Unexpected menu format. Expected an object with 'Data'.")
        return []

    services: List[Service] = []
    seen_ids = set()
    for raw_section in _as_list(payload.get("Data")):
        try:
            section = BookerMenuSection.model_validate(raw_section)
        except ValidationError as e:
            logger.warning(f"Skipping malformed menu section: {e}")
            continue

        for raw_group in section.groups:
            try:
                group = BookerMenuGroup.model_validate(raw_group)
            except ValidationError as e:
                logger.warning(f"Skipping malformed menu group: {e}")
                continue

            for raw_item in group.items:
                try:
                    item = BookerMenuItem.model_validate(raw_item)
                except ValidationError as e:
                    logger.warning(f"Skipping malformed menu item in '{group.name}': {e}")
                    continue

                if not item.service_id:
                    continue
                if item.service_id in seen_ids:
                    logger.debug(f"Service {item.service_id} also listed under '{group.name}', keeping first")
                    continue
                seen_ids.add(item.service_id)

                services.append(
                    Service(
                        id=item.service_id,
                        name=item.name.strip() or "Unknown",
                        category=group.name,
                        duration_minutes=parse_duration(item.display_duration),
                        price=parse_price(item.display_price),
                    )
                )

    logger.debug(f"Parsed {len(services)} bookable services from menu")
    return services


def matches_target(service: Service, keywords: Iterable[str] = config.TARGET_SERVICE_KEYWORDS) -> bool:
    name = service.name.lower()
    return any(keyword.lower() in name for keyword in keywords)


def filter_target_services(
    services: Iterable[Service], keywords: Iterable[str] = config.TARGET_SERVICE_KEYWORDS
) -> List[Service]:
    """Keeps services whose name contains any keyword, case-insensitively."""
    keywords = list(keywords)
    return [s for s in services if matches_target(s, keywords)]


def order_services(services: Iterable[Service]) -> List[Service]:
    """Sorts services by display priority; unlisted services keep their order at the end."""
    priority = {entry["name"].lower(): index for index, entry in enumerate(config.SERVICE_CONFIG)}
    fallback = len(priority)
    return sorted(services, key=lambda s: priority.get(s.name.lower(), fallback))


class ServiceCatalog:
    def __init__(self, gateway: BookerGateway, location_slug: str = config.LOCATION_SLUG):
        self.gateway = gateway
        self.location_slug = location_slug

    def list_all_services(self) -> List[Service]:
        """Fetches the full bookable menu for the location."""
        logger.info(f"Fetching service menu for {self.location_slug}")
        payload = self.gateway.request_with_reauth(
            "GET",
            f"/cf2/v5/customer/locations/{self.location_slug}/menu/sections",
            params={"include": MENU_INCLUDE},
        )
        return flatten_menu(payload)

    def list_target_services(self, keywords: Optional[Iterable[str]] = None) -> List[Service]:
        """Fetches the menu and keeps only the sauna / steam / hot tub style services."""
        services = filter_target_services(
            self.list_all_services(),
            keywords if keywords is not None else config.TARGET_SERVICE_KEYWORDS,
        )
        logger.info(f"Found {len(services)} target services")
        return services
