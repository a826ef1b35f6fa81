"""Two-phase availability lookup against Booker.

``/availabledates`` is cheap but only says which days have openings; slot
detail needs one ``/availability`` call per day. We ask for days first and
only fetch slots for days that have something.
"""

import logging
from typing import Any, Iterator, List, Optional

from pydantic import ValidationError

from piedmont_availability import config, dates
from piedmont_availability.catalog import ServiceCatalog
from piedmont_availability.gateway import BookerGateway
from piedmont_availability.models import (
    AvailabilityIndex,
    BookerAvailabilityLocation,
    BookerEmployee,
    BookerServiceAvailability,
    BookerServiceCategory,
    BookerTimeSlot,
    Service,
    TimeSlot,
)

logger = logging.getLogger(__name__)

AVAILABLE_DATES_PATH = "/cf2/v5/availability/availabledates"
TIME_SLOTS_PATH = "/cf2/v5/availability/availability"


def iter_service_availability(payload: Any, service_id: int) -> Iterator[List[Any]]:
    """Yields the raw ``availability`` list of every entry for service_id.

    Booker nests results as location -> serviceCategories -> services. Any
    level may be missing; missing levels simply yield nothing.
    """
    if not isinstance(payload, list):
        logger.warning(f"Unexpected availability format for service {service_id}: {type(payload).__name__}")
        return

    for raw_location in payload:
        try:
            location = BookerAvailabilityLocation.model_validate(raw_location)
        except ValidationError:
            logger.warning("Skipping malformed availability location")
            continue
        for raw_category in location.service_categories:
            try:
                category = BookerServiceCategory.model_validate(raw_category)
            except ValidationError:
                logger.warning("Skipping malformed service category")
                continue
            for raw_service in category.services:
                try:
                    service = BookerServiceAvailability.model_validate(raw_service)
                except ValidationError:
                    logger.warning("Skipping malformed service availability")
                    continue
                if service.service_id == service_id:
                    yield service.availability


def flatten_available_dates(payload: Any, service_id: int) -> List[str]:
    """Collects the distinct YYYY-MM-DD days on which service_id has openings."""
    found = set()
    for availability in iter_service_availability(payload, service_id):
        for value in availability:
            if not isinstance(value, str) or not value:
                logger.warning(f"Skipping non-date availability entry: {value!r}")
                continue
            day = value.split("T")[0]
            try:
                dates.parse_date(day)
            except ValueError:
                logger.warning(f"Skipping unparseable availability date: {value!r}")
                continue
            found.add(day)
    return sorted(found)


def to_time_slot(raw_slot: Any) -> Optional[TimeSlot]:
    """Maps one Booker slot to a TimeSlot, keeping only the first offered employee."""
    try:
        slot = BookerTimeSlot.model_validate(raw_slot)
    except ValidationError:
        logger.warning(f"Skipping malformed time slot: {raw_slot!r}")
        return None

    employee = None
    if slot.employees:
        try:
            employee = BookerEmployee.model_validate(slot.employees[0])
        except ValidationError:
            logger.debug("Ignoring malformed employee entry")

    return TimeSlot(
        start_time=slot.start_date_time,
        end_time=slot.end_date_time,
        employee_id=employee.employee_id if employee else None,
        employee_name=employee.employee_name if employee else None,
    )


def flatten_time_slots(payload: Any, service_id: int) -> List[TimeSlot]:
    slots = []
    for availability in iter_service_availability(payload, service_id):
        for raw_slot in availability:
            slot = to_time_slot(raw_slot)
            if slot:
                slots.append(slot)
    return slots


class AvailabilityClient:
    def __init__(
        self,
        gateway: BookerGateway,
        catalog: Optional[ServiceCatalog] = None,
        location_id: int = config.LOCATION_ID,
        tz_name: str = config.TIMEZONE,
    ):
        self.gateway = gateway
        self.catalog = catalog or ServiceCatalog(gateway)
        self.location_id = location_id
        self.tz_name = tz_name

    def get_available_dates(self, service_id: int, from_date: str, to_date: str) -> List[str]:
        """Days between from_date and to_date (YYYY-MM-DD) with at least one opening."""
        payload = self.gateway.request_with_reauth(
            "GET",
            AVAILABLE_DATES_PATH,
            params={
                "serviceId": service_id,
                "fromDate": from_date,
                "toDate": to_date,
                "locationIds[]": self.location_id,
                "employeeId": "",
                "employeeGenderId": "",
            },
        )
        return flatten_available_dates(payload, service_id)

    def get_time_slots(self, service_id: int, date_str: str) -> List[TimeSlot]:
        """Concrete slots for one local day, with staff detail."""
        from_dt, to_dt = dates.day_bounds(date_str, self.tz_name)
        payload = self.gateway.request_with_reauth(
            "GET",
            TIME_SLOTS_PATH,
            params={
                "serviceId": service_id,
                "fromDateTime": from_dt,
                "toDateTime": to_dt,
                "locationIds[]": self.location_id,
                "IncludeEmployees": "true",
            },
        )
        return flatten_time_slots(payload, service_id)

    def get_all_availability(
        self, from_date: str, to_date: str, services: Optional[List[Service]] = None
    ) -> AvailabilityIndex:
        """Builds service name -> date -> slots for every target service.

        Days that report availability but return no slots are left out.
        """
        if services is None:
            services = self.catalog.list_target_services()

        result: AvailabilityIndex = {}
        for service in services:
            by_date = {}
            available_dates = self.get_available_dates(service.id, from_date, to_date)
            logger.info(f"{service.name}: {len(available_dates)} days with availability")

            for date_str in available_dates:
                slots = self.get_time_slots(service.id, date_str)
                if slots:
                    by_date[date_str] = slots
                else:
                    logger.debug(f"{service.name}: no slots on {date_str} despite available-dates hit")

            result[service.name] = by_date

        return result
