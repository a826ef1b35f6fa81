from decimal import Decimal
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class Credential(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    acquired_at: float  # epoch seconds
    expires_at: float  # epoch seconds, local heuristic only
    source: str = "browser"  # "browser" or "external"

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class Service(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    category: str
    duration_minutes: int
    price: Decimal


class TimeSlot(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    start_time: str  # ISO 8601 with offset
    end_time: str  # ISO 8601 with offset
    employee_id: int | None = None
    employee_name: str | None = None


# service name -> YYYY-MM-DD -> slots
AvailabilityIndex = Dict[str, Dict[str, List[TimeSlot]]]


class ServiceInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    price: float
    duration_minutes: int

    @classmethod
    def from_service(cls, service: Service) -> "ServiceInfo":
        return cls(
            id=service.id,
            name=service.name,
            price=float(service.price),
            duration_minutes=service.duration_minutes,
        )


class AvailabilityResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    availability: AvailabilityIndex
    services: List[ServiceInfo]
    from_date: str  # YYYY-MM-DD
    to_date: str  # YYYY-MM-DD
    fetched_at: str  # ISO 8601, UTC


# --- Booker API records ---
# Booker omits or nulls fields freely. Nulls are dropped before validation so
# the defaults below apply.


class _BookerRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class BookerMenuItem(_BookerRecord):
    service_id: int | None = Field(default=None, alias="ServiceId")
    name: str = Field(default="Unknown", alias="Name")
    display_duration: str = Field(default="0 min", alias="DisplayDuration")
    display_price: str = Field(default="$0.00", alias="DisplayPrice")


class BookerMenuGroup(_BookerRecord):
    name: str = Field(default="Unknown", alias="Name")
    items: List[Any] = Field(default_factory=list, alias="MenuGroupItems")


class BookerMenuSection(_BookerRecord):
    groups: List[Any] = Field(default_factory=list, alias="MenuGroups")


class BookerEmployee(_BookerRecord):
    employee_id: int | None = Field(default=None, alias="employeeId")
    employee_name: str | None = Field(default=None, alias="employeeName")


class BookerTimeSlot(_BookerRecord):
    start_date_time: str = Field(alias="startDateTime")
    end_date_time: str = Field(alias="endDateTime")
    employees: List[Any] = Field(default_factory=list)


class BookerServiceAvailability(_BookerRecord):
    service_id: int | None = Field(default=None, alias="serviceId")
    # ISO date strings from /availabledates, slot records from /availability
    availability: List[Any] = Field(default_factory=list)


class BookerServiceCategory(_BookerRecord):
    services: List[Any] = Field(default_factory=list)


class BookerAvailabilityLocation(_BookerRecord):
    service_categories: List[Any] = Field(default_factory=list, alias="serviceCategories")
