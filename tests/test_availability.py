from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from piedmont_availability.availability import (
    AVAILABLE_DATES_PATH,
    TIME_SLOTS_PATH,
    AvailabilityClient,
    flatten_available_dates,
    flatten_time_slots,
)
from piedmont_availability.errors import UpstreamRejected
from piedmont_availability.models import Service, TimeSlot

SAUNA = Service(id=501, name="45 Minute Sauna", category="Rooms", duration_minutes=45, price=Decimal("65.00"))
STEAM = Service(id=502, name="45 Minute Steam", category="Rooms", duration_minutes=45, price=Decimal("65.00"))


def dates_payload(service_id, values):
    return [{"serviceCategories": [{"services": [{"serviceId": service_id, "availability": values}]}]}]


def slot(start, end, employees=None):
    return {"startDateTime": start, "endDateTime": end, "employees": employees}


def test_flatten_available_dates_dedupes_and_truncates():
    payload = dates_payload(501, ["2024-06-01T00:00:00Z", "2024-06-01T08:00:00Z", "2024-06-03T00:00:00Z"])
    assert flatten_available_dates(payload, 501) == ["2024-06-01", "2024-06-03"]


def test_flatten_available_dates_filters_by_service():
    payload = [
        {
            "serviceCategories": [
                {"services": [{"serviceId": 999, "availability": ["2024-06-02T00:00:00Z"]}]},
                {"services": [{"serviceId": 501, "availability": ["2024-06-05T00:00:00Z"]}]},
            ]
        }
    ]
    assert flatten_available_dates(payload, 501) == ["2024-06-05"]


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {},
        [],
        [{}],
        [{"serviceCategories": None}],
        [{"serviceCategories": [{"services": None}]}],
        [{"serviceCategories": [{"services": [{"serviceId": 501, "availability": None}]}]}],
    ],
)
def test_flatten_available_dates_tolerates_missing_levels(payload):
    assert flatten_available_dates(payload, 501) == []


def test_flatten_available_dates_skips_junk_entries():
    payload = dates_payload(501, [None, 17, "", "2024-06-01T00:00:00Z"])
    assert flatten_available_dates(payload, 501) == ["2024-06-01"]


def test_flatten_available_dates_skips_unparseable_dates():
    payload = dates_payload(501, ["soon", "2024-13-40T00:00:00Z", "2024-06-01T00:00:00Z"])
    assert flatten_available_dates(payload, 501) == ["2024-06-01"]


def test_flatten_time_slots_keeps_first_employee():
    payload = dates_payload(
        501,
        [
            slot(
                "2024-06-01T10:00:00-07:00",
                "2024-06-01T10:45:00-07:00",
                [{"employeeId": 11, "employeeName": "Room A"}, {"employeeId": 12, "employeeName": "Room B"}],
            ),
            slot("2024-06-01T11:00:00-07:00", "2024-06-01T11:45:00-07:00"),
        ],
    )

    slots = flatten_time_slots(payload, 501)

    assert slots == [
        TimeSlot(
            start_time="2024-06-01T10:00:00-07:00",
            end_time="2024-06-01T10:45:00-07:00",
            employee_id=11,
            employee_name="Room A",
        ),
        TimeSlot(start_time="2024-06-01T11:00:00-07:00", end_time="2024-06-01T11:45:00-07:00"),
    ]


def test_flatten_time_slots_skips_records_without_times():
    payload = dates_payload(501, [{"endDateTime": "x"}, "junk", slot("a", "b")])
    assert [s.start_time for s in flatten_time_slots(payload, 501)] == ["a"]


@pytest.fixture
def gateway():
    return MagicMock()


def test_get_available_dates_request(gateway):
    gateway.request_with_reauth.return_value = dates_payload(501, ["2024-06-01T00:00:00Z"])
    client = AvailabilityClient(gateway, catalog=MagicMock(), location_id=49414)

    assert client.get_available_dates(501, "2024-06-01", "2024-06-30") == ["2024-06-01"]

    args, kwargs = gateway.request_with_reauth.call_args
    assert args == ("GET", AVAILABLE_DATES_PATH)
    assert kwargs["params"] == {
        "serviceId": 501,
        "fromDate": "2024-06-01",
        "toDate": "2024-06-30",
        "locationIds[]": 49414,
        "employeeId": "",
        "employeeGenderId": "",
    }


def test_get_time_slots_request_uses_local_day_bounds(gateway):
    gateway.request_with_reauth.return_value = []
    client = AvailabilityClient(gateway, catalog=MagicMock(), location_id=49414, tz_name="America/Los_Angeles")

    client.get_time_slots(501, "2024-06-01")

    args, kwargs = gateway.request_with_reauth.call_args
    assert args == ("GET", TIME_SLOTS_PATH)
    assert kwargs["params"]["fromDateTime"] == "2024-06-01T00:00:00-07:00"
    assert kwargs["params"]["toDateTime"] == "2024-06-01T23:59:00-07:00"
    assert kwargs["params"]["IncludeEmployees"] == "true"


def _fake_upstream(dates_by_service, slots_by_service_day):
    def request(method, path, params=None, json_body=None):
        service_id = params["serviceId"]
        if path == AVAILABLE_DATES_PATH:
            return dates_payload(service_id, dates_by_service.get(service_id, []))
        day = params["fromDateTime"][:10]
        return dates_payload(service_id, slots_by_service_day.get((service_id, day), []))

    return request


def test_get_all_availability_prunes_empty_days(gateway):
    gateway.request_with_reauth.side_effect = _fake_upstream(
        {
            501: ["2024-06-01T00:00:00Z", "2024-06-01T08:00:00Z", "2024-06-02T00:00:00Z"],
            502: [],
        },
        {
            (501, "2024-06-01"): [slot("2024-06-01T10:00:00-07:00", "2024-06-01T10:45:00-07:00")],
            (501, "2024-06-02"): [],
        },
    )
    client = AvailabilityClient(gateway, catalog=MagicMock())

    result = client.get_all_availability("2024-06-01", "2024-06-30", [SAUNA, STEAM])

    assert list(result) == ["45 Minute Sauna", "45 Minute Steam"]
    assert list(result["45 Minute Sauna"]) == ["2024-06-01"]
    assert len(result["45 Minute Sauna"]["2024-06-01"]) == 1
    assert result["45 Minute Steam"] == {}
    # one dates call per service, one slot call per distinct date
    assert gateway.request_with_reauth.call_count == 4


def test_get_all_availability_ignores_unparseable_dates(gateway):
    gateway.request_with_reauth.side_effect = _fake_upstream(
        {501: ["soon", "2024-06-01T00:00:00Z"]},
        {(501, "2024-06-01"): [slot("2024-06-01T10:00:00-07:00", "2024-06-01T10:45:00-07:00")]},
    )
    client = AvailabilityClient(gateway, catalog=MagicMock())

    result = client.get_all_availability("2024-06-01", "2024-06-30", [SAUNA])

    assert list(result["45 Minute Sauna"]) == ["2024-06-01"]
    slot_days = [
        kwargs["params"]["fromDateTime"][:10]
        for args, kwargs in gateway.request_with_reauth.call_args_list
        if args[1] == TIME_SLOTS_PATH
    ]
    assert slot_days == ["2024-06-01"]


def test_get_all_availability_resolves_target_services(gateway):
    gateway.request_with_reauth.side_effect = _fake_upstream({}, {})
    catalog = MagicMock()
    catalog.list_target_services.return_value = [SAUNA]

    result = AvailabilityClient(gateway, catalog=catalog).get_all_availability("2024-06-01", "2024-06-30")

    catalog.list_target_services.assert_called_once()
    assert result == {"45 Minute Sauna": {}}


def test_get_all_availability_propagates_upstream_errors(gateway):
    gateway.request_with_reauth.side_effect = UpstreamRejected(500, "Internal Server Error")
    client = AvailabilityClient(gateway, catalog=MagicMock())

    with pytest.raises(UpstreamRejected):
        client.get_all_availability("2024-06-01", "2024-06-30", [SAUNA])
