from datetime import date

import pytest

from app.core.errors import ValidationError
from app.services.validation import validate_create_announcement

TODAY = date(2026, 10, 17)


def _payload(**overrides):
    body = {
        "species": "cat",
        "sex": "FEMALE",
        "locationLatitude": 50.0,
        "locationLongitude": 19.9,
        "phone": "600 700 800",
        "lastSeenDate": "2026-10-17",
        "status": "FOUND",
    }
    body.update(overrides)
    return body


def test_minimal_payload_is_accepted():
    data = validate_create_announcement(_payload(), today=TODAY)
    assert data.species == "cat"
    assert data.last_seen_date == TODAY
    assert data.email is None


def test_strings_are_trimmed():
    data = validate_create_announcement(_payload(petName="  Mruczek  "), today=TODAY)
    assert data.pet_name == "Mruczek"


def test_date_after_today_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_create_announcement(_payload(lastSeenDate="2026-10-18"), today=TODAY)
    assert exc_info.value.field == "lastSeenDate"


def test_impossible_calendar_date():
    with pytest.raises(ValidationError) as exc_info:
        validate_create_announcement(_payload(lastSeenDate="2026-02-30"), today=TODAY)
    assert exc_info.value.code == "INVALID_FORMAT"


def test_latitude_must_be_a_number_not_a_string():
    with pytest.raises(ValidationError) as exc_info:
        validate_create_announcement(_payload(locationLatitude="50.0"), today=TODAY)
    assert exc_info.value.field == "locationLatitude"


def test_integer_coordinates_are_accepted():
    data = validate_create_announcement(_payload(locationLatitude=50, locationLongitude=-20), today=TODAY)
    assert data.location_longitude == -20


def test_snake_case_names_are_unknown_fields():
    with pytest.raises(ValidationError) as exc_info:
        validate_create_announcement(_payload(pet_name="Mruczek"), today=TODAY)
    assert (exc_info.value.code, exc_info.value.field) == ("INVALID_FIELD", "pet_name")
