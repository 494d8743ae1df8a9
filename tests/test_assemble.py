import pytest

from timetable.collection.assemble import (
    BIRMINGHAM_COLUMNS,
    assemble_birmingham_rows,
    assemble_london_payload,
    assemble_manchester_rows,
)
from timetable.collection.errors import MarkupShapeError
from timetable.collection.extract import extract_rows
from timetable.collection.records import Period
from tests.conftest import BIRMINGHAM_ROW


def test_birmingham_row_maps_by_column_table():
    [record] = assemble_birmingham_rows([BIRMINGHAM_ROW], location_id=2)
    assert record.location_id == 2
    assert record.date == "2024-05-01"
    assert record.fajr == "06:15"
    assert record.fajr_jamat == "06:30"
    assert record.sunrise == "07:02"
    assert record.dhuhr == "13:05"
    assert record.dhuhr_jamat == "13:15"
    assert record.asr == "17:30"
    assert record.asr2 == "17:30"
    assert record.maghrib == "17:30"
    assert record.isha == "20:45"
    assert record.isha_jamat == "21:00"
    # "-" cell
    assert record.asr_jamat is None


def test_every_record_gets_the_location_id_whatever_the_row_says():
    other = list(BIRMINGHAM_ROW)
    other[0] = "2nd May 2024"
    other[1] = "location 9"
    records = assemble_birmingham_rows([BIRMINGHAM_ROW, other], location_id=2)
    assert [r.location_id for r in records] == [2, 2]
    assert [r.date for r in records] == ["2024-05-01", "2024-05-02"]


def test_short_row_raises():
    short = BIRMINGHAM_ROW[: max(BIRMINGHAM_COLUMNS)]
    with pytest.raises(MarkupShapeError):
        assemble_birmingham_rows([BIRMINGHAM_ROW, short], location_id=2)


def test_manchester_rows_use_column_periods_and_requested_month(manchester_html):
    rows = extract_rows(manchester_html, numbered_only=True)
    first, second = assemble_manchester_rows(rows, location_id=3, period=Period(2024, 5))
    assert first.location_id == 3
    assert first.date == "2024-05-01"
    assert first.fajr == "03:45"
    assert first.sunrise == "05:10"
    assert first.dhuhr == "13:05"
    assert first.asr == first.asr2 == "18:10"
    assert first.asr_jamat == "19:00"
    assert first.maghrib == "20:50"
    assert first.isha == "22:20"
    assert first.isha_jamat == "22:30"
    assert second.date == "2024-05-02"
    assert second.dhuhr == "12:59"


def test_london_keys_are_translated(london_payload):
    first, second = assemble_london_payload(london_payload, location_id=1)
    assert first.date == "2024-05-01"
    assert first.fajr == "03:41"
    assert first.maghrib == "20:26"
    assert first.maghrib_jamat == "20:26"
    # no asr_2 published: second Asr copies the first
    assert first.asr2 == first.asr == "16:50"
    assert second.asr2 == "17:51"
    assert {first.location_id, second.location_id} == {1}


def test_london_payload_without_times_raises():
    with pytest.raises(MarkupShapeError):
        assemble_london_payload({"city": "london"}, location_id=1)


@pytest.mark.parametrize("index, text, field", [
    (2, "6;15AM", "fajr"),
    (12, "", "isha"),
    (9, "-", "maghrib"),
    (0, "1st", "date"),
])
def test_birmingham_row_with_unparsed_start_time_or_date_is_rejected(index, text, field):
    broken = list(BIRMINGHAM_ROW)
    broken[index] = text
    with pytest.raises(MarkupShapeError) as excinfo:
        assemble_birmingham_rows([BIRMINGHAM_ROW, broken], location_id=2)
    assert field in excinfo.value.message


def test_blank_jamat_and_sunrise_are_optional():
    row = list(BIRMINGHAM_ROW)
    row[3] = ""
    row[4] = "-"
    [record] = assemble_birmingham_rows([row], location_id=2)
    assert record.fajr_jamat is None
    assert record.sunrise is None
    assert record.fajr == "06:15"


def test_manchester_unparsed_isha_is_rejected(manchester_html):
    rows = extract_rows(manchester_html, numbered_only=True)
    rows[1][12] = "TBC"
    with pytest.raises(MarkupShapeError) as excinfo:
        assemble_manchester_rows(rows, location_id=3, period=Period(2024, 5))
    assert "isha" in excinfo.value.message


def test_london_entry_missing_a_start_time_is_rejected(london_payload):
    del london_payload["times"]["2024-05-02"]["magrib"]
    with pytest.raises(MarkupShapeError) as excinfo:
        assemble_london_payload(london_payload, location_id=1)
    assert "maghrib" in excinfo.value.message
