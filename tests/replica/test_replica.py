from __future__ import annotations

from datetime import datetime

import pytest

from workforce_sync.core.exceptions import ValidationError
from workforce_sync.replica.mysql_replica_repository import like_contains, map_employee_row


def test_row_mapping():
    record = map_employee_row(
        {
            "empl_cd": " 000123 ",
            "empl_nm": "김철수",
            "part_cd": "P01",
            "part_nm": "한일건설",
            "tel_no": "010-1234-5678",
            "social_no": "7104101",
            "state_flag": "W",
            "update_dt": datetime(2024, 3, 1, 9, 0),
            "gojo_cd": "G1",
            "jijo_cd": "J2",
            "role_cd": None,
        }
    )

    assert record.external_worker_id == "000123"
    assert record.phone == "01012345678"
    assert record.company_name == "한일건설"
    assert record.is_active is True
    assert (record.trade_code, record.position_code, record.role_code) == ("G1", "J2", None)


def test_state_flags_other_than_working_are_inactive():
    assert map_employee_row({"empl_cd": "1", "empl_nm": "A", "state_flag": "R"}).is_active is False
    assert map_employee_row({"empl_cd": "1", "empl_nm": "A", "state_flag": None}).is_active is False


def test_public_view_hides_national_id(make_record):
    public = make_record("E001").to_public_dict()

    assert "nationalIdPrefix" not in public
    assert "7104101" not in str(public)


def test_search_by_phone_takes_precedence(container, replica, make_record):
    replica.records = [make_record("E001", name="김철수", phone="01011112222"), make_record("E002", name="김영희")]

    found = container.replica_search_service.search(name="김", phone="010-1111-2222")

    assert found.phone == "01011112222"
    assert [r.external_worker_id for r in found.results] == ["E001"]


def test_search_by_name(container, replica, make_record):
    replica.records = [make_record("E001", name="김철수"), make_record("E002", name="이영희")]

    found = container.replica_search_service.search(name=" 철수 ")

    assert [r.external_worker_id for r in found.results] == ["E001"]


def test_search_needs_a_term(container):
    with pytest.raises(ValidationError):
        container.replica_search_service.search(name="  ", phone="--")


@pytest.mark.parametrize(
    "term, pattern",
    [
        ("철수", "%철수%"),
        ("%", "%!%%"),
        ("kim_", "%kim!_%"),
        ("a!b", "%a!!b%"),
    ],
)
def test_name_search_wildcards_are_literal(term, pattern):
    assert like_contains(term) == pattern
