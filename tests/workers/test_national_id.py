from __future__ import annotations

import pytest

from workforce_sync.workers.national_id import CENTURY_BY_DIGIT, decode_birth_date


@pytest.mark.parametrize(
    "prefix, expected",
    [
        ("7104101", "19710410"),
        ("0501153", "20050115"),
        ("9901019", "18990101"),
        ("8806150", "18880615"),
        ("7104101234567", "19710410"),
    ],
)
def test_decodes_known_prefixes(prefix, expected):
    assert decode_birth_date(prefix) == expected


@pytest.mark.parametrize("prefix", [None, "", "710410", "710410A", "71O4101", "７１０４１０１"])
def test_rejects_without_raising(prefix):
    assert decode_birth_date(prefix) is None


def test_century_table_covers_every_digit():
    assert sorted(CENTURY_BY_DIGIT) == [str(d) for d in range(10)]
    for digit, century in {"1": "19", "2": "19", "5": "19", "6": "19"}.items():
        assert decode_birth_date("850720" + digit) == century + "850720"
    for digit in "3478":
        assert decode_birth_date("030101" + digit) == "20030101"
    for digit in "90":
        assert decode_birth_date("991231" + digit) == "18991231"
