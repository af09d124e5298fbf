from __future__ import annotations

import pytest

from workforce_sync.core.exceptions import SnapshotFormatError
from workforce_sync.snapshot.parser import ColumnDecoder, parse_snapshot, summarize_snapshot


def test_parse_decodes_legacy_korean_columns(make_snapshot):
    data = make_snapshot(
        [
            ("E001", "김철수", "한일건설", "반장", "철근", "2024-03-14 07:12"),
            ("E002", "이영희", "대성산업", None, "목수", "2024-03-15 06:40"),
        ]
    )

    records = parse_snapshot(data)

    assert [r.external_worker_id for r in records] == ["E001", "E002"]
    first = records[0]
    assert first.name == "김철수"
    assert first.company_name == "한일건설"
    assert first.position == "반장"
    assert first.trade == "철근"
    assert first.last_seen == "2024-03-14 07:12"
    assert records[1].position is None


def test_placeholder_rows_are_dropped_silently(make_snapshot):
    data = make_snapshot(
        [
            ("E001", "김철수", None, None, None, None),
            (None, "빈 코드", None, None, None, None),
            ("E003", None, None, None, None, None),
            ("  ", "공백", None, None, None, None),
            ("E004", "", None, None, None, None),
        ]
    )

    records = parse_snapshot(data)

    assert [r.external_worker_id for r in records] == ["E001"]


def test_undecodable_column_falls_back_to_text(make_snapshot):
    # UTF-8 bytes are not valid CP949, so the column is read as plain text.
    data = make_snapshot([("E001", "김철수".encode("utf-8"), "한일건설", None, None, None)])

    records = parse_snapshot(data)

    assert len(records) == 1
    assert records[0].name == "김철수"
    assert records[0].company_name == "한일건설"


def test_column_decoder_counts_fallbacks():
    decoder = ColumnDecoder("cp949")

    assert decoder.decode("김".encode("cp949"), "empl_nm") == "김"
    assert decoder.fallbacks == 0
    assert decoder.decode(b"Kim\x80", "empl_nm") == "Kim\ufffd"
    assert decoder.fallbacks == 1
    assert decoder.decode(None) is None
    assert decoder.decode(b"   ") is None
    assert decoder.decode(42) == "42"


@pytest.mark.parametrize("data", [b"", b"this is not a database" * 10])
def test_garbage_is_fatal(data):
    with pytest.raises(SnapshotFormatError):
        parse_snapshot(data)


def test_missing_employee_table_is_fatal(tmp_path):
    import sqlite3

    path = tmp_path / "other.db3"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE something (x TEXT)")
    conn.commit()
    conn.close()

    with pytest.raises(SnapshotFormatError):
        parse_snapshot(path.read_bytes())


def test_summary_counts_all_rows_and_sorts_companies(make_snapshot):
    data = make_snapshot(
        [
            ("E001", "김철수", "한일건설", None, None, "2024-03-14 07:12"),
            ("E002", "이영희", "대성산업", None, None, "2024-03-15 06:40"),
            ("E003", "박민수", "한일건설", None, None, None),
            (None, None, None, None, None, "2024-01-01 00:00"),
        ]
    )

    summary = summarize_snapshot(data)

    assert summary.total == 4
    assert summary.companies == tuple(sorted(["한일건설", "대성산업"]))
    assert summary.last_seen == "2024-03-15 06:40"
    assert summary.to_dict()["lastSeen"] == "2024-03-15 06:40"
