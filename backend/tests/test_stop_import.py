from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import func, select

from downtime.models.production_stop import ProductionStop
from downtime.services.cell_classifier import MachinePatterns
from downtime.services.stop_import import StopImportError, import_production_stops
from downtime.services.tabular_reader import UnreadableFileError

DUMMY_PATH = Path("stops.xlsx")


def _reader(rows):
    return lambda path: rows


def _count(db) -> int:
    return db.execute(select(func.count()).select_from(ProductionStop)).scalar_one()


def _seed(db, count: int = 2) -> None:
    db.add_all(
        ProductionStop(from_date=date(2023, 6, day + 1), machine_name=f"ALPHA {day}")
        for day in range(count)
    )
    db.commit()


def test_scenario_counts_and_optional_duration(db):
    rows = [
        ["from date", "machine", "duration"],
        ["2024-01-01", "ALPHA 63", 2.5],
        ["", "", ""],
        ["2024-01-02", "ALPHA 19", "bad"],
    ]
    summary = import_production_stops(db, DUMMY_PATH, reader=_reader(rows))
    assert (summary.processed, summary.skipped) == (2, 1)

    stops = list(db.execute(select(ProductionStop).order_by(ProductionStop.from_date)).scalars())
    assert [stop.machine_name for stop in stops] == ["ALPHA 63", "ALPHA 19"]
    assert stops[0].stop_duration == 2.5
    assert stops[1].stop_duration is None
    assert stops[0].created_at is not None


def test_rows_missing_required_fields_are_not_saved(db):
    rows = [
        ["from date", "machine"],
        ["2024-01-01", "no machine here"],
        ["garbage", "ALPHA 3"],
        [None, "ALPHA 4"],
        ["2024-01-05", "ALPHA 5"],
    ]
    summary = import_production_stops(db, DUMMY_PATH, reader=_reader(rows))
    assert (summary.processed, summary.skipped) == (1, 3)
    assert _count(db) == 1


def test_machine_group_propagates_across_rows(db):
    rows = [
        ["from date", "machine", "group"],
        ["2024-01-01", "ALPHA 63", "Komax Alpha 355"],
        ["2024-01-02", "ALPHA 63", ""],
    ]
    import_production_stops(db, DUMMY_PATH, reader=_reader(rows))
    groups = list(db.execute(select(ProductionStop.machine_group)).scalars())
    assert groups == ["Komax Alpha 355", "Komax Alpha 355"]


def test_group_map_does_not_leak_between_imports(db):
    first = [["from date", "machine", "group"], ["2024-01-01", "ALPHA 63", "Komax Alpha 355"]]
    second = [["from date", "machine", "group"], ["2024-01-02", "ALPHA 63", ""]]
    import_production_stops(db, DUMMY_PATH, reader=_reader(first))
    import_production_stops(db, DUMMY_PATH, reader=_reader(second))
    stop = db.execute(
        select(ProductionStop).where(ProductionStop.from_date == date(2024, 1, 2))
    ).scalar_one()
    assert stop.machine_group is None


def test_duration_fallback_skips_implausible_values(db):
    rows = [["from date", "a", "b", "c"], ["2024-01-01", 150, 45.5, "ALPHA 12"]]
    import_production_stops(db, DUMMY_PATH, reader=_reader(rows))
    stop = db.execute(select(ProductionStop)).scalar_one()
    assert stop.stop_duration == 45.5
    assert stop.machine_name == "ALPHA 12"


def test_corrupt_row_does_not_stop_the_batch(db):
    class Unprintable:
        def __str__(self) -> str:
            raise RuntimeError("boom")

    rows = [
        ["from date", "to date", "mo key", "machine"],
        ["2024-01-01", None, Unprintable(), "ALPHA 1"],
        ["2024-01-02", None, "MO-2", "ALPHA 2"],
    ]
    summary = import_production_stops(db, DUMMY_PATH, reader=_reader(rows))
    assert summary.processed + summary.skipped == 2
    assert (summary.processed, summary.skipped) == (1, 1)


def test_delete_existing_replaces_records(db):
    _seed(db, 3)
    rows = [["from date", "machine"], ["2024-01-01", "ALPHA 9"]]
    summary = import_production_stops(db, DUMMY_PATH, delete_existing=True, reader=_reader(rows))
    assert summary.processed == 1
    assert list(db.execute(select(ProductionStop.machine_name)).scalars()) == ["ALPHA 9"]


def test_without_delete_existing_records_are_kept(db):
    _seed(db, 2)
    rows = [["from date", "machine"], ["2024-01-01", "ALPHA 9"]]
    import_production_stops(db, DUMMY_PATH, reader=_reader(rows))
    assert _count(db) == 3


def test_empty_file_imports_nothing(db):
    summary = import_production_stops(db, DUMMY_PATH, reader=_reader([]))
    assert (summary.processed, summary.skipped) == (0, 0)


def test_failure_mid_stream_rolls_back_everything(db, session_factory):
    _seed(db, 2)

    def failing_reader(path):
        yield ["from date", "machine"]
        yield ["2024-01-01", "ALPHA 9"]
        yield ["2024-01-02", "ALPHA 10"]
        raise OSError("disk went away")

    with pytest.raises(StopImportError, match="disk went away"):
        import_production_stops(db, DUMMY_PATH, delete_existing=True, reader=failing_reader)

    with session_factory() as other:
        names = sorted(other.execute(select(ProductionStop.machine_name)).scalars())
    assert names == ["ALPHA 0", "ALPHA 1"]


def test_commit_failure_rolls_back(db, session_factory, monkeypatch):
    _seed(db, 1)

    def broken_commit():
        raise RuntimeError("connection lost")

    monkeypatch.setattr(db, "commit", broken_commit)
    rows = [["from date", "machine"], ["2024-01-01", "ALPHA 9"]]
    with pytest.raises(StopImportError, match="connection lost"):
        import_production_stops(db, DUMMY_PATH, delete_existing=True, reader=_reader(rows))

    with session_factory() as other:
        assert list(other.execute(select(ProductionStop.machine_name)).scalars()) == ["ALPHA 0"]


def test_unreadable_file_is_fatal(db, caplog):
    def unreadable(path):
        raise UnreadableFileError("Could not read stops.xlsx: not a zip file")

    with caplog.at_level("ERROR"), pytest.raises(StopImportError) as excinfo:
        import_production_stops(db, DUMMY_PATH, reader=unreadable)
    assert isinstance(excinfo.value.__cause__, UnreadableFileError)
    assert "Import error" in caplog.text


def test_custom_patterns_are_honoured(db):
    rows = [["from date", "machine", "line"], ["2024-01-01", "PRESS-4", "Line B"]]
    patterns = MachinePatterns.compile(r"PRESS-\d+", r"Line\s+[A-Z]")
    summary = import_production_stops(db, DUMMY_PATH, reader=_reader(rows), patterns=patterns)
    assert summary.processed == 1
    stop = db.execute(select(ProductionStop)).scalar_one()
    assert (stop.machine_name, stop.machine_group) == ("PRESS-4", "Line B")


def test_oversized_cells_are_truncated_and_the_batch_continues(db, caplog):
    long_group = "Komax Alpha 355 " + "x" * 300
    rows = [
        ["from date", "machine", "group", "wo name"],
        ["2024-01-01", "ALPHA 63", long_group, "Replace blade"],
        ["2024-01-02", "ALPHA 63", "", "y" * 400],
        ["2024-01-03", "ALPHA 19", "Komax Alpha 200", "Sensor"],
    ]
    with caplog.at_level("WARNING"):
        summary = import_production_stops(db, DUMMY_PATH, reader=_reader(rows))
    assert (summary.processed, summary.skipped) == (3, 0)

    stops = list(db.execute(select(ProductionStop).order_by(ProductionStop.from_date)).scalars())
    assert [len(stop.machine_group) for stop in stops[:2]] == [255, 255]
    assert stops[0].machine_group == long_group[:255]
    assert len(stops[1].wo_name) == 255
    assert stops[2].machine_group == "Komax Alpha 200"
    assert "Row 2: machine_group is 316 characters long, truncated to 255" in caplog.text


def test_skipped_rows_are_logged_with_their_position(db, caplog):
    rows = [["from date", "machine"], ["2024-01-01", "no machine"], ["", ""]]
    with caplog.at_level("WARNING"):
        summary = import_production_stops(db, DUMMY_PATH, reader=_reader(rows))
    assert (summary.processed, summary.skipped) == (0, 2)
    warnings = [record.getMessage() for record in caplog.records if record.levelname == "WARNING"]
    assert "Skipping row 2: missing_required (machine_name)" in warnings
    assert "Skipping row 3: empty_row" in warnings
