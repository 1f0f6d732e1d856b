from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from Cracks import ExportResults
from Cracks.Export.statistics import StatisticsTable
from conftest import FakeComm


def test_statistics_text_format():
    table = StatisticsTable()
    table.add_value(1, 0.1)
    table.add_value(2, 0.25)
    lines = table.to_text().splitlines()
    assert lines[0].split() == ["Step", "Time"]
    assert lines[1].split() == ["1", "1.00000000e-01"]
    assert lines[2].split() == ["2", "2.50000000e-01"]
    assert len(table) == 2


def test_empty_statistics_has_header_only():
    assert StatisticsTable().to_text().split() == ["Step", "Time"]


def test_results_written_per_rank(tmp_path: Path):
    sink = ExportResults(str(tmp_path / "out"), FakeComm(rank=2, size=3))
    sink.new_step()
    sink.add_subdomain(3)
    sink.add_data_vector("damage", [0.0, 0.5, 1.0])
    file_name = sink.write_results(7)
    assert file_name.endswith("solution-0007.2.npz")
    data = np.load(file_name)
    np.testing.assert_array_equal(data["subdomain"], [2.0, 2.0, 2.0])
    np.testing.assert_array_equal(data["damage"], [0.0, 0.5, 1.0])


def test_duplicate_vector_is_rejected(tmp_path: Path):
    sink = ExportResults(str(tmp_path), FakeComm())
    sink.add_data_vector("damage", [0.0])
    with pytest.raises(ValueError):
        sink.add_data_vector("damage", [1.0])
    sink.new_step()
    sink.add_data_vector("damage", [1.0])


@pytest.mark.parametrize("rank, written", [(0, True), (1, False)])
def test_statistics_written_by_rank_zero_only(tmp_path: Path, rank, written):
    sink = ExportResults(str(tmp_path), FakeComm(rank=rank, size=2))
    sink.add_statistics(1, 0.1)
    sink.write_statistics()
    assert (tmp_path / ExportResults.STATISTICS_FILE).exists() is written
