import csv
from pathlib import Path

import pytest

from heybench.config import Target, apply_overrides, default_config
from heybench.dataset import ResultRow, infer_target, read_dataset, write_dataset
from heybench.errors import DatasetError
from heybench.extractor import DATASET_COLUMNS, BenchmarkRecord, parse_report
from heybench.orchestrator import BenchmarkOrchestrator

from .fakes import FakeCommand

HEADER = "file,total,average,fastest,slowest,requests_per_sec,size_request,p50,p75,p90,p95,p99"


def _record(file: str, text: str) -> BenchmarkRecord:
    return BenchmarkRecord(file=file, metrics=parse_report(text))


def test_writer_emits_fixed_header_and_blank_missing_fields(tmp_path: Path):
    path = tmp_path / "out" / "hey_results.csv"
    write_dataset([_record("hey_result_a_1.txt", "Requests/sec:\t5.5\n")], path)

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))

    assert ",".join(rows[0]) == HEADER
    assert tuple(rows[0]) == DATASET_COLUMNS
    assert rows[1][0] == "hey_result_a_1.txt"
    assert rows[1][DATASET_COLUMNS.index("requests_per_sec")] == "5.5000"
    assert rows[1][DATASET_COLUMNS.index("p95")] == ""


def test_writer_overwrites_existing_file(tmp_path: Path):
    path = tmp_path / "hey_results.csv"
    path.write_text("stale\ncontent\nhere\n", encoding="utf-8")

    write_dataset([], path)

    assert path.read_text(encoding="utf-8").strip() == HEADER


def test_writer_accepts_plain_mappings(tmp_path: Path):
    path = tmp_path / "hey_results.csv"
    write_dataset([{"file": "x.txt", "total": "1.0000", "url": "ignored"}], path)

    rows = read_dataset(path)
    assert rows[0].total == 1.0


def test_end_to_end_round_trip(tmp_path: Path):
    text = "Requests/sec:\t123.4500\n95% in 0.0456 secs\nAverage:\t0.0234 secs\nTotal:\t3.0000 secs"
    path = write_dataset([_record("hey_result_green_apis_1.txt", text)], tmp_path / "r.csv")

    [row] = read_dataset(path)

    assert row == ResultRow(
        target="green-cloud",
        file="hey_result_green_apis_1.txt",
        rps=123.45,
        p95=0.0456,
        average=0.0234,
        total=3.0,
    )


def test_absent_fields_read_back_as_zero(tmp_path: Path):
    path = write_dataset([_record("hey_result_apis_1.txt", "")], tmp_path / "r.csv")

    [row] = read_dataset(path)

    assert (row.rps, row.p95, row.average, row.total) == (0.0, 0.0, 0.0, 0.0)
    assert row.target == "t2no3"


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("hey_result_green_apis_nesgnas_uk_persons_1.txt", "green-cloud"),
        ("green", "green-cloud"),
        ("hey_result_apis_nesgnas_uk_persons_1.txt", "t2no3"),
        ("", "t2no3"),
        ("GREEN.txt", "t2no3"),
    ],
)
def test_infer_target(filename, expected):
    config = default_config()
    fallback = config.resolved_fallback_label()

    first = infer_target(filename, config.targets, fallback)
    second = infer_target(filename, config.targets, fallback)

    assert first == expected
    assert first == second


def test_missing_dataset_raises(tmp_path: Path):
    with pytest.raises(DatasetError):
        read_dataset(tmp_path / "nope.csv")


def test_zero_byte_dataset_has_no_rows(tmp_path: Path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    assert read_dataset(path) == []


def test_header_only_dataset_has_no_rows(tmp_path: Path):
    path = write_dataset([], tmp_path / "empty.csv")
    assert read_dataset(path) == []


def test_malformed_cells_and_short_rows_default_to_zero(tmp_path: Path):
    path = tmp_path / "r.csv"
    path.write_text(
        HEADER + "\n"
        "hey_result_green_1.txt,abc,0.5,,,12.5,,,,,0.9,\n"
        "hey_result_other_2.txt,2.0\n",
        encoding="utf-8",
    )

    first, second = read_dataset(path)

    assert first.total == 0.0
    assert first.average == 0.5
    assert first.rps == 12.5
    assert first.p95 == 0.9
    assert second.total == 2.0
    assert second.rps == 0.0
    assert second.target == "t2no3"


def test_missing_column_reads_as_zero(tmp_path: Path):
    path = tmp_path / "r.csv"
    path.write_text("file,total\nhey_result_green_1.txt,4.0\n", encoding="utf-8")

    [row] = read_dataset(path)

    assert row.total == 4.0
    assert row.p95 == 0.0


def test_result_row_metric_lookup():
    row = ResultRow(target="t", file="f", rps=1.0, p95=2.0, average=3.0, total=4.0)
    assert [row.metric(m) for m in ("rps", "p95", "average", "total")] == [1.0, 2.0, 3.0, 4.0]
    with pytest.raises(ValueError):
        row.metric("p50")


def test_unmarked_targets_read_back_as_separate_series(tmp_path: Path):
    config = apply_overrides(
        default_config(),
        {
            "targets": ["https://a.example/x", "https://b.example/y"],
            "repetitions": 2,
            "requests": 10,
            "concurrency": 2,
            "output_dir": str(tmp_path / "hey_results"),
        },
    )
    summary = BenchmarkOrchestrator(config, FakeCommand(), sleep=lambda _: None).run()
    path = write_dataset(summary.records, tmp_path / "hey_results.csv")

    rows = read_dataset(path, config)

    assert [(row.file, row.target) for row in rows] == [
        ("hey_result_a_example_x_1.txt", "a_example_x"),
        ("hey_result_a_example_x_2.txt", "a_example_x"),
        ("hey_result_b_example_y_1.txt", "b_example_y"),
        ("hey_result_b_example_y_2.txt", "b_example_y"),
    ]
    assert [row.target for row in rows] == [r.target_label for r in summary.records]


def test_artifact_match_requires_the_exact_slug():
    short = Target("https://a.example/x", "short")
    longer = Target("https://a.example/x/y", "longer")
    targets = (short, longer)

    assert infer_target("hey_result_a_example_x_y_3.txt", targets, "other") == "longer"
    assert infer_target("hey_result_a_example_x_3.txt", targets, "other") == "short"
    assert infer_target("hey_result_a_example_x_3.csv", targets, "other") == "other"
