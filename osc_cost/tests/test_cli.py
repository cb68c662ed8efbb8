import json

import pytest

from osc_cost import cli


@pytest.fixture
def snapshot_file(tmp_path, snapshot_data):
    p = tmp_path / "snapshot.json"
    p.write_text(json.dumps(snapshot_data), encoding="utf-8")
    return p


def test_month_total(snapshot_file, capsys):
    cli.main(["--inventory", str(snapshot_file), "--format", "month"])

    out = capsys.readouterr().out
    # 1.935/h of hourly resources plus 2.14/month of storage
    assert float(out) == pytest.approx(1.935 * 730 + 2.14)


def test_json_output_can_be_read_back(snapshot_file, tmp_path, capsys):
    out_file = tmp_path / "out" / "resources.jsonl"
    cli.main(["--inventory", str(snapshot_file), "--format", "json", "--output", str(out_file)])

    lines = out_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 11
    assert {json.loads(line)["resource_type"] for line in lines} >= {"Vm", "PublicIp", "Oos"}

    capsys.readouterr()
    cli.main(["--input", str(out_file), "--format", "hour"])
    assert float(capsys.readouterr().out) == pytest.approx(1.935 + 2.14 / 730)


def test_aggregated_json(snapshot_file, capsys):
    cli.main(["--inventory", str(snapshot_file), "--format", "json", "--aggregate"])

    rows = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    by_type = {r["aggregated_resource_type"]: r for r in rows}
    assert by_type["Vm"]["count"] == 2
    assert by_type["PublicIp"]["count"] == 2
    assert all(r["resource_type"] == "Aggregate" for r in rows)


def test_markdown_output(snapshot_file, capsys):
    cli.main(["--inventory", str(snapshot_file), "--format", "markdown", "--skip-resource", "FlexibleGpu"])

    out = capsys.readouterr().out
    assert "| Account Id | 123456789012 |" in out
    assert "FlexibleGpu" not in out
    assert "| Vm | 2 |" in out


def test_drift(snapshot_file, tmp_path, capsys):
    consumption = tmp_path / "consumption.json"
    consumption.write_text(
        json.dumps(
            {
                "ConsumptionEntries": [
                    {"Service": "TinaOS-FCU", "Type": "Gpu:attach:nvidia-p100", "Operation": "AllocateGpu", "Value": 20},
                ]
            }
        ),
        encoding="utf-8",
    )

    cli.main(
        [
            "--inventory",
            str(snapshot_file),
            "--compute-drift",
            "--from-date",
            "2024-01-01",
            "--to-date",
            "2024-01-02",
            "--consumption",
            str(consumption),
            "--format",
            "json",
        ]
    )

    drifts = {d["category"]: d for d in map(json.loads, capsys.readouterr().out.splitlines())}
    assert drifts["FlexibleGpu"]["drift"] == 20
    assert drifts["Vm"]["drift"] == 100
    assert drifts["Vm"]["digest_price"] == 0.0


def test_trace_file(snapshot_file, tmp_path, capsys):
    trace_path = tmp_path / "trace.jsonl"
    cli.main(["--inventory", str(snapshot_file), "--trace-path", str(trace_path)])

    phases = [json.loads(line)["phase"] for line in trace_path.read_text(encoding="utf-8").splitlines()]
    assert phases[0] == "setup"
    assert phases[-1] == "computed"


def test_help_resources(capsys):
    cli.main(["--help-resources"])

    out = capsys.readouterr().out
    assert "- Vm" in out
    assert "- DedicatedInstance" in out
    assert "(0002)" in out
    assert "(0001)" not in out


def test_missing_inventory_exits_with_error(tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--inventory", str(tmp_path / "missing.json")])

    assert exc.value.code == 1


def test_invalid_drift_window_exits_with_error(snapshot_file):
    with pytest.raises(SystemExit) as exc:
        cli.main(
            [
                "--inventory",
                str(snapshot_file),
                "--compute-drift",
                "--from-date",
                "2024-01-02",
                "--to-date",
                "2024-01-01",
                "--format",
                "json",
            ]
        )

    assert exc.value.code == 1


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--inventory", "x.json", "--compute-drift", "--format", "json"],
        ["--inventory", "x.json", "--compute-drift", "--from-date", "2024-01-01", "--to-date", "2024-01-02"],
    ],
)
def test_invalid_arguments(argv):
    with pytest.raises(SystemExit) as exc:
        cli.parse_args(argv)

    assert exc.value.code == 2


def test_malformed_consumption_exits_with_error(snapshot_file, tmp_path, capsys):
    consumption = tmp_path / "consumption.json"
    consumption.write_text(
        json.dumps([{"Service": "TinaOS-FCU", "Type": "Snapshot:Usage", "Operation": "Snapshot", "Value": "n/a"}]),
        encoding="utf-8",
    )

    with pytest.raises(SystemExit) as exc:
        cli.main(
            [
                "--inventory",
                str(snapshot_file),
                "--compute-drift",
                "--from-date",
                "2024-01-01",
                "--to-date",
                "2024-01-02",
                "--consumption",
                str(consumption),
                "--format",
                "json",
            ]
        )

    assert exc.value.code == 1
    assert capsys.readouterr().out == ""


def test_trace_reports_skipped_counts(snapshot_file, snapshot_data, tmp_path):
    snapshot_data["Vms"].append({"VmId": "i-broken", "VmType": "tinav5.c2r4", "State": "running"})
    snapshot_file.write_text(json.dumps(snapshot_data), encoding="utf-8")
    trace_path = tmp_path / "trace.jsonl"

    cli.main(["--inventory", str(snapshot_file), "--trace-path", str(trace_path)])

    events = [json.loads(line) for line in trace_path.read_text(encoding="utf-8").splitlines()]
    computed = [e for e in events if e["phase"] == "computed"][0]
    assert computed["payload"]["skipped"] == {"Vm": 1}
