"""Smoke tests for the CLI entry point."""
from __future__ import annotations

import json

import pytest

from lead_importer import __main__
from lead_importer.cli import main


def _write_inputs(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "import:\n"
        "  chunk_size: 1\n"
        "users:\n"
        "  - {id: 7, name: Anupriya, role: admin}\n"
        "  - {id: 1, name: Likitha}\n",
        encoding="utf-8",
    )

    input_path = tmp_path / "input.csv"
    input_path.write_text(
        "UID,Lead Created Date,Student Name,Intake,Country,Source,MobileNumber,"
        "Current Stage,Remarks,Counsellors,Passport Status\n"
        "LD001,2024-01-15,Jane Doe,2025-Fall,IN,Website,+919876543210,Yet to Contact,,Likitha,Valid\n"
        ",,,Fall 2025,usa,,123,,,,\n",
        encoding="utf-8",
    )
    return config_path, input_path


def test_cli_smoke_runs_an_import(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path, input_path = _write_inputs(tmp_path)
    output_dir = tmp_path / "reports"

    exit_code = main([str(input_path), "--config", str(config_path), "--output-dir", str(output_dir), "--strict-headers"])

    assert exit_code == 0
    assert "2 rows: 1 imported, 1 with issues, 0 failed" in capsys.readouterr().out
    summary = json.loads((output_dir / "batch_summary.json").read_text(encoding="utf-8"))
    assert summary["chunkStats"]["totalChunks"] == 2
    assert "Jane Doe" in (output_dir / "normalized_payload.jsonl").read_text(encoding="utf-8")


def test_cli_rejects_bad_configuration(tmp_path) -> None:
    _, input_path = _write_inputs(tmp_path)
    bad_config = tmp_path / "bad.json"
    bad_config.write_text(json.dumps({"import": {"mode": "parallel"}}), encoding="utf-8")

    assert main([str(input_path), "--config", str(bad_config), "--output-dir", str(tmp_path)]) == 2
    assert not (tmp_path / "batch_summary.json").exists()


def test_cli_rejects_zero_chunk_size(tmp_path) -> None:
    config_path, input_path = _write_inputs(tmp_path)
    output_dir = tmp_path / "reports"

    exit_code = main(
        [str(input_path), "--config", str(config_path), "--output-dir", str(output_dir), "--chunk-size", "0"]
    )

    assert exit_code == 2
    assert not output_dir.exists()


def test_cli_rejects_unsupported_upload(tmp_path) -> None:
    upload = tmp_path / "leads.txt"
    upload.write_text("hello", encoding="utf-8")

    assert main([str(upload)]) == 2


def test_cli_writes_template(tmp_path) -> None:
    target = tmp_path / "template.csv"

    assert main(["--template", str(target)]) == 0
    assert target.read_text(encoding="utf-8").startswith("UID,Lead Created Date,Student Name")


def test_module_entry_point_delegates_to_cli(tmp_path) -> None:
    """The package entry point should behave like the CLI."""

    config_path, input_path = _write_inputs(tmp_path)
    output_dir = tmp_path / "reports"

    exit_code = __main__.main(
        [str(input_path), "--config", str(config_path), "--output-dir", str(output_dir), "--dry-run", "--excel"]
    )

    assert exit_code == 0
    assert (output_dir / "validation_log.xlsx").exists()


def test_module_entry_point_without_arguments_shows_help(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = __main__.main([])

    captured = capsys.readouterr()
    assert "python -m lead_importer" in captured.out
    assert exit_code == 2
