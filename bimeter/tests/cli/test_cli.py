from __future__ import annotations

import json
from pathlib import Path

from bimeter.cli.args import parse_args
from bimeter.cli.main import main


def _capture(tmp_path: Path) -> Path:
    p = tmp_path / "capture.jsonl"
    rows = [
        {"dp": 102, "value": 0, "seq": 0},
        {"dp": 101, "value": 798, "seq": 256},
        {"dp": 113, "value": 1500, "seq": 512},
        {"dp": 110, "value": 95, "seq": 768},
        {"type": "time_sync"},
        {"dp": 104, "value": 1, "seq": 1280},
        {"dp": 105, "value": 371, "seq": 1536},
        {"dp": 114, "value": 800, "seq": 1792},
        {"dp": 121, "value": 90, "seq": 2048},
    ]
    p.write_text("\n".join(json.dumps(r) for r in rows) + "\n", encoding="utf-8")
    return p


def test_parse_replay_args():
    args = parse_args(["--model", "X", "replay", "cap.jsonl", "--quiet", "--device", "d1"])
    assert args.cmd == "replay"
    assert args.model == "X"
    assert args.quiet is True
    assert args.device == "d1"
    assert args.options is None


def test_models_lists_packaged_models(capsys):
    assert main(["models"]) == 0
    out = capsys.readouterr().out
    assert "PJ-1203A:" in out
    assert "PJ-1203A-inverted:" in out


def test_datapoints_table(capsys):
    assert main(["datapoints"]) == 0
    out = capsys.readouterr().out
    assert "power_a" in out
    assert "power_factor_b" in out


def test_unknown_model_reports_error(capsys):
    assert main(["--model", "nope", "datapoints"]) == 1
    out = capsys.readouterr().out
    assert "ERROR: Unknown device model 'nope'." in out
    assert "Hint:" in out


def test_replay_prints_updates_and_summary(tmp_path: Path, capsys):
    cap = _capture(tmp_path)
    out_file = tmp_path / "updates.jsonl"
    state = tmp_path / "state.json"

    rc = main(["replay", str(cap), "--out", str(out_file), "--state", str(state)])
    assert rc == 0

    out = capsys.readouterr().out
    assert "UPDATE device seq=768 (in_order)" in out
    assert "Replayed 8 messages (1 time syncs): 2 updates, 0 gaps, 0 duplicates" in out

    records = [json.loads(line) for line in out_file.read_text(encoding="utf-8").splitlines()]
    assert records[-1]["values"]["power_ab"] == 42.7
    assert state.exists()


def test_replay_with_bad_options_file(tmp_path: Path, capsys):
    cap = _capture(tmp_path)
    opts = tmp_path / "opts.yml"
    opts.write_text("no_such_option: 1\n", encoding="utf-8")

    assert main(["replay", str(cap), "--options", str(opts), "--quiet"]) == 1
    assert "ERROR: Unknown option 'no_such_option'" in capsys.readouterr().out
