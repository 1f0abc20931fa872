import json

import pandas as pd
import pytest

from listcluster.cli import main


def _write_lists(path):
    path.write_text(
        json.dumps(
            {
                "q1": ["a", "b", "c", "d"],
                "q2": ["c", "a", "b", "d"],
                "q3": ["a", "b", "c", "d"],
            }
        ),
        encoding="utf-8",
    )


def test_cli_writes_edge_csv(tmp_path):
    src = tmp_path / "lists.json"
    _write_lists(src)
    out = tmp_path / "edges.csv"

    code = main(["--input", str(src), "--p", "0.9", "--concurrency", "2", "--output", str(out)])

    assert code == 0
    df = pd.read_csv(out)
    assert len(df) == 3
    same = df[(df["source"] == "q1") & (df["target"] == "q3")]
    assert abs(float(same["similarity"].iloc[0]) - 1.0) < 1e-9


def test_cli_min_similarity_filters(tmp_path):
    src = tmp_path / "lists.json"
    _write_lists(src)
    out = tmp_path / "edges.csv"
    main(["--input", str(src), "--min-similarity", "0.99", "--output", str(out)])
    df = pd.read_csv(out)
    assert len(df) == 1


def test_cli_prints_to_stdout(tmp_path, capsys):
    src = tmp_path / "lists.json"
    _write_lists(src)
    assert main(["--input", str(src)]) == 0
    captured = capsys.readouterr()
    assert captured.out.startswith("source,target,similarity")


def test_cli_rejects_bad_p(tmp_path):
    src = tmp_path / "lists.json"
    _write_lists(src)
    with pytest.raises(SystemExit) as exc:
        main(["--input", str(src), "--p", "1.5"])
    assert exc.value.code == 2


def test_cli_exit_code_when_every_pair_fails(tmp_path):
    src = tmp_path / "lists.json"
    src.write_text(json.dumps({"q1": ["a"], "q2": []}), encoding="utf-8")
    out = tmp_path / "edges.csv"
    assert main(["--input", str(src), "--output", str(out)]) == 1
