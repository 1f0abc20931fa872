# listcluster/loaders.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from loguru import logger

from .config import LABEL_COLUMN, MEMBER_COLUMN, RANK_COLUMN
from .pipeline_types import SimpleRankedList


def _split_members(value: Any) -> List[str]:
    """
    Accept a list of ids or a comma/pipe separated string.
    """
    if value is None:
        return []
    if isinstance(value, str):
        sep = "|" if "|" in value else ","
        return [x.strip() for x in value.split(sep) if x.strip()]
    if isinstance(value, (list, tuple)):
        return [str(x).strip() for x in value if str(x).strip()]
    raise ValueError(f"members must be a list or a delimited string, got {type(value).__name__}")


def ranked_list_from_record(record: Mapping[str, Any]) -> SimpleRankedList:
    label = str(record.get("label") or "").strip()
    if not label:
        raise ValueError(f"ranked list record has no label: {record!r}")
    return SimpleRankedList(label=label, members=tuple(_split_members(record.get("members"))))


def _resolve_column(df: pd.DataFrame, name: str) -> Optional[str]:
    cols = {str(c).lower(): c for c in df.columns}
    return cols.get(name.lower())


def ranked_lists_from_frame(
    df: pd.DataFrame,
    label_col: str = LABEL_COLUMN,
    member_col: str = MEMBER_COLUMN,
    rank_col: Optional[str] = RANK_COLUMN,
) -> List[SimpleRankedList]:
    """
    Build one ranked list per label from a long-format frame.

    One row per (label, member).  Members are ordered by ``rank_col`` when the
    frame has it, otherwise by row order.  Lists come back in order of first
    appearance of their label.
    """
    lcol = _resolve_column(df, label_col)
    mcol = _resolve_column(df, member_col)
    if not lcol or not mcol:
        raise ValueError(
            f"Expected columns '{label_col}' and '{member_col}'. Found: {list(df.columns)}"
        )
    rcol = _resolve_column(df, rank_col) if rank_col else None

    clean = df.dropna(subset=[lcol, mcol])
    dropped = len(df) - len(clean)
    if dropped:
        logger.warning("Dropped {} rows with missing label or member", dropped)

    if rcol:
        clean = clean.assign(**{rcol: pd.to_numeric(clean[rcol], errors="coerce")})

    lists: List[SimpleRankedList] = []
    for label, frame in clean.groupby(lcol, sort=False):
        if rcol:
            frame = frame.sort_values(rcol, kind="stable", na_position="last")
        members = tuple(str(m).strip() for m in frame[mcol].tolist())
        lists.append(SimpleRankedList(label=str(label).strip(), members=members))

    logger.info("Built {} ranked lists from {} rows", len(lists), len(clean))
    return lists


def _lists_from_json(raw: Any) -> List[SimpleRankedList]:
    if isinstance(raw, dict):
        return [ranked_list_from_record({"label": k, "members": v}) for k, v in raw.items()]
    if isinstance(raw, list):
        return [ranked_list_from_record(r) for r in raw]
    raise ValueError(f"Unsupported JSON layout: {type(raw).__name__}")


def load_ranked_lists(path: Path) -> List[SimpleRankedList]:
    """
    Load ranked lists from ``.csv`` (long format), ``.json`` or ``.jsonl``.

    JSON may be a list of ``{"label", "members"}`` objects or a
    ``label -> members`` mapping; JSONL holds one object per line.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    ext = path.suffix.lower()
    logger.info("Loading ranked lists from {}", path)

    if ext == ".csv":
        df = pd.read_csv(path, encoding="utf-8", dtype=str)
        return ranked_lists_from_frame(df)
    if ext == ".json":
        with path.open("r", encoding="utf-8") as f:
            return _lists_from_json(json.load(f))
    if ext == ".jsonl":
        records: List[Dict[str, Any]] = []
        with path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    records.append(json.loads(line))
        return _lists_from_json(records)

    raise ValueError(f"Unsupported input format '{ext}' (expected .csv, .json or .jsonl)")
