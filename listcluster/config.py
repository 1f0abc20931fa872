from __future__ import annotations

import os
from typing import List, Optional

from pydantic import BaseModel, Field


def _env_number(name: str, default: str, cast=int):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a {cast.__name__}, got {raw!r}") from None


# ---------------------------
# RBO defaults
# ---------------------------

# persistence: chance of looking at rank k + 1 after rank k
DEFAULT_P = _env_number("LISTCLUSTER_P", "0.9", float)


# ---------------------------
# Worker pool sizing
# ---------------------------

MAX_CONCURRENCY = 64


def _default_concurrency() -> int:
    if os.getenv("LISTCLUSTER_CONCURRENCY"):
        return max(1, min(_env_number("LISTCLUSTER_CONCURRENCY", "1"), MAX_CONCURRENCY))
    return max(1, min(os.cpu_count() or 1, MAX_CONCURRENCY))


DEFAULT_CONCURRENCY = _default_concurrency()

# bounded buffers give backpressure on add(); sizes only trade memory for throughput
TASK_BUFFER_SIZE = _env_number("LISTCLUSTER_TASK_BUFFER", "100")
RESULT_BUFFER_SIZE = _env_number("LISTCLUSTER_RESULT_BUFFER", "50")


# ---------------------------
# Loader / export settings
# ---------------------------

LABEL_COLUMN = "label"
MEMBER_COLUMN = "member"
RANK_COLUMN = "rank"

EDGE_COLUMNS: List[str] = ["source", "target", "similarity"]

DEFAULT_MIN_SIMILARITY = 0.0


# ---------------------------
# Pydantic models shared by the CLI and the API
# ---------------------------

class RankedListIn(BaseModel):
    """
    One ranked list as it arrives over the wire.
    """

    label: str = Field(..., min_length=1)
    members: List[str]


class GraphRequest(BaseModel):
    """
    Request body for POST /graph.
    """

    p: float = Field(DEFAULT_P, ge=0.0, le=1.0)
    lists: List[RankedListIn] = Field(..., min_length=1)
    concurrency: Optional[int] = Field(None, ge=1, le=MAX_CONCURRENCY)
    min_similarity: float = Field(DEFAULT_MIN_SIMILARITY, ge=0.0, le=1.0)


class EdgeOut(BaseModel):
    source: str
    target: str
    similarity: float


class GraphResponse(BaseModel):
    """
    Response body for POST /graph.

    ``error`` carries the first failed pair, if any; ``edges`` still holds
    every pair that succeeded.
    """

    edges: List[EdgeOut]
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """
    Response body for GET /health.
    """

    status: str
