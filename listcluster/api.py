from __future__ import annotations

"""
FastAPI surface over the graph builder.

- GET  /health  liveness probe
- POST /graph   score every pair of the posted lists; partial failures come
                back as ``error`` alongside the edges that did succeed
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config import GraphRequest, GraphResponse, HealthResponse
from .export import edges_to_response, filter_edges
from .graph import compute_graph
from .pipeline_types import SimpleRankedList


app = FastAPI(title="listcluster")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="healthy")


@app.post("/graph", response_model=GraphResponse)
def graph(req: GraphRequest) -> GraphResponse:
    lists = [SimpleRankedList(label=r.label, members=tuple(r.members)) for r in req.lists]
    logger.info("POST /graph with {} lists (p={})", len(lists), req.p)
    edges, error = compute_graph(req.p, lists, concurrency=req.concurrency)
    return edges_to_response(filter_edges(edges, req.min_similarity), error)
