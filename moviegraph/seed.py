# /moviegraph/seed.py

import json
from pathlib import Path

from moviegraph.models import MovieGraph
from moviegraph.timestamps import parse_instant


def load_seed(path) -> MovieGraph:
    """Reads a seed graph from JSON. Review timestamps are stored as ISO-8601 strings."""
    with open(Path(path), 'r', encoding='utf-8') as f:
        data = json.load(f)

    graph = MovieGraph(**data)
    for edge in graph.edges:
        created = edge.properties.get("createdWhen")
        if isinstance(created, str):
            edge.properties["createdWhen"] = parse_instant(created)
    return graph
