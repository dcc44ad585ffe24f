# /moviegraph/memory_store.py

import itertools
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from moviegraph.database import GraphStore, validate_edge_label
from moviegraph.errors import InvalidArgument, NotFound
from moviegraph.logger import get_logger
from moviegraph.models import (
    Direction,
    MOVIE_CAST,
    MOVIE_DIRECTOR,
    MOVIE_LABEL,
    MOVIE_REVIEWS,
    NATURAL_KEYS,
    PERSON_FOLLOWERS,
    PERSON_FOLLOWS,
    PERSON_LABEL,
    PERSON_REVIEWS,
    Movie,
    MovieGraph,
    Person,
    RelationshipType,
    Review,
    Roles,
)

logger = get_logger(__name__)


@dataclass
class _Node:
    id: int
    label: str
    props: Dict[str, Any] = field(default_factory=dict)


@dataclass
class _Edge:
    id: int
    label: str
    source: int
    target: int
    props: Dict[str, Any] = field(default_factory=dict)


class InMemoryGraphStore(GraphStore):
    """
    A process-local GraphStore. Node and edge ids come from one counter, so every
    stored record has a distinct integer identity, as in Neo4j.
    """
    def __init__(self):
        self._nodes: Dict[int, _Node] = {}
        self._edges: Dict[int, _Edge] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    # --- helpers ---

    def _nodes_of(self, label: str, **props) -> List[_Node]:
        return [
            node for node in sorted(self._nodes.values(), key=lambda n: n.id)
            if node.label == label and all(node.props.get(k) == v for k, v in props.items())
        ]

    def _create_node(self, label: str, props: Dict[str, Any]) -> _Node:
        node = _Node(id=next(self._ids), label=label, props=dict(props))
        self._nodes[node.id] = node
        return node

    def _create_edge(self, label: str, source: int, target: int, props: Dict[str, Any]) -> _Edge:
        edge = _Edge(id=next(self._ids), label=label, source=source, target=target, props=dict(props))
        self._edges[edge.id] = edge
        return edge

    def _traverse(self, relationship: RelationshipType, head_id: int):
        """Yields (edge, tail node) pairs for one head, in edge-id order."""
        for edge in sorted(self._edges.values(), key=lambda e: e.id):
            if edge.label != relationship.label:
                continue
            if relationship.direction == Direction.OUTGOING:
                near, far = edge.source, edge.target
            else:
                near, far = edge.target, edge.source
            if near != head_id:
                continue
            tail = self._nodes.get(far)
            if tail is not None and tail.label == relationship.tail:
                yield edge, tail

    def _grouped(self, relationship: RelationshipType, parent_ids: List[int], build) -> Dict[int, list]:
        grouped = {}
        for parent_id in parent_ids:
            head = self._nodes.get(parent_id)
            if head is None or head.label != relationship.head:
                continue
            items = [build(parent_id, edge, tail) for edge, tail in self._traverse(relationship, parent_id)]
            if items:
                grouped[parent_id] = items
        return grouped

    @staticmethod
    def _movie(node: _Node) -> Movie:
        return Movie(id=node.id, title=node.props["title"], tagline=node.props.get("tagline"), released=node.props["released"])

    @staticmethod
    def _person(node: _Node) -> Person:
        return Person(id=node.id, name=node.props["name"])

    def _review(self, edge: _Edge) -> Review:
        return Review(
            id=edge.id,
            summary=edge.props["summary"],
            rating=edge.props["rating"],
            reviewer=self._person(self._nodes[edge.source]),
            movie_id=edge.target,
            created_when=edge.props.get("createdWhen"),
        )

    # --- GraphStore ---

    def find_movies_by_title(self, title: str, limit: int = 2) -> List[Movie]:
        with self._lock:
            return [self._movie(node) for node in self._nodes_of(MOVIE_LABEL, title=title)[:limit]]

    def find_all_movies(self) -> List[Movie]:
        with self._lock:
            return [self._movie(node) for node in self._nodes_of(MOVIE_LABEL)]

    def find_movies_by_ids(self, movie_ids: List[int]) -> Dict[int, Movie]:
        with self._lock:
            return {
                movie_id: self._movie(self._nodes[movie_id])
                for movie_id in movie_ids
                if movie_id in self._nodes and self._nodes[movie_id].label == MOVIE_LABEL
            }

    def find_people_by_name(self, name: str, limit: int = 2) -> List[Person]:
        with self._lock:
            return [self._person(node) for node in self._nodes_of(PERSON_LABEL, name=name)[:limit]]

    def find_follows(self, person_id: int) -> List[Person]:
        with self._lock:
            return [self._person(tail) for _, tail in self._traverse(PERSON_FOLLOWS, person_id)]

    def find_followers(self, person_id: int) -> List[Person]:
        with self._lock:
            return [self._person(tail) for _, tail in self._traverse(PERSON_FOLLOWERS, person_id)]

    def find_reviews_by_movie_ids(self, movie_ids: List[int]) -> Dict[int, List[Review]]:
        with self._lock:
            return self._grouped(MOVIE_REVIEWS, movie_ids, lambda _, edge, tail: self._review(edge))

    def find_directors_by_movie_ids(self, movie_ids: List[int]) -> Dict[int, List[Person]]:
        with self._lock:
            return self._grouped(MOVIE_DIRECTOR, movie_ids, lambda _, edge, tail: self._person(tail))

    def find_roles_by_movie_ids(self, movie_ids: List[int]) -> Dict[int, List[Roles]]:
        with self._lock:
            return self._grouped(
                MOVIE_CAST, movie_ids,
                lambda movie_id, edge, tail: Roles(
                    id=edge.id, roles=edge.props.get("roles", ()), actor=self._person(tail), movie_id=movie_id,
                ),
            )

    def find_reviews_by_reviewer_ids(self, person_ids: List[int]) -> Dict[int, List[Review]]:
        with self._lock:
            return self._grouped(PERSON_REVIEWS, person_ids, lambda _, edge, tail: self._review(edge))

    def add_review(self, movie_id: int, review: Review) -> Review:
        with self._lock:
            movie = self._nodes.get(movie_id)
            reviewer = self._nodes.get(review.reviewer.id)
            if movie is None or movie.label != MOVIE_LABEL or reviewer is None or reviewer.label != PERSON_LABEL:
                raise NotFound(f"Movie {movie_id} or reviewer {review.reviewer.id} no longer exists.")
            edge = self._create_edge(
                MOVIE_REVIEWS.label, reviewer.id, movie.id,
                {"summary": review.summary, "rating": review.rating, "createdWhen": review.created_when},
            )
        logger.info("Added review", extra={"movie_id": movie_id, "review_id": edge.id})
        return review.model_copy(update={"id": edge.id, "movie_id": movie_id})

    def save_movie(self, movie: Movie) -> Movie:
        with self._lock:
            if movie.id is None:
                node = self._create_node(MOVIE_LABEL, {})
            else:
                node = self._nodes.get(movie.id)
                if node is None or node.label != MOVIE_LABEL:
                    raise NotFound(f"Movie {movie.id} no longer exists.")
            node.props.update(movie.properties())

            keep = {review.id for review in movie.reviews if review.id is not None}
            stale = [
                edge.id for edge, _ in self._traverse(MOVIE_REVIEWS, node.id) if edge.id not in keep
            ]
            for edge_id in stale:
                del self._edges[edge_id]

            for review in movie.reviews:
                if review.id is None:
                    reviewer = self._nodes.get(review.reviewer.id)
                    if reviewer is None or reviewer.label != PERSON_LABEL:
                        raise InvalidArgument("No such reviewer")
                    self._create_edge(
                        MOVIE_REVIEWS.label, reviewer.id, node.id,
                        {"summary": review.summary, "rating": review.rating, "createdWhen": review.created_when},
                    )
                elif review.id in self._edges:
                    self._edges[review.id].props.update({"summary": review.summary, "rating": review.rating})

            logger.info("Saved movie", extra={"movie_id": node.id, "reviews": len(movie.reviews)})
            reviews = self.find_reviews_by_movie_ids([node.id]).get(node.id, [])
            return self._movie(node).model_copy(update={"reviews": tuple(reviews)})

    def write_graph(self, graph: MovieGraph):
        with self._lock:
            keyed: Dict[tuple, _Node] = {}
            for node in graph.nodes:
                if node.type not in NATURAL_KEYS:
                    raise InvalidArgument(f"Unknown node type '{node.type}'.")
                key_prop = NATURAL_KEYS[node.type]
                existing = self._nodes_of(node.type, **{key_prop: node.key})
                target = existing[0] if existing else self._create_node(node.type, {key_prop: node.key})
                target.props.update(node.properties)
                keyed[(node.type, node.key)] = target

            for edge in graph.edges:
                source_type, target_type = validate_edge_label(edge.label)
                source = self._lookup(keyed, source_type, edge.source)
                target = self._lookup(keyed, target_type, edge.target)
                if source is None or target is None:
                    # MATCH semantics: an edge between unknown nodes is skipped
                    continue
                merged = next(
                    (e for e in self._edges.values()
                     if e.label == edge.label and e.source == source.id and e.target == target.id),
                    None,
                )
                if merged is None:
                    self._create_edge(edge.label, source.id, target.id, edge.properties)
                else:
                    merged.props.update(edge.properties)
        logger.info("Seed graph written", extra={"nodes": len(graph.nodes), "edges": len(graph.edges)})

    def _lookup(self, keyed: Dict[tuple, _Node], label: str, key: str) -> Optional[_Node]:
        if (label, key) in keyed:
            return keyed[(label, key)]
        existing = self._nodes_of(label, **{NATURAL_KEYS[label]: key})
        return existing[0] if existing else None

    def close(self):
        pass
