# /moviegraph/models.py

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

# Entities are immutable snapshots. Changing one means building a new
# snapshot (model_copy / the command methods below) and handing it to the store.

class Direction(str, Enum):
    OUTGOING = "OUTGOING"
    INCOMING = "INCOMING"

class RelationshipType(BaseModel):
    """
    Describes one relationship field: the edge label, the node type that owns
    the field (head), the node type on the other end (tail), and which way the
    edge points when seen from the head.
    """
    model_config = ConfigDict(frozen=True)

    field: str
    label: str
    head: str
    tail: str
    direction: Direction

    @property
    def source(self) -> str:
        """Node type at the start of the stored edge."""
        return self.head if self.direction == Direction.OUTGOING else self.tail

    @property
    def target(self) -> str:
        """Node type at the end of the stored edge."""
        return self.tail if self.direction == Direction.OUTGOING else self.head

    def pattern(self, head_var: str = "h", edge_var: str = "r", tail_var: str = "t") -> str:
        """Cypher path pattern for this relationship, written from the head."""
        head = f"({head_var}:{self.head})"
        tail = f"({tail_var}:{self.tail})"
        if self.direction == Direction.OUTGOING:
            return f"{head}-[{edge_var}:{self.label}]->{tail}"
        return f"{head}<-[{edge_var}:{self.label}]-{tail}"


MOVIE_LABEL = "Movie"
PERSON_LABEL = "Person"

MOVIE_DIRECTOR = RelationshipType(field="director", label="DIRECTED", head=MOVIE_LABEL, tail=PERSON_LABEL, direction=Direction.INCOMING)
MOVIE_CAST = RelationshipType(field="actorsAndRoles", label="ACTED_IN", head=MOVIE_LABEL, tail=PERSON_LABEL, direction=Direction.INCOMING)
MOVIE_REVIEWS = RelationshipType(field="reviews", label="REVIEWED", head=MOVIE_LABEL, tail=PERSON_LABEL, direction=Direction.INCOMING)
PERSON_FOLLOWS = RelationshipType(field="follows", label="FOLLOWS", head=PERSON_LABEL, tail=PERSON_LABEL, direction=Direction.OUTGOING)
PERSON_FOLLOWERS = RelationshipType(field="followers", label="FOLLOWS", head=PERSON_LABEL, tail=PERSON_LABEL, direction=Direction.INCOMING)
PERSON_REVIEWS = RelationshipType(field="wroteReviews", label="REVIEWED", head=PERSON_LABEL, tail=MOVIE_LABEL, direction=Direction.OUTGOING)

RELATIONSHIPS: Tuple[RelationshipType, ...] = (
    MOVIE_DIRECTOR, MOVIE_CAST, MOVIE_REVIEWS, PERSON_FOLLOWS, PERSON_FOLLOWERS, PERSON_REVIEWS,
)

# Stored edge label -> (source node type, target node type)
EDGE_ENDPOINTS: Dict[str, Tuple[str, str]] = {rel.label: (rel.source, rel.target) for rel in RELATIONSHIPS}

# Property used as the natural key of each node type
NATURAL_KEYS: Dict[str, str] = {MOVIE_LABEL: "title", PERSON_LABEL: "name"}


class Person(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = Field(default=None, description="Store-assigned identity; None until persisted.")
    name: str


class Review(BaseModel):
    """A REVIEWED edge from a reviewer to a movie, with its payload."""
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = Field(default=None, description="Edge identity; None until persisted.")
    summary: str
    rating: int
    reviewer: Person
    movie_id: Optional[int] = None
    created_when: Optional[datetime] = None


class Roles(BaseModel):
    """An ACTED_IN edge: the characters one actor played in one movie, in order."""
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    roles: Tuple[str, ...] = ()
    actor: Person
    movie_id: Optional[int] = None


class Movie(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = Field(default=None, description="Store-assigned identity; None until persisted.")
    title: str
    tagline: Optional[str] = None
    released: int
    reviews: Tuple[Review, ...] = Field(default=(), description="Loaded reviews; only meaningful when the caller loaded them.")

    def with_review(self, review: Review) -> "Movie":
        return self.model_copy(update={"reviews": self.reviews + (review,)})

    def without_reviews(self) -> "Movie":
        return self.model_copy(update={"reviews": ()})

    def properties(self) -> Dict[str, Any]:
        return {"title": self.title, "tagline": self.tagline, "released": self.released}


# --- Seed graph ---

class GraphNode(BaseModel):
    key: str = Field(description="Natural key of the node: a movie title or a person's name.")
    type: str = Field(description="Node label, Movie or Person.")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Additional node properties (tagline, released, ...).")

class GraphEdge(BaseModel):
    source: str = Field(description="Natural key of the source node.")
    target: str = Field(description="Natural key of the target node.")
    label: str = Field(description="Relationship label (DIRECTED, ACTED_IN, REVIEWED, FOLLOWS).")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Edge payload, e.g. roles or a review's summary and rating.")

class MovieGraph(BaseModel):
    nodes: List[GraphNode]
    edges: List[GraphEdge]
