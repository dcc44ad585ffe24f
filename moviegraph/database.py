# /moviegraph/database.py

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from neo4j import GraphDatabase

from moviegraph.config import settings
from moviegraph.errors import InvalidArgument, NotFound
from moviegraph.logger import get_logger
from moviegraph.models import (
    EDGE_ENDPOINTS,
    MOVIE_CAST,
    MOVIE_DIRECTOR,
    MOVIE_LABEL,
    MOVIE_REVIEWS,
    NATURAL_KEYS,
    PERSON_FOLLOWERS,
    PERSON_FOLLOWS,
    PERSON_REVIEWS,
    Movie,
    MovieGraph,
    Person,
    RelationshipType,
    Review,
    Roles,
)

logger = get_logger(__name__)

class GraphStore(ABC):
    """
    An abstract base class defining the operations the movie service needs from a graph store.
    The `*_by_*_ids` methods are the batched primitives: one round trip for any number of parents.
    """
    @abstractmethod
    def find_movies_by_title(self, title: str, limit: int = 2) -> List[Movie]:
        pass

    @abstractmethod
    def find_all_movies(self) -> List[Movie]:
        pass

    @abstractmethod
    def find_movies_by_ids(self, movie_ids: List[int]) -> Dict[int, Movie]:
        pass

    @abstractmethod
    def find_people_by_name(self, name: str, limit: int = 2) -> List[Person]:
        pass

    @abstractmethod
    def find_follows(self, person_id: int) -> List[Person]:
        pass

    @abstractmethod
    def find_followers(self, person_id: int) -> List[Person]:
        pass

    @abstractmethod
    def find_reviews_by_movie_ids(self, movie_ids: List[int]) -> Dict[int, List[Review]]:
        pass

    @abstractmethod
    def find_directors_by_movie_ids(self, movie_ids: List[int]) -> Dict[int, List[Person]]:
        pass

    @abstractmethod
    def find_roles_by_movie_ids(self, movie_ids: List[int]) -> Dict[int, List[Roles]]:
        pass

    @abstractmethod
    def find_reviews_by_reviewer_ids(self, person_ids: List[int]) -> Dict[int, List[Review]]:
        pass

    @abstractmethod
    def add_review(self, movie_id: int, review: Review) -> Review:
        """
        Creates one REVIEWED edge from the reviewer to the movie and returns the review with its id.
        Other reviews of the movie are left untouched.
        """
        pass

    @abstractmethod
    def save_movie(self, movie: Movie) -> Movie:
        """
        Upserts the movie and makes its stored REVIEWED edges match `movie.reviews`:
        reviews without an id are created, stored reviews missing from the snapshot are deleted.
        Returns the persisted movie with its reviews loaded.
        """
        pass

    @abstractmethod
    def write_graph(self, graph: MovieGraph):
        pass

    @abstractmethod
    def close(self):
        pass


def validate_edge_label(label: str):
    if label not in EDGE_ENDPOINTS:
        raise InvalidArgument(f"Unknown relationship label '{label}'.")
    return EDGE_ENDPOINTS[label]


def _native(value: Any) -> Any:
    # neo4j.time types carry a to_native() converter
    return value.to_native() if hasattr(value, "to_native") else value


MOVIE_PROJECTION = "{id: id(m), title: m.title, tagline: m.tagline, released: m.released}"


def _movie(row: Dict[str, Any]) -> Movie:
    return Movie(id=row["id"], title=row["title"], tagline=row.get("tagline"), released=row["released"])


def _person(row: Dict[str, Any]) -> Person:
    return Person(id=row["id"], name=row["name"])


def _review(row: Dict[str, Any]) -> Review:
    return Review(
        id=row["id"],
        summary=row["summary"],
        rating=row["rating"],
        reviewer=Person(id=row["reviewer_id"], name=row["reviewer_name"]),
        movie_id=row["movie_id"],
        created_when=_native(row.get("createdWhen")),
    )


class Neo4jGraphStore(GraphStore):
    """Concrete implementation of the GraphStore for Neo4j."""
    def __init__(self, uri: str = None, user: str = None, password: str = None, database: Optional[str] = None, driver=None):
        if driver is not None:
            self._driver = driver
        else:
            uri = uri or settings.NEO4J_URI
            user = user or settings.NEO4J_USERNAME
            password = password if password is not None else settings.NEO4J_PASSWORD
            if not all([uri, user]):
                raise ValueError("Neo4j credentials not found in settings or .env file.")
            self._driver = GraphDatabase.driver(uri, auth=(user, password))
        self._database = database if database is not None else settings.NEO4J_DATABASE

    def _run(self, query: str, **params) -> List[Dict[str, Any]]:
        logger.debug("Executing Cypher", extra={"query": " ".join(query.split()), "params": list(params)})
        with self._driver.session(database=self._database) as session:
            result = session.run(query, params)
            return result.data()

    def _related(self, relationship: RelationshipType, parent_ids: List[int], item: str, order_by: str) -> Dict[int, List[Dict[str, Any]]]:
        """Runs one grouped query returning, per head id, the list of `item` maps."""
        cypher = f"""
        MATCH {relationship.pattern("h", "r", "t")}
        WHERE id(h) IN $parent_ids
        WITH h, r, t ORDER BY {order_by}
        RETURN id(h) AS parent_id, collect({item}) AS items
        """
        rows = self._run(cypher, parent_ids=parent_ids)
        return {row["parent_id"]: row["items"] for row in rows}

    def find_movies_by_title(self, title: str, limit: int = 2) -> List[Movie]:
        rows = self._run(
            f"MATCH (m:Movie {{title: $title}}) RETURN {MOVIE_PROJECTION} AS movie ORDER BY id(m) LIMIT $limit",
            title=title, limit=limit,
        )
        return [_movie(row["movie"]) for row in rows]

    def find_all_movies(self) -> List[Movie]:
        rows = self._run(f"MATCH (m:Movie) RETURN {MOVIE_PROJECTION} AS movie")
        return [_movie(row["movie"]) for row in rows]

    def find_movies_by_ids(self, movie_ids: List[int]) -> Dict[int, Movie]:
        rows = self._run(
            f"MATCH (m:Movie) WHERE id(m) IN $movie_ids RETURN {MOVIE_PROJECTION} AS movie",
            movie_ids=movie_ids,
        )
        return {row["movie"]["id"]: _movie(row["movie"]) for row in rows}

    def find_people_by_name(self, name: str, limit: int = 2) -> List[Person]:
        rows = self._run(
            "MATCH (p:Person {name: $name}) RETURN id(p) AS id, p.name AS name ORDER BY id(p) LIMIT $limit",
            name=name, limit=limit,
        )
        return [_person(row) for row in rows]

    def _find_people(self, relationship: RelationshipType, person_id: int) -> List[Person]:
        rows = self._run(
            f"MATCH {relationship.pattern('h', 'r', 't')} WHERE id(h) = $person_id RETURN id(t) AS id, t.name AS name ORDER BY id(t)",
            person_id=person_id,
        )
        return [_person(row) for row in rows]

    def find_follows(self, person_id: int) -> List[Person]:
        return self._find_people(PERSON_FOLLOWS, person_id)

    def find_followers(self, person_id: int) -> List[Person]:
        return self._find_people(PERSON_FOLLOWERS, person_id)

    def find_reviews_by_movie_ids(self, movie_ids: List[int]) -> Dict[int, List[Review]]:
        grouped = self._related(
            MOVIE_REVIEWS, movie_ids,
            item="{id: id(r), summary: r.summary, rating: r.rating, createdWhen: r.createdWhen, "
                 "reviewer_id: id(t), reviewer_name: t.name, movie_id: id(h)}",
            order_by="id(r)",
        )
        return {parent_id: [_review(item) for item in items] for parent_id, items in grouped.items()}

    def find_directors_by_movie_ids(self, movie_ids: List[int]) -> Dict[int, List[Person]]:
        grouped = self._related(MOVIE_DIRECTOR, movie_ids, item="{id: id(t), name: t.name}", order_by="id(t)")
        return {parent_id: [_person(item) for item in items] for parent_id, items in grouped.items()}

    def find_roles_by_movie_ids(self, movie_ids: List[int]) -> Dict[int, List[Roles]]:
        grouped = self._related(
            MOVIE_CAST, movie_ids,
            item="{id: id(r), roles: coalesce(r.roles, []), actor_id: id(t), actor_name: t.name, movie_id: id(h)}",
            order_by="id(r)",
        )
        return {
            parent_id: [
                Roles(id=item["id"], roles=item["roles"], actor=Person(id=item["actor_id"], name=item["actor_name"]), movie_id=item["movie_id"])
                for item in items
            ]
            for parent_id, items in grouped.items()
        }

    def find_reviews_by_reviewer_ids(self, person_ids: List[int]) -> Dict[int, List[Review]]:
        grouped = self._related(
            PERSON_REVIEWS, person_ids,
            item="{id: id(r), summary: r.summary, rating: r.rating, createdWhen: r.createdWhen, "
                 "reviewer_id: id(h), reviewer_name: h.name, movie_id: id(t)}",
            order_by="id(r)",
        )
        return {parent_id: [_review(item) for item in items] for parent_id, items in grouped.items()}

    @staticmethod
    def _add_review_tx(tx, movie_id: int, review: Review) -> Optional[int]:
        record = tx.run(
            """
            MATCH (m:Movie) WHERE id(m) = $movie_id
            MATCH (p:Person) WHERE id(p) = $reviewer_id
            CREATE (m)<-[r:REVIEWED {summary: $summary, rating: $rating, createdWhen: $created_when}]-(p)
            RETURN id(r) AS id
            """,
            movie_id=movie_id, reviewer_id=review.reviewer.id,
            summary=review.summary, rating=review.rating, created_when=review.created_when,
        ).single()
        return None if record is None else record["id"]

    def add_review(self, movie_id: int, review: Review) -> Review:
        with self._driver.session(database=self._database) as session:
            review_id = session.execute_write(self._add_review_tx, movie_id, review)
        if review_id is None:
            raise NotFound(f"Movie {movie_id} or reviewer {review.reviewer.id} no longer exists.")
        logger.info("Added review", extra={"movie_id": movie_id, "review_id": review_id})
        return review.model_copy(update={"id": review_id, "movie_id": movie_id})

    @staticmethod
    def _save_movie_tx(tx, movie: Movie) -> int:
        if movie.id is None:
            movie_id = tx.run(
                "CREATE (m:Movie) SET m = $props RETURN id(m) AS id",
                props=movie.properties(),
            ).single()["id"]
        else:
            record = tx.run(
                "MATCH (m:Movie) WHERE id(m) = $movie_id SET m += $props RETURN id(m) AS id",
                movie_id=movie.id, props=movie.properties(),
            ).single()
            if record is None:
                raise NotFound(f"Movie {movie.id} no longer exists.")
            movie_id = record["id"]

        keep = [review.id for review in movie.reviews if review.id is not None]
        tx.run(
            """
            MATCH (m:Movie)<-[r:REVIEWED]-(:Person)
            WHERE id(m) = $movie_id AND NOT id(r) IN $keep
            DELETE r
            """,
            movie_id=movie_id, keep=keep,
        )
        for review in movie.reviews:
            if review.id is None:
                tx.run(
                    """
                    MATCH (m:Movie) WHERE id(m) = $movie_id
                    MATCH (p:Person) WHERE id(p) = $reviewer_id
                    CREATE (m)<-[:REVIEWED {summary: $summary, rating: $rating, createdWhen: $created_when}]-(p)
                    """,
                    movie_id=movie_id, reviewer_id=review.reviewer.id,
                    summary=review.summary, rating=review.rating, created_when=review.created_when,
                )
            else:
                # createdWhen is set once, on creation
                tx.run(
                    "MATCH ()-[r:REVIEWED]->() WHERE id(r) = $review_id SET r.summary = $summary, r.rating = $rating",
                    review_id=review.id, summary=review.summary, rating=review.rating,
                )
        return movie_id

    def save_movie(self, movie: Movie) -> Movie:
        with self._driver.session(database=self._database) as session:
            movie_id = session.execute_write(self._save_movie_tx, movie)
        logger.info("Saved movie", extra={"movie_id": movie_id, "reviews": len(movie.reviews)})

        saved = self.find_movies_by_ids([movie_id]).get(movie_id)
        if saved is None:
            raise NotFound(f"Movie {movie_id} no longer exists.")
        reviews = self.find_reviews_by_movie_ids([movie_id]).get(movie_id, [])
        return saved.model_copy(update={"reviews": tuple(reviews)})

    def write_graph(self, graph: MovieGraph):
        """
        Writes a seed graph to the database, merging nodes on their natural key.
        """
        with self._driver.session(database=self._database) as session:
            for node in graph.nodes:
                if node.type not in NATURAL_KEYS:
                    raise InvalidArgument(f"Unknown node type '{node.type}'.")
                key = NATURAL_KEYS[node.type]
                cypher = f"""
                MERGE (n:`{node.type}` {{{key}: $key}})
                SET n += $props
                """
                session.run(cypher, key=node.key, props=node.properties)
            for edge in graph.edges:
                source_type, target_type = validate_edge_label(edge.label)
                cypher = f"""
                MATCH (a:`{source_type}` {{{NATURAL_KEYS[source_type]}: $source}})
                MATCH (b:`{target_type}` {{{NATURAL_KEYS[target_type]}: $target}})
                MERGE (a)-[r:`{edge.label}`]->(b)
                SET r += $props
                """
                session.run(cypher, source=edge.source, target=edge.target, props=edge.properties)
        logger.info("Seed graph written", extra={"nodes": len(graph.nodes), "edges": len(graph.edges)})

    def close(self):
        self._driver.close()


def create_store(backend: str = None) -> GraphStore:
    """Builds the store selected by GRAPH_BACKEND."""
    backend = backend or settings.GRAPH_BACKEND
    if backend == "memory":
        from moviegraph.memory_store import InMemoryGraphStore
        return InMemoryGraphStore()
    if backend == "neo4j":
        return Neo4jGraphStore()
    raise ValueError(f"Unsupported graph backend '{backend}'.")
