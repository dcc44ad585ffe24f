# /moviegraph/service.py

from datetime import datetime
from typing import Callable, List, Optional

from moviegraph.batching import resolve_batch, resolve_related
from moviegraph.database import GraphStore
from moviegraph.errors import AmbiguousMatch, InvalidArgument, NotFound
from moviegraph.logger import get_logger
from moviegraph.models import Movie, Person, Review, Roles
from moviegraph.timestamps import utc_now

logger = get_logger(__name__)


class MovieService:
    """
    The query and mutation operations of the movie graph API.

    Lookups by title or name are exact matches. When more than one node carries
    the same title (or name) the lookup raises AmbiguousMatch instead of picking one.
    """
    def __init__(self, store: GraphStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def _find_movie(self, title: str) -> Optional[Movie]:
        matches = self.store.find_movies_by_title(title, limit=2)
        if len(matches) > 1:
            raise AmbiguousMatch(f"More than one movie is titled '{title}'")
        return matches[0] if matches else None

    def _find_person(self, name: str) -> Optional[Person]:
        matches = self.store.find_people_by_name(name, limit=2)
        if len(matches) > 1:
            raise AmbiguousMatch(f"More than one person is named '{name}'")
        return matches[0] if matches else None

    # --- Queries ---

    def movie(self, name: str) -> Movie:
        movie = self._find_movie(name)
        if movie is None:
            raise NotFound(f"No movie titled '{name}'")
        return movie

    def movies(self) -> List[Movie]:
        return self.store.find_all_movies()

    def follows(self, person_id: int) -> List[Person]:
        return self.store.find_follows(person_id)

    def followers(self, person_id: int) -> List[Person]:
        return self.store.find_followers(person_id)

    # --- Batched lookups: one store round trip per call ---

    def reviews_of_movies(self, movie_ids: List[int]) -> List[List[Review]]:
        return resolve_related(movie_ids, self.store.find_reviews_by_movie_ids)

    def directors_of_movies(self, movie_ids: List[int]) -> List[List[Person]]:
        return resolve_related(movie_ids, self.store.find_directors_by_movie_ids)

    def cast_of_movies(self, movie_ids: List[int]) -> List[List[Roles]]:
        return resolve_related(movie_ids, self.store.find_roles_by_movie_ids)

    def reviews_by_people(self, person_ids: List[int]) -> List[List[Review]]:
        return resolve_related(person_ids, self.store.find_reviews_by_reviewer_ids)

    def movies_by_ids(self, movie_ids: List[int]) -> List[Optional[Movie]]:
        return resolve_batch(movie_ids, self.store.find_movies_by_ids, lambda: None)

    # --- Mutations ---

    def add_movie_review(self, movie: str, reviewer: str, summary: str, rating: int) -> Review:
        created_when = self.clock()
        target = self._find_movie(movie)
        if target is None:
            raise InvalidArgument("No such movie")
        author = self._find_person(reviewer)
        if author is None:
            raise InvalidArgument("No such reviewer")

        # append only; reviews written concurrently by other callers are never touched
        review = Review(summary=summary, rating=rating, reviewer=author, movie_id=target.id, created_when=created_when)
        created = self.store.add_review(target.id, review)
        logger.info("Review added", extra={"movie": movie, "reviewer": reviewer, "review_id": created.id})
        return created

    def delete_movie_reviews(self, movie_name: str) -> bool:
        target = self._find_movie(movie_name)
        if target is None:
            raise InvalidArgument("No such movie")
        self.store.save_movie(target.without_reviews())
        logger.info("Reviews deleted", extra={"movie": movie_name})
        return True
