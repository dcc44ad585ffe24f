import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

import sys
import os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from moviegraph.errors import AmbiguousMatch, InvalidArgument, NotFound
from moviegraph.service import MovieService
from graph_fixtures import build_store

class TestMovieService(unittest.TestCase):

    def setUp(self):
        """Wrap a seeded in-memory store so round trips can be counted."""
        self.backing_store = build_store()
        self.store = MagicMock(wraps=self.backing_store)
        self.service = MovieService(self.store)

    def _reviews_of(self, title):
        movie = self.service.movie(title)
        return self.service.reviews_of_movies([movie.id])[0]

    # --- Queries ---

    def test_movie_by_title(self):
        movie = self.service.movie("Cloud Atlas")
        self.assertEqual(movie.title, "Cloud Atlas")
        self.assertEqual(movie.released, 2012)

    def test_missing_movie_is_not_found(self):
        with self.assertRaises(NotFound):
            self.service.movie("Nonexistent Title")

    def test_duplicate_titles_are_ambiguous(self):
        # write_graph merges on title, so a second "Top Gun" has to come from save_movie
        top_gun = self.service.movie("Top Gun")
        self.backing_store.save_movie(top_gun.model_copy(update={"id": None, "released": 2022}))

        with self.assertRaises(AmbiguousMatch) as ctx:
            self.service.movie("Top Gun")
        self.assertIsInstance(ctx.exception, InvalidArgument)

    def test_movies_returns_every_movie(self):
        titles = {movie.title for movie in self.service.movies()}
        self.assertEqual(titles, {"The Matrix", "Cloud Atlas", "Top Gun"})

    def test_follows_direction(self):
        james = self.backing_store.find_people_by_name("James Thompson")[0]
        jessica = self.backing_store.find_people_by_name("Jessica Thompson")[0]

        self.assertIn(jessica, self.service.follows(james.id))
        self.assertIn(james, self.service.followers(jessica.id))
        self.assertNotIn(jessica, self.service.followers(james.id))
        self.assertNotIn(james, self.service.follows(jessica.id))

    # --- Batched lookups ---

    def test_batched_reviews_issue_one_fetch(self):
        movies = self.service.movies()
        ids = [movie.id for movie in movies]

        result = self.service.reviews_of_movies(ids)

        self.store.find_reviews_by_movie_ids.assert_called_once_with(ids)
        self.assertEqual(len(result), len(movies))
        by_title = {movie.title: reviews for movie, reviews in zip(movies, result)}
        self.assertEqual(by_title["Top Gun"], [])
        self.assertEqual([r.summary for r in by_title["The Matrix"]], ["Mind-bending"])

    def test_batched_reviews_with_no_parents_skip_the_store(self):
        self.assertEqual(self.service.reviews_of_movies([]), [])
        self.store.find_reviews_by_movie_ids.assert_not_called()

    def test_other_batched_fields(self):
        ids = [movie.id for movie in self.service.movies()]

        directors = self.service.directors_of_movies(ids)
        cast = self.service.cast_of_movies(ids)
        movies = self.service.movies_by_ids(ids + [12345])

        self.store.find_directors_by_movie_ids.assert_called_once()
        self.store.find_roles_by_movie_ids.assert_called_once()
        self.store.find_movies_by_ids.assert_called_once()
        self.assertEqual([[p.name for p in people] for people in directors], [["Lana Wachowski"], ["Lana Wachowski"], []])
        self.assertEqual([len(roles) for roles in cast], [1, 0, 0])
        self.assertEqual([m.title if m else None for m in movies], ["The Matrix", "Cloud Atlas", "Top Gun", None])

    # --- Mutations ---

    def test_add_movie_review(self):
        before = self._reviews_of("Top Gun")
        started = datetime.now(timezone.utc)

        review = self.service.add_movie_review(movie="Top Gun", reviewer="Angela Scope", summary="Fast", rating=7)

        after = self._reviews_of("Top Gun")
        self.assertEqual(len(after), len(before) + 1)
        self.assertIn(review, after)
        self.assertIsNotNone(review.id)
        self.assertEqual(review.reviewer.name, "Angela Scope")
        self.assertEqual((review.summary, review.rating), ("Fast", 7))
        self.assertGreaterEqual(review.created_when, started)

    def test_add_review_keeps_existing_reviews(self):
        review = self.service.add_movie_review(movie="The Matrix", reviewer="James Thompson", summary="Even better twice", rating=85)

        after = self._reviews_of("The Matrix")
        self.assertEqual([r.summary for r in after], ["Mind-bending", "Even better twice"])
        # same reviewer, but the returned review is the new one
        self.assertEqual(review.summary, "Even better twice")

    def test_add_review_only_appends(self):
        self.service.add_movie_review(movie="The Matrix", reviewer="Angela Scope", summary="Still great", rating=90)

        self.store.add_review.assert_called_once()
        self.store.save_movie.assert_not_called()

    def test_review_written_during_another_add_is_kept(self):
        # --- Arrange ---
        # a second caller adds a review while the first is between its lookups and its write
        find_people = self.backing_store.find_people_by_name
        state = {"interleaved": False}

        def find_people_with_concurrent_add(name, limit=2):
            if not state["interleaved"]:
                state["interleaved"] = True
                self.service.add_movie_review(movie="Top Gun", reviewer="Angela Scope", summary="theirs", rating=70)
            return find_people(name, limit=limit)

        self.store.find_people_by_name.side_effect = find_people_with_concurrent_add

        # --- Act ---
        self.service.add_movie_review(movie="Top Gun", reviewer="Jessica Thompson", summary="mine", rating=80)

        # --- Assert ---
        reviews = [(r.reviewer.name, r.summary) for r in self._reviews_of("Top Gun")]
        self.assertEqual(reviews, [("Angela Scope", "theirs"), ("Jessica Thompson", "mine")])

    def test_add_review_uses_the_service_clock(self):
        fixed = datetime(2030, 1, 1, tzinfo=timezone.utc)
        service = MovieService(self.store, clock=lambda: fixed)

        review = service.add_movie_review(movie="Top Gun", reviewer="Jessica Thompson", summary="Loud", rating=60)

        self.assertEqual(review.created_when, fixed)

    def test_add_review_for_unknown_movie(self):
        with self.assertRaises(InvalidArgument) as ctx:
            self.service.add_movie_review(movie="Nope", reviewer="Angela Scope", summary="x", rating=1)
        self.assertEqual(str(ctx.exception), "No such movie")
        self.store.add_review.assert_not_called()

    def test_add_review_for_unknown_reviewer(self):
        with self.assertRaises(InvalidArgument) as ctx:
            self.service.add_movie_review(movie="Top Gun", reviewer="Nobody", summary="x", rating=1)
        self.assertEqual(str(ctx.exception), "No such reviewer")
        self.store.add_review.assert_not_called()

    def test_delete_movie_reviews_is_idempotent(self):
        self.assertTrue(self.service.delete_movie_reviews("The Matrix"))
        self.assertEqual(self._reviews_of("The Matrix"), [])

        self.assertTrue(self.service.delete_movie_reviews("The Matrix"))
        self.assertEqual(self._reviews_of("The Matrix"), [])

    def test_delete_reviews_leaves_other_movies_alone(self):
        self.service.delete_movie_reviews("The Matrix")
        self.assertEqual(len(self._reviews_of("Cloud Atlas")), 1)

    def test_delete_reviews_for_unknown_movie(self):
        with self.assertRaises(InvalidArgument) as ctx:
            self.service.delete_movie_reviews("Nope")
        self.assertEqual(str(ctx.exception), "No such movie")


if __name__ == '__main__':
    unittest.main()
