from typing import List, Optional

import strawberry
from fastapi.concurrency import run_in_threadpool
from strawberry.schema.config import StrawberryConfig
from strawberry.types import Info

from api.errors import ErrorClassifier
from api.scalars import SCALAR_MAP, Instant
from moviegraph import models


@strawberry.type
class Person:
    key: strawberry.Private[Optional[int]]
    name: str

    @classmethod
    def from_model(cls, person: models.Person) -> "Person":
        return cls(key=person.id, name=person.name)

    @strawberry.field
    def id(self) -> Optional[strawberry.ID]:
        return None if self.key is None else strawberry.ID(str(self.key))

    @strawberry.field
    async def follows(self, info: Info) -> List["Person"]:
        if self.key is None:
            return []
        people = await run_in_threadpool(info.context.service.follows, self.key)
        return [Person.from_model(p) for p in people]

    @strawberry.field
    async def followers(self, info: Info) -> List["Person"]:
        if self.key is None:
            return []
        people = await run_in_threadpool(info.context.service.followers, self.key)
        return [Person.from_model(p) for p in people]

    @strawberry.field
    async def wrote_reviews(self, info: Info) -> List["Review"]:
        if self.key is None:
            return []
        reviews = await info.context.loaders.reviews_by_person.load(self.key)
        return [Review.from_model(r) for r in reviews]


@strawberry.type
class Review:
    key: strawberry.Private[Optional[int]]
    movie_key: strawberry.Private[Optional[int]]
    summary: str
    rating: int
    reviewer: Person
    created_when: Optional[Instant]

    @classmethod
    def from_model(cls, review: models.Review) -> "Review":
        return cls(
            key=review.id,
            movie_key=review.movie_id,
            summary=review.summary,
            rating=review.rating,
            reviewer=Person.from_model(review.reviewer),
            created_when=review.created_when,
        )

    @strawberry.field
    def id(self) -> Optional[strawberry.ID]:
        return None if self.key is None else strawberry.ID(str(self.key))

    @strawberry.field
    async def movie(self, info: Info) -> Optional["Movie"]:
        if self.movie_key is None:
            return None
        movie = await info.context.loaders.movie_by_id.load(self.movie_key)
        return None if movie is None else Movie.from_model(movie)


@strawberry.type
class Roles:
    key: strawberry.Private[Optional[int]]
    roles: List[str]
    actor: Person

    @classmethod
    def from_model(cls, roles: models.Roles) -> "Roles":
        return cls(key=roles.id, roles=list(roles.roles), actor=Person.from_model(roles.actor))

    @strawberry.field
    def id(self) -> Optional[strawberry.ID]:
        return None if self.key is None else strawberry.ID(str(self.key))


@strawberry.type
class Actor:
    name: str
    roles: List[str]


@strawberry.type
class Movie:
    key: strawberry.Private[Optional[int]]
    title: str
    tagline: Optional[str]
    released: int

    @classmethod
    def from_model(cls, movie: models.Movie) -> "Movie":
        return cls(key=movie.id, title=movie.title, tagline=movie.tagline, released=movie.released)

    @strawberry.field
    def id(self) -> Optional[strawberry.ID]:
        return None if self.key is None else strawberry.ID(str(self.key))

    @strawberry.field
    async def director(self, info: Info) -> List[Person]:
        if self.key is None:
            return []
        people = await info.context.loaders.directors_by_movie.load(self.key)
        return [Person.from_model(p) for p in people]

    @strawberry.field
    async def actors_and_roles(self, info: Info) -> List[Roles]:
        if self.key is None:
            return []
        cast = await info.context.loaders.cast_by_movie.load(self.key)
        return [Roles.from_model(r) for r in cast]

    @strawberry.field
    async def actors(self, info: Info) -> List[Actor]:
        if self.key is None:
            return []
        cast = await info.context.loaders.cast_by_movie.load(self.key)
        return [Actor(name=r.actor.name, roles=list(r.roles)) for r in cast]

    @strawberry.field(description="Reviews of this movie, optionally only those created at or after `since`.")
    async def reviews(self, info: Info, since: Optional[Instant] = None) -> List[Review]:
        if self.key is None:
            return []
        reviews = await info.context.loaders.reviews_by_movie.load(self.key)
        if since is not None:
            reviews = [r for r in reviews if r.created_when is not None and r.created_when >= since]
        return [Review.from_model(r) for r in reviews]


@strawberry.input
class AddMovieReviewInput:
    movie: str
    reviewer: str
    summary: str
    rating: int


@strawberry.type
class Query:
    @strawberry.field(description="Looks up a movie by its exact title.")
    async def movie(self, info: Info, name: str) -> Optional[Movie]:
        return Movie.from_model(await run_in_threadpool(info.context.service.movie, name))

    @strawberry.field
    async def movies(self, info: Info) -> List[Movie]:
        movies = await run_in_threadpool(info.context.service.movies)
        return [Movie.from_model(m) for m in movies]


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def add_movie_review(self, info: Info, input: AddMovieReviewInput) -> Optional[Review]:
        review = await run_in_threadpool(
            info.context.service.add_movie_review,
            movie=input.movie,
            reviewer=input.reviewer,
            summary=input.summary,
            rating=input.rating,
        )
        return Review.from_model(review)

    @strawberry.mutation(description="Removes every review of the movie. Succeeds when there were none.")
    async def delete_movie_reviews(self, info: Info, movie_name: str) -> Optional[bool]:
        return await run_in_threadpool(info.context.service.delete_movie_reviews, movie_name)


schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
    extensions=[ErrorClassifier],
    config=StrawberryConfig(scalar_map=SCALAR_MAP),
)
