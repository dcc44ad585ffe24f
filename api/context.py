from typing import Callable, List

from fastapi.concurrency import run_in_threadpool
from strawberry.dataloader import DataLoader
from strawberry.fastapi import BaseContext

from moviegraph.service import MovieService


def batch_load(fetch: Callable[[List], List]):
    """
    Adapts a synchronous batched service method to a DataLoader load function.
    The store call runs in the threadpool, off the event loop.
    """
    async def load(keys):
        return await run_in_threadpool(fetch, list(keys))
    return load


class Loaders:
    """
    Per-request DataLoaders. Each one collects the keys requested by sibling
    fields during one event loop tick and resolves them with a single store call.
    Results are not cached between loads.
    """
    def __init__(self, service: MovieService):
        self.reviews_by_movie = DataLoader(load_fn=batch_load(service.reviews_of_movies), cache=False)
        self.directors_by_movie = DataLoader(load_fn=batch_load(service.directors_of_movies), cache=False)
        self.cast_by_movie = DataLoader(load_fn=batch_load(service.cast_of_movies), cache=False)
        self.reviews_by_person = DataLoader(load_fn=batch_load(service.reviews_by_people), cache=False)
        self.movie_by_id = DataLoader(load_fn=batch_load(service.movies_by_ids), cache=False)


class MovieGraphContext(BaseContext):
    def __init__(self, service: MovieService):
        super().__init__()
        self.service = service
        self.loaders = Loaders(service)
