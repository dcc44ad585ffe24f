from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from strawberry.fastapi import GraphQLRouter

from api.context import MovieGraphContext
from api.schema import schema
from moviegraph.config import settings
from moviegraph.database import GraphStore, create_store
from moviegraph.logger import get_logger
from moviegraph.seed import load_seed
from moviegraph.service import MovieService

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_graph_store() -> GraphStore:
    """One store (and driver connection pool) per process."""
    store = create_store()
    if settings.SEED_ON_STARTUP:
        store.write_graph(load_seed(settings.SEED_FILE))
    logger.info("Graph store ready", extra={"backend": settings.GRAPH_BACKEND})
    return store


def get_movie_service(store: GraphStore = Depends(get_graph_store)) -> MovieService:
    return MovieService(store)


async def get_context(service: MovieService = Depends(get_movie_service)) -> MovieGraphContext:
    return MovieGraphContext(service)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if get_graph_store.cache_info().currsize:
        get_graph_store().close()
        get_graph_store.cache_clear()
        logger.info("Graph store closed")


app = FastAPI(
    title="Movie Graph API",
    description="GraphQL API over a graph of movies, the people who make and review them, and who follows whom.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

graphql_router = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql" if settings.GRAPHIQL_ENABLED else None,
)
app.include_router(graphql_router, prefix="/graphql")

@app.get("/")
def read_root():
    return {"message": "Movie Graph API is running. Send GraphQL requests to /graphql."}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000)
