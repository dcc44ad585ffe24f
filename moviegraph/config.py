from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    """
    Centralized application settings. Pydantic's BaseSettings will automatically
    load these from environment variables or a .env file.
    """
    # --- Graph Store ---
    GRAPH_BACKEND: Literal["neo4j", "memory"] = Field("neo4j", description="Which graph store implementation serves requests.")

    # --- Neo4j Database Credentials ---
    NEO4J_URI: str = Field("bolt://localhost:7687", description="Bolt URI of the Neo4j server.")
    NEO4J_USERNAME: str = Field("neo4j", description="Username for Neo4j.")
    NEO4J_PASSWORD: str = Field("", description="Password for Neo4j.")
    NEO4J_DATABASE: Optional[str] = Field(None, description="Database name; the server default when unset.")

    # --- Seeding ---
    SEED_FILE: str = Field("data/movie_graph.json", description="Path to the sample movie graph.")
    SEED_ON_STARTUP: bool = Field(False, description="Load SEED_FILE into the store when the API starts.")

    # --- System Parameters ---
    LOG_LEVEL: str = Field("INFO", description="Level for the application's JSON loggers.")
    GRAPHIQL_ENABLED: bool = Field(True, description="Serve the GraphiQL IDE on GET /graphql.")

    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

settings = Settings()
