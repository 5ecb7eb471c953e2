"""Configuration management using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Neo4j Configuration
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "neo4j"
    neo4j_database: str | None = Field(
        default=None,
        description="Database name; None uses the server default database"
    )

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    api_debug: bool = False
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Browser origins allowed to call the API"
    )
    log_level: str = "INFO"

    # Pagination defaults
    graph_default_limit: int = 200
    poem_default_limit: int = 50
    raw_default_limit: int = 20
    raw_max_limit: int = 200

    # Graph traversal
    max_depth: int = Field(
        default=5,
        description="Upper bound for node-centered hop depth"
    )
    anchor_label: str = Field(
        default="Poet",
        description="Node label sampled when no search term is given"
    )

    # Fallback data
    fallback_dir: str = Field(
        default="output_poems",
        description="Directory of JSON poem snapshots used when Neo4j is unavailable"
    )


# Global settings instance
settings = Settings()
