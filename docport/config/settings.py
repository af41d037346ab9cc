# Configuration management

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from pydantic import ValidationError
from pydantic_settings import BaseSettings  # type: ignore


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


class Settings(BaseSettings):
    # Document store
    mongodb_url: str
    db_name: str
    server_selection_timeout_ms: int = 5000

    # Artifacts
    output_dir: str = "./exports"

    # Schema inference
    sample_size: int = 1000

    # Import
    batch_size: int = 1000

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False


@dataclass(frozen=True)
class ImportOptions:
    """Options for a single import run, built once at the entry point."""
    recreate_database: bool = True
    recreate_indexes: bool = True
    validate: bool = True
    clear_collections: bool = True
    skip_invalid: bool = False
    collections: Optional[Tuple[str, ...]] = None
    batch_size: int = 1000

    def wants(self, collection_name: str) -> bool:
        """Check whether a collection is part of this run."""
        return self.collections is None or collection_name in self.collections


@lru_cache()
def get_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConfigurationError(
            f"Invalid or missing configuration: {', '.join(missing)}"
        ) from e
