"""Layout of the artifact directory shared by export and import."""

DATA_DIR = "data"
SCHEMA_DIR = "schema"
MIGRATION_DIR = "migration"

DATABASE_SCHEMA_PATH = f"{SCHEMA_DIR}/database_schema.json"
COMPLETE_MIGRATION_PATH = f"{MIGRATION_DIR}/complete_migration.sql"


def data_path(collection: str) -> str:
    return f"{DATA_DIR}/{collection}.json"


def collection_schema_path(collection: str) -> str:
    return f"{SCHEMA_DIR}/{collection}_schema.json"


def migration_path(collection: str) -> str:
    return f"{MIGRATION_DIR}/{collection}.sql"
