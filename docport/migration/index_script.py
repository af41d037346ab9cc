"""Index recreation script for the mongo shell."""

from docport.common.serialization import dumps
from docport.schema.models import DatabaseSchema

INDEX_SCRIPT_NAME = "recreate_indexes.js"


def generate_index_script(database_schema: DatabaseSchema) -> str:
    """
    Generate a mongosh script recreating every persisted index.

    Args:
        database_schema: Schema manifest of an export run

    Returns:
        Script text, one createIndex call per index
    """
    lines = [
        f"// Index recreation for database {database_schema.database_name}",
        f"// Exported at {database_schema.exported_at.isoformat()}",
        f"db = db.getSiblingDB({dumps(database_schema.database_name)});",
        "",
    ]

    for name, collection in database_schema.collections.items():
        if not collection.indexes:
            continue
        lines.append(f"// {name}")
        for index in collection.indexes:
            lines.append(
                f"db.getCollection({dumps(name)}).createIndex("
                f"{dumps(index.key)}, {dumps(index.creation_options())});"
            )
        lines.append("")

    return "\n".join(lines)
