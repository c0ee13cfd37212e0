"""
DDL Generation from Pydantic Models

Generates CREATE SEQUENCE, CREATE TABLE and CREATE INDEX statements from the
row models so the database schema cannot drift from the model definitions.
"""

import inspect
from datetime import datetime
from enum import Enum
from typing import Any, get_args, get_origin

from pydantic import BaseModel

# ============================================================================
# Type Mapping
# ============================================================================

PYTHON_TO_SQL_TYPE_MAP = {
    str: "VARCHAR",
    int: "BIGINT",
    float: "DOUBLE",
    bool: "BOOLEAN",
    datetime: "TIMESTAMP",
}


def python_type_to_sql_type(py_type: Any) -> str:
    """Convert a Python type annotation to a DuckDB column type.

    Examples:
        >>> python_type_to_sql_type(float)
        'DOUBLE'
        >>> python_type_to_sql_type(int | None)
        'BIGINT'
    """
    if get_origin(py_type) is not None:
        for arg in get_args(py_type):
            if arg is not type(None):
                py_type = arg
                break

    if inspect.isclass(py_type) and issubclass(py_type, Enum):
        return "VARCHAR"

    return PYTHON_TO_SQL_TYPE_MAP.get(py_type, "VARCHAR")


def table_name_for(model: type[BaseModel]) -> str:
    """Return the table name declared in a model's config.

    Raises:
        ValueError: If the model does not declare ``table_name``
    """
    config = model.model_config
    if "table_name" not in config:
        raise ValueError(f"Model {model.__name__} missing model_config['table_name']")
    return config["table_name"]  # type: ignore[typeddict-item]


# ============================================================================
# DDL Generation
# ============================================================================


def generate_create_table_ddl(model: type[BaseModel]) -> str:
    """Generate CREATE TABLE DDL from a row model.

    A model that declares ``sequence`` gets its ``id`` column defaulted
    from that sequence.

    Examples:
        >>> from worldsim.persistence.models import YearEventRecord
        >>> "CREATE TABLE IF NOT EXISTS year_events" in generate_create_table_ddl(YearEventRecord)
        True
    """
    table_name = table_name_for(model)
    config = model.model_config
    primary_key: list[str] = config.get("primary_key", [])  # type: ignore[assignment]
    sequence: str | None = config.get("sequence")  # type: ignore[assignment]

    columns = []
    for field_name, field_info in model.model_fields.items():
        py_type = field_info.annotation
        sql_type = python_type_to_sql_type(py_type)

        if field_name == "id" and sequence:
            columns.append(f"    id BIGINT DEFAULT nextval('{sequence}')")
            continue

        nullable = _is_field_optional(py_type, field_info) and field_name not in primary_key
        null_constraint = "" if nullable else " NOT NULL"
        columns.append(f"    {field_name} {sql_type}{null_constraint}")

    if primary_key:
        columns.append(f"    PRIMARY KEY ({', '.join(primary_key)})")

    ddl = f"CREATE TABLE IF NOT EXISTS {table_name} (\n"
    ddl += ",\n".join(columns)
    ddl += "\n);"
    return ddl


def generate_create_indexes_ddl(model: type[BaseModel]) -> list[str]:
    """Generate CREATE INDEX statements declared in ``model_config['indexes']``."""
    indexes = model.model_config.get("indexes") or []
    if not indexes:
        return []

    table_name = table_name_for(model)
    return [
        f"CREATE INDEX IF NOT EXISTS {index_name} ON {table_name} ({', '.join(columns)});"
        for index_name, columns in indexes  # type: ignore[misc]
    ]


def generate_full_schema_ddl() -> list[str]:
    """Generate every statement needed to create the schema, in order.

    Examples:
        >>> statements = generate_full_schema_ddl()
        >>> statements[0]
        'CREATE SEQUENCE IF NOT EXISTS world_ticks_id_seq START 1;'
    """
    from .models import ALL_MODELS

    statements: list[str] = []
    for model in ALL_MODELS:
        sequence = model.model_config.get("sequence")
        if sequence:
            statements.append(f"CREATE SEQUENCE IF NOT EXISTS {sequence} START 1;")

    for model in ALL_MODELS:
        statements.append(generate_create_table_ddl(model))
        statements.extend(generate_create_indexes_ddl(model))

    return statements


# ============================================================================
# Helper Functions
# ============================================================================


def _is_field_optional(py_type: Any, field_info: Any) -> bool:
    """Check whether a field can hold NULL."""
    if get_origin(py_type) is not None and type(None) in get_args(py_type):
        return True
    return field_info.default is None and not field_info.is_required()


# ============================================================================
# Schema Validation
# ============================================================================


def validate_table_schema(conn: Any, model: type[BaseModel]) -> tuple[bool, list[str]]:
    """Validate that a live table's columns match a row model.

    Args:
        conn: DuckDB connection
        model: Row model to validate against

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    table_name = table_name_for(model)

    try:
        result = conn.execute(f"DESCRIBE {table_name}").fetchall()
    except Exception as e:
        return False, [f"Table {table_name} does not exist: {e}"]

    db_fields = {row[0] for row in result}
    model_fields = set(model.model_fields.keys())

    errors = [
        f"Column '{col}' missing from table {table_name}"
        for col in sorted(model_fields - db_fields)
    ]
    extra_columns = db_fields - model_fields
    if extra_columns:
        errors.append(f"Unexpected columns in {table_name}: {sorted(extra_columns)}")

    return not errors, errors
