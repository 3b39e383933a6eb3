from __future__ import annotations

from databricks.sdk import WorkspaceClient

from dbextract.core.models import Column, Table, View


def _enum_value(value: object) -> str | None:
    if value is None:
        return None
    return str(getattr(value, "value", value))


def _to_columns(column_infos) -> list[Column]:
    columns: list[Column] = []
    for c in column_infos or []:
        name = getattr(c, "name", None)
        if not name:
            continue
        position = getattr(c, "position", None)
        type_name = getattr(c, "type_text", None) or _enum_value(
            getattr(c, "type_name", None)
        )
        columns.append(
            Column(
                name=name,
                type_name=type_name,
                nullable=getattr(c, "nullable", None) is not False,
                # Unity Catalog positions start at 0
                ordinal_position=position + 1
                if position is not None
                else len(columns) + 1,
            )
        )
    return sorted(columns, key=lambda col: col.ordinal_position)


class UnityCatalogAdapter:
    """Adapter around Databricks SDK Unity Catalog APIs (schemas/tables)."""

    def __init__(self, client: WorkspaceClient) -> None:
        self.client = client

    def get_schema(self, catalog: str, schema: str) -> str:
        """Return the schema full name; raises NotFound if it does not exist."""
        info = self.client.schemas.get(full_name=f"{catalog}.{schema}")
        return getattr(info, "full_name", None) or f"{catalog}.{schema}"

    def list_tables(self, catalog: str, schema: str) -> list[Table | View]:
        """List tables and views in catalog.schema with their columns."""
        out: list[Table | View] = []
        for t in self.client.tables.list(catalog_name=catalog, schema_name=schema):
            name = getattr(t, "name", None)
            if not name:
                full_name = getattr(t, "full_name", None)
                name = full_name.split(".")[-1] if full_name else None
            if not name:
                continue

            table_type = _enum_value(getattr(t, "table_type", None)) or "TABLE"
            columns = _to_columns(getattr(t, "columns", None))
            if table_type.upper() in {"VIEW", "MATERIALIZED_VIEW"}:
                out.append(
                    View(
                        name=name,
                        schema=schema,
                        type=table_type,
                        code=getattr(t, "view_definition", None),
                        columns=columns,
                    )
                )
            else:
                out.append(Table(name=name, schema=schema, type=table_type, columns=columns))
        return out
