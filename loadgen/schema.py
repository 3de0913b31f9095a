from datetime import datetime
from enum import Enum


class ColumnType(Enum):
    STRING = "STRING"
    INT32 = "INT32"
    TIMESTAMP_MILLISECOND = "TIMESTAMP_MILLISECOND"


# GreptimeDB SQL type for each column type
SQL_TYPES = {
    ColumnType.STRING: "STRING",
    ColumnType.INT32: "INT",
    ColumnType.TIMESTAMP_MILLISECOND: "TIMESTAMP(3)",
}

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


class SchemaError(ValueError):
    pass


class Table:
    """A named batch of rows under an ordered column schema."""

    def __init__(self, name):
        if not name:
            raise SchemaError("table name must not be empty")
        self.name = name
        self.columns = []  # list of (name, ColumnType)
        self.timestamp_column = None
        self.rows = []

    def add_field_column(self, name, column_type):
        self._add_column(name, column_type)

    def add_timestamp_column(self, name, column_type=ColumnType.TIMESTAMP_MILLISECOND):
        if column_type is not ColumnType.TIMESTAMP_MILLISECOND:
            raise SchemaError(f"{name}: timestamp column must be {ColumnType.TIMESTAMP_MILLISECOND.value}")
        if self.timestamp_column is not None:
            raise SchemaError(f"{self.name} already has timestamp column {self.timestamp_column}")
        self._add_column(name, column_type)
        self.timestamp_column = name

    def _add_column(self, name, column_type):
        if any(existing == name for existing, _ in self.columns):
            raise SchemaError(f"duplicate column {name} in {self.name}")
        self.columns.append((name, ColumnType(column_type)))

    def add_row(self, *values):
        if len(values) != len(self.columns):
            raise SchemaError(
                f"{self.name}: expected {len(self.columns)} values, got {len(values)}"
            )
        for (name, column_type), value in zip(self.columns, values):
            _check_value(name, column_type, value)
        self.rows.append(tuple(values))

    @property
    def column_names(self):
        return [name for name, _ in self.columns]

    def __len__(self):
        return len(self.rows)

    def create_sql(self):
        defs = []
        for name, column_type in self.columns:
            col = f"`{name}` {SQL_TYPES[column_type]}"
            if name == self.timestamp_column:
                col += " TIME INDEX"
            defs.append(col)
        return f"CREATE TABLE IF NOT EXISTS `{self.name}` (\n    " + ",\n    ".join(defs) + "\n)"

    def insert_sql(self):
        columns = ", ".join(f"`{name}`" for name in self.column_names)
        placeholders = "(" + ", ".join(["%s"] * len(self.columns)) + ")"
        return f"""
            INSERT INTO `{self.name}` ({columns})
            VALUES {', '.join([placeholders] * len(self.rows))}
        """

    def flat_values(self):
        values = []
        for row in self.rows:
            values.extend(row)
        return values


def _check_value(name, column_type, value):
    if value is None:
        raise SchemaError(f"column {name} does not accept null")
    if column_type is ColumnType.STRING:
        if not isinstance(value, str):
            raise SchemaError(f"column {name} expects a string, got {type(value).__name__}")
    elif column_type is ColumnType.INT32:
        if isinstance(value, bool) or not isinstance(value, int):
            raise SchemaError(f"column {name} expects an int, got {type(value).__name__}")
        if not INT32_MIN <= value <= INT32_MAX:
            raise SchemaError(f"column {name} value {value} overflows INT32")
    elif column_type is ColumnType.TIMESTAMP_MILLISECOND:
        if not isinstance(value, datetime):
            raise SchemaError(f"column {name} expects a datetime, got {type(value).__name__}")


def access_log_table(name):
    """Fixed nginx access-log schema shared by every generated table."""
    tbl = Table(name)
    tbl.add_field_column("ip", ColumnType.STRING)
    tbl.add_field_column("http_method", ColumnType.STRING)
    tbl.add_field_column("path", ColumnType.STRING)
    tbl.add_field_column("http_version", ColumnType.STRING)
    tbl.add_field_column("status_code", ColumnType.INT32)
    tbl.add_field_column("body_bytes_sent", ColumnType.INT32)
    tbl.add_field_column("referrer", ColumnType.STRING)
    tbl.add_field_column("user_agent", ColumnType.STRING)
    tbl.add_timestamp_column("time_local", ColumnType.TIMESTAMP_MILLISECOND)
    return tbl
