"""
Single-row persistence over any table of the index.

The mapper reflects the table once per application, seeds an all-null row from
its columns and then loads, merges and saves that row with Core statements.
Only equality filters are supported and every value is a bound parameter.
"""
import re
import threading
from typing import Any, Dict, Optional

from flask import current_app
from sqlalchemy import MetaData, Table, and_, insert, select, update
from sqlalchemy.orm import Session

from common.db import db

_IDENTIFIER_STRIP = re.compile(r'[^a-z_]')
_SCHEMA_EXTENSION = 'row_mapper_schemas'
_schema_lock = threading.Lock()


def sanitize_identifier(name: str) -> str:
    """Restrict a table or field name to [a-z_]."""
    return _IDENTIFIER_STRIP.sub('', name or '')


def table_schema(table_name: str) -> Table:
    """Reflected table for the current app, cached after the first lookup."""
    schemas = current_app.extensions.setdefault(_SCHEMA_EXTENSION, {})
    table = schemas.get(table_name)
    if table is None:
        with _schema_lock:
            table = schemas.get(table_name)
            if table is None:
                table = Table(table_name, MetaData(), autoload_with=db.engine)
                schemas[table_name] = table
    return table


class Mapper:
    def __init__(self, table: str, session: Optional[Session] = None):
        self.table_name = sanitize_identifier(table)
        if not self.table_name:
            raise ValueError(f'Invalid table name: {table!r}')
        self.session = session or db.session
        self.table = table_schema(self.table_name)
        self.row: Dict[str, Any] = self.empty_row()

    @property
    def fields(self):
        return [column.name for column in self.table.columns]

    @property
    def id(self):
        return self.row.get('id')

    @property
    def found(self) -> bool:
        return self.row.get('id') is not None

    @property
    def not_found(self) -> bool:
        return not self.found

    def empty_row(self) -> Dict[str, Any]:
        return {field: None for field in self.fields}

    def _columns(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Sanitise the keys of params, rejecting names the table does not have."""
        cleaned = {}
        for key, value in params.items():
            field = sanitize_identifier(key)
            if field not in self.table.c:
                raise ValueError(f'Unknown field {key!r} for table {self.table_name}')
            cleaned[field] = value
        return cleaned

    def load(self, **filters) -> Dict[str, Any]:
        """Load the first row matching every filter, or reset to the empty row."""
        conditions = self._columns(filters)
        if not conditions:
            raise ValueError('At least one filter is required')
        stmt = (
            select(self.table)
            .where(and_(*[self.table.c[field] == value for field, value in conditions.items()]))
            .limit(1)
        )
        row = self.session.execute(stmt).mappings().first()
        self.row = dict(row) if row is not None else self.empty_row()
        return self.row

    def set(self, params: Dict[str, Any]) -> None:
        """Merge fields into the in-memory row. No I/O."""
        self.row.update(self._columns(params))

    def save(self) -> bool:
        """Update the row by id, or insert it and capture the new id."""
        values = {field: value for field, value in self.row.items() if field != 'id'}
        if self.found:
            stmt = update(self.table).where(self.table.c.id == self.row['id']).values(**values)
            result = self.session.execute(stmt)
            self.session.commit()
            return bool(result.rowcount)

        # 新记录只写入已设置的字段，其余交给数据库默认值
        values = {field: value for field, value in values.items() if value is not None}
        result = self.session.execute(insert(self.table).values(**values))
        self.session.commit()
        primary_key = result.inserted_primary_key
        if primary_key and primary_key[0] is not None:
            self.row['id'] = primary_key[0]
            return True
        return False
