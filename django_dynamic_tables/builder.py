"""
In-memory draft of a table definition.

A ``TableBuilder`` holds the full definition while an operator edits it:
metadata, ordered columns and ordered rows, with row data keyed by column id.
Nothing is written until ``save()``, which hands the whole draft to the store
in one call. A failed save leaves the draft as it was, so it can be retried.
"""
import uuid

from .exceptions import TableValidationError
from .models import Column
from .rows import to_keyed, to_positional
from .store import TableStore

EDITABLE_TYPES = tuple(value for value, label in Column.TYPE_CHOICES)


def generate_id():
    return uuid.uuid4().hex


def always_confirm(message):
    return True


class TableBuilder(object):

    def __init__(self, title='', description='', icon_url='', detail_page_id=None,
                 columns=None, rows=None, table_id=None, confirm=always_confirm):
        self.table_id = table_id
        self.title = title
        self.description = description
        self.icon_url = icon_url
        self.detail_page_id = detail_page_id
        self.columns = [dict(col) for col in columns or []]
        self.rows = to_keyed(self.columns, rows or [])
        self.confirm = confirm
        self._dragged_row_id = None

    @classmethod
    def from_table(cls, table, **kwargs):
        "Open a stored table (wire form, as returned by the store) for editing."
        return cls(
            title=table.get('title') or '',
            description=table.get('description') or '',
            icon_url=table.get('iconUrl') or '',
            detail_page_id=table.get('detailPageId'),
            columns=table.get('columns'),
            rows=table.get('rows'),
            table_id=table.get('id'),
            **kwargs
        )

    # Columns

    def get_column(self, column_id):
        for column in self.columns:
            if column['id'] == column_id:
                return column
        raise KeyError(column_id)

    def _check_column_name(self, name, exclude_id=None):
        if not name or not name.strip():
            raise TableValidationError({'name': ['Column name is required.']})
        lowered = name.strip().lower()
        for column in self.columns:
            if column['id'] != exclude_id and column['name'].lower() == lowered:
                raise TableValidationError({'name': ['Column name already exists.']})

    def _check_column_type(self, type):
        if type not in EDITABLE_TYPES:
            raise TableValidationError({'type': ['"%s" is not a valid column type.' % type]})

    def add_column(self, name, type=Column.TEXT, width=None):
        self._check_column_name(name)
        self._check_column_type(type)
        column = {'id': generate_id(), 'name': name.strip(), 'type': type}
        if width is not None:
            column['width'] = width
        self.columns.append(column)
        for row in self.rows:
            row['data'].setdefault(column['id'], None)
        return column

    def update_column(self, column_id, **patch):
        column = self.get_column(column_id)
        if 'name' in patch:
            self._check_column_name(patch['name'], exclude_id=column_id)
            patch['name'] = patch['name'].strip()
        if 'type' in patch:
            self._check_column_type(patch['type'])
        patch.pop('id', None)
        column.update(patch)
        return column

    def delete_column(self, column_id):
        """
        Remove a column. Values already entered for it stay in the row data
        but can no longer be reached and are not saved.
        """
        column = self.get_column(column_id)
        if not self.confirm('Delete column "%s"? All data in this column will be lost.' % column['name']):
            return False
        self.columns.remove(column)
        return True

    # Rows

    def get_row(self, row_id):
        for row in self.rows:
            if row['id'] == row_id:
                return row
        raise KeyError(row_id)

    def add_row(self):
        if not self.columns:
            return None
        row = {'id': generate_id(), 'data': dict.fromkeys(col['id'] for col in self.columns)}
        self.rows.append(row)
        return row

    def update_row(self, row_id, data):
        row = self.get_row(row_id)
        row['data'].update(data)
        return row

    def delete_row(self, row_id):
        row = self.get_row(row_id)
        if not self.confirm('Delete this row?'):
            return False
        self.rows.remove(row)
        return True

    def move_row(self, from_index, to_index):
        row = self.rows.pop(from_index)
        self.rows.insert(to_index, row)

    def drag_start(self, row_id):
        self.get_row(row_id)
        self._dragged_row_id = row_id

    def drag_over(self, row_id):
        return self._dragged_row_id is not None and row_id != self._dragged_row_id

    def drop(self, row_id):
        "Move the dragged row to the position of ``row_id``."
        dragged, self._dragged_row_id = self._dragged_row_id, None
        if dragged is None or dragged == row_id:
            return
        from_index = self.rows.index(self.get_row(dragged))
        to_index = self.rows.index(self.get_row(row_id))
        self.move_row(from_index, to_index)

    # Persistence

    def validate(self):
        errors = {}
        if not self.title or not self.title.strip():
            errors['title'] = ['Table title is required.']
        if not self.detail_page_id:
            errors['detailPageId'] = ['Please select a card.']
        if not self.columns:
            errors['columns'] = ['Please add at least one column.']
        if errors:
            raise TableValidationError(errors)

    def to_payload(self):
        return {
            'title': self.title,
            'description': self.description,
            'iconUrl': self.icon_url,
            'detailPageId': self.detail_page_id,
            'columns': [dict(col) for col in self.columns],
            'rows': to_positional(self.columns, self.rows),
        }

    def save(self, store=None):
        self.validate()
        if store is None:
            store = TableStore()
        payload = self.to_payload()
        if self.table_id is None:
            table = store.create(payload)
        else:
            table = store.update(self.table_id, payload)
        self.table_id = table['id']
        return table
