"""
Conversions between the two shapes of row data.

Rows are kept keyed by column id everywhere in memory (``{column_id: value}``)
and only laid out positionally, aligned to the column order, on the wire.
These functions are the single place where one shape becomes the other.
Both accept either shape and never raise on malformed data: anything that is
neither a mapping nor a list becomes a row of empty cells.
"""
import logging

logger = logging.getLogger(__name__)


def column_ids(columns):
    return [col['id'] for col in columns]


def normalize_data(columns, data):
    """
    Return ``data`` as a dict holding one entry for every current column.

    Values for unknown column ids are dropped, missing ones become ``None``.
    Positional data is aligned to ``columns``; extra trailing values are
    ignored.
    """
    ids = column_ids(columns)
    if isinstance(data, dict):
        return {col_id: data.get(col_id) for col_id in ids}
    if isinstance(data, (list, tuple)):
        values = list(data[:len(ids)])
        values.extend([None] * (len(ids) - len(values)))
        return dict(zip(ids, values))
    if data is not None:
        logger.warning("Discarding row data of unexpected type %s", type(data).__name__)
    return dict.fromkeys(ids)


def to_keyed(columns, rows):
    return [
        {'id': row.get('id'), 'data': normalize_data(columns, row.get('data'))}
        for row in rows
    ]


def to_positional(columns, rows):
    ids = column_ids(columns)
    result = []
    for row in rows:
        data = normalize_data(columns, row.get('data'))
        result.append({'id': row.get('id'), 'data': [data[col_id] for col_id in ids]})
    return result
