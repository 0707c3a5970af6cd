"""
Read-only presentation of a stored table.

``TableView`` takes a table's columns and keyed rows plus a ``RenderState``
(search term, sort key and direction, page) and works out what a page view
shows. ``render_cell`` turns a single value into safe HTML according to its
column type. Malformed values never raise; they render as the empty
placeholder.
"""
import datetime
import html
import logging
import math
from decimal import Decimal, InvalidOperation

from django.http import QueryDict
from django.utils import formats
from django.utils.dateparse import parse_date, parse_datetime
from django.utils.html import format_html, strip_tags
from django.utils.safestring import mark_safe

from .conf import get_setting
from .models import Column
from .rows import to_keyed
from .sanitizer import is_safe_url, sanitize_html

logger = logging.getLogger(__name__)

ASCENDING = 'asc'
DESCENDING = 'desc'

EMPTY_PLACEHOLDER = '-'

STATE_PARAMS = ('q', 'sort', 'dir', 'page')

SORTABLE_TYPES = frozenset([Column.TEXT, Column.NUMBER, Column.DATE, Column.BOOLEAN])

TYPE_ICONS = {
    Column.TEXT: 'type',
    Column.NUMBER: 'hash',
    Column.IMAGE: 'image',
    Column.LINK: 'link',
    Column.RICHTEXT: 'file-text',
    Column.BOOLEAN: 'check-square',
    Column.DATE: 'calendar',
}

TRUE_STRINGS = frozenset(['true', 'yes', 'y', '1', 'on'])
FALSE_STRINGS = frozenset(['false', 'no', 'n', '0', 'off'])


def is_empty(value):
    return value is None or (isinstance(value, str) and not value.strip())


def cell_text(value):
    if value is None:
        return ''
    return str(value)


def to_bool(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return None


def to_date(value):
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value
    if not isinstance(value, str):
        return None
    value = value.strip()
    try:
        return parse_datetime(value) or parse_date(value)
    except ValueError:
        return None


def to_number(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    try:
        return Decimal(str(value).strip().replace(',', ''))
    except (InvalidOperation, ValueError):
        return None


# Sorting and filtering

def sort_value(column, value):
    """
    Sort key for one cell. Empty values go after everything else; values a
    typed column cannot interpret fall back to their text.
    """
    if is_empty(value) or isinstance(value, (dict, list)):
        return (2, '')
    column_type = column.get('type')
    if column_type == Column.NUMBER:
        number = to_number(value)
        if number is not None and number.is_finite():
            return (0, number)
    elif column_type == Column.BOOLEAN:
        flag = to_bool(value)
        if flag is not None:
            return (0, flag)
    elif column_type == Column.DATE:
        date = to_date(value)
        if date is not None:
            if isinstance(date, datetime.datetime):
                return (0, (date.date(), date.time().replace(tzinfo=None)))
            return (0, (date, datetime.time.min))
    return (1, cell_text(value).lower())


def search_text(column, value):
    "Text a search term is matched against. Richtext is matched on what the reader sees."
    text = cell_text(value)
    if column.get('type') == Column.RICHTEXT:
        text = html.unescape(strip_tags(text))
    return text.lower()


def filter_rows(columns, rows, term):
    if not term:
        return list(rows)
    needle = term.lower()
    return [
        row for row in rows
        if any(needle in search_text(col, row['data'].get(col['id'])) for col in columns)
    ]


def sort_rows(columns, rows, sort_key, direction=ASCENDING):
    column = next((col for col in columns if col['id'] == sort_key), None)
    if column is None or column.get('type') not in SORTABLE_TYPES:
        return list(rows)
    ordered = sorted(rows, key=lambda row: sort_value(column, row['data'].get(sort_key)))
    if direction == DESCENDING:
        ordered.reverse()
    return ordered


# Cells

def _render_text(column, value):
    return format_html('<span>{}</span>', value)


def _render_number(column, value):
    return format_html('<span class="dt-number">{}</span>', value)


def _render_image_placeholder(column):
    return format_html(
        '<div class="dt-image-placeholder" title="{}"><span class="dt-icon dt-icon-image"></span></div>',
        column.get('name', ''),
    )


def _render_image(column, value):
    if not is_safe_url(value):
        return _render_image_placeholder(column)
    return format_html(
        '<img src="{}" alt="{}" class="dt-thumb" loading="lazy" '
        'onerror="this.onerror=null;this.src=\'{}\';">',
        value.strip(), column.get('name', ''), get_setting('IMAGE_PLACEHOLDER'),
    )


def _render_link(column, value):
    if not is_safe_url(value):
        return mark_safe(EMPTY_PLACEHOLDER)
    return format_html(
        '<a href="{}" target="_blank" rel="noopener noreferrer" class="dt-link">'
        '{} <span class="dt-icon dt-icon-external-link"></span></a>',
        value.strip(), value,
    )


def _render_richtext(column, value):
    if not isinstance(value, str):
        return mark_safe(EMPTY_PLACEHOLDER)
    return format_html('<div class="dt-richtext">{}</div>', sanitize_html(value))


def _render_boolean(column, value):
    flag = to_bool(value)
    if flag is None:
        return mark_safe(EMPTY_PLACEHOLDER)
    if flag:
        return mark_safe('<span class="dt-pill dt-pill-yes">Yes</span>')
    return mark_safe('<span class="dt-pill dt-pill-no">No</span>')


def _render_date(column, value):
    date = to_date(value)
    if date is None:
        return _render_text(column, value)
    return format_html(
        '<span class="dt-date"><span class="dt-icon dt-icon-calendar"></span>{}</span>',
        formats.date_format(date, 'DATE_FORMAT'),
    )


CELL_RENDERERS = {
    Column.TEXT: _render_text,
    Column.NUMBER: _render_number,
    Column.IMAGE: _render_image,
    Column.LINK: _render_link,
    Column.RICHTEXT: _render_richtext,
    Column.BOOLEAN: _render_boolean,
    Column.DATE: _render_date,
}


def render_cell(column, value):
    """
    Render one cell value as safe HTML for its column's type.
    """
    column_type = column.get('type')
    if is_empty(value):
        if column_type == Column.IMAGE:
            return _render_image_placeholder(column)
        return mark_safe(EMPTY_PLACEHOLDER)
    if isinstance(value, (dict, list)):
        logger.debug("Unexpected %s value in column %s", type(value).__name__, column.get('id'))
        return mark_safe(EMPTY_PLACEHOLDER)
    renderer = CELL_RENDERERS.get(column_type, _render_text)
    try:
        return renderer(column, value)
    except (TypeError, ValueError):
        logger.debug("Could not render value in column %s", column.get('id'), exc_info=True)
        return mark_safe(EMPTY_PLACEHOLDER)


# View state

class RenderState(object):

    def __init__(self, search_term='', sort_key=None, sort_direction=ASCENDING, page=1):
        self.search_term = search_term or ''
        self.sort_key = sort_key or None
        self.sort_direction = DESCENDING if sort_direction == DESCENDING else ASCENDING
        self.page = page

    def __eq__(self, other):
        return isinstance(other, RenderState) and self.as_dict() == other.as_dict()

    def __repr__(self):
        return '<RenderState %r>' % self.as_dict()

    def as_dict(self):
        return {
            'search_term': self.search_term,
            'sort_key': self.sort_key,
            'sort_direction': self.sort_direction,
            'page': self.page,
        }

    @classmethod
    def from_query(cls, params, prefix=''):
        try:
            page = max(1, int(params.get(prefix + 'page', 1)))
        except (TypeError, ValueError):
            page = 1
        return cls(
            search_term=params.get(prefix + 'q', ''),
            sort_key=params.get(prefix + 'sort'),
            sort_direction=params.get(prefix + 'dir', ASCENDING),
            page=page,
        )

    def to_query(self, prefix=''):
        query = {}
        if self.search_term:
            query[prefix + 'q'] = self.search_term
        if self.sort_key:
            query[prefix + 'sort'] = self.sort_key
            query[prefix + 'dir'] = self.sort_direction
        if self.page != 1:
            query[prefix + 'page'] = str(self.page)
        return query

    def toggle_sort(self, column_id):
        "Same column flips ascending and descending; another column starts ascending."
        direction = ASCENDING
        if self.sort_key == column_id and self.sort_direction == ASCENDING:
            direction = DESCENDING
        return RenderState(self.search_term, column_id, direction)

    def with_search(self, term):
        return RenderState(term, self.sort_key, self.sort_direction)

    def cleared(self):
        return self.with_search('')

    def with_page(self, page):
        return RenderState(self.search_term, self.sort_key, self.sort_direction, page)


class TableView(object):
    """
    What one page view of a table shows.

    Filtering always starts from the full row set; sorting is applied to the
    filtered rows and paging to the sorted result.
    """

    def __init__(self, columns, rows, state=None, params=None, prefix='', per_page=None):
        self.columns = list(columns)
        self.rows = to_keyed(self.columns, rows)
        self.state = state if state is not None else RenderState.from_query(params or {}, prefix)
        self.params = params
        self.prefix = prefix
        self.per_page = per_page or get_setting('ROWS_PER_PAGE')

    @classmethod
    def for_table(cls, table, **kwargs):
        kwargs.setdefault('prefix', 't%s-' % table.pk)
        return cls(table.get_columns(), table.get_rows(), **kwargs)

    def query_string(self, state):
        "URL query for ``state``, keeping parameters that belong to other tables."
        own = set(self.prefix + name for name in STATE_PARAMS)
        params = self.params or {}
        query = QueryDict(mutable=True)
        for key in params:
            if key not in own:
                query.setlist(key, params.getlist(key) if hasattr(params, 'getlist') else [params[key]])
        for key, value in state.to_query(self.prefix).items():
            query[key] = value
        return query.urlencode()

    @property
    def sort_column(self):
        for column in self.columns:
            if column['id'] == self.state.sort_key and column.get('type') in SORTABLE_TYPES:
                return column
        return None

    @property
    def headers(self):
        headers = []
        for column in self.columns:
            sortable = column.get('type') in SORTABLE_TYPES
            active = sortable and column['id'] == self.state.sort_key
            headers.append({
                'column': column,
                'name': column['name'],
                'icon': TYPE_ICONS.get(column.get('type'), TYPE_ICONS[Column.TEXT]),
                'sortable': sortable,
                'direction': self.state.sort_direction if active else None,
                'sort_query': self.query_string(self.state.toggle_sort(column['id'])) if sortable else None,
            })
        return headers

    @property
    def filtered_rows(self):
        return filter_rows(self.columns, self.rows, self.state.search_term)

    @property
    def sorted_rows(self):
        rows = self.filtered_rows
        if self.sort_column is None:
            return rows
        return sort_rows(self.columns, rows, self.state.sort_key, self.state.sort_direction)

    @property
    def total(self):
        return len(self.filtered_rows)

    @property
    def num_pages(self):
        return max(1, int(math.ceil(self.total / float(self.per_page))))

    @property
    def page(self):
        return min(self.state.page, self.num_pages)

    @property
    def start_index(self):
        return (self.page - 1) * self.per_page

    @property
    def page_rows(self):
        return self.sorted_rows[self.start_index:self.start_index + self.per_page]

    @property
    def page_range(self):
        "Up to PAGE_WINDOW page numbers centred on the current page."
        window = get_setting('PAGE_WINDOW')
        if self.num_pages <= window:
            return list(range(1, self.num_pages + 1))
        first = min(max(1, self.page - window // 2), self.num_pages - window + 1)
        return list(range(first, first + window))

    @property
    def summary(self):
        if not self.total:
            return ''
        return 'Showing %d to %d of %d results' % (
            self.start_index + 1, min(self.start_index + self.per_page, self.total), self.total)

    @property
    def empty_state(self):
        if not self.rows:
            return 'empty'
        if not self.total:
            return 'no_matches'
        return None

    @property
    def clear_search_query(self):
        return self.query_string(self.state.cleared())

    def page_query(self, page):
        return self.query_string(self.state.with_page(page))

    @property
    def pages(self):
        return [{'number': number, 'query': self.page_query(number), 'current': number == self.page}
                for number in self.page_range]

    @property
    def rendered_rows(self):
        return [
            {'id': row['id'], 'cells': [render_cell(col, row['data'].get(col['id'])) for col in self.columns]}
            for row in self.page_rows
        ]
