from django.conf import settings


DEFAULTS = {
    'PAGE_SIZE': 10,
    'MAX_PAGE_SIZE': 100,
    'ROWS_PER_PAGE': 10,
    'PAGE_WINDOW': 5,
    'IMAGE_PLACEHOLDER': '/static/django_dynamic_tables/placeholder.svg',
    'RICHTEXT_TAGS': (
        'a', 'b', 'blockquote', 'br', 'code', 'em', 'h3', 'h4', 'hr', 'i',
        'li', 'ol', 'p', 'pre', 'span', 'strong', 'sub', 'sup', 'u', 'ul',
    ),
    'RICHTEXT_ATTRIBUTES': {
        'a': ('href', 'title'),
    },
}


def get_setting(name):
    """
    Read a value from the ``DYNAMIC_TABLES`` settings dict, falling back to
    the application default.
    """
    user_settings = getattr(settings, 'DYNAMIC_TABLES', None) or {}
    return user_settings.get(name, DEFAULTS[name])
