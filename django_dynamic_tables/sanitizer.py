"""
Allow-list filter for rich text cells.

Markup is parsed with the same ``HTMLParser`` Django's own ``strip_tags`` is
built on. Only allow-listed tags and attributes are re-emitted; every text
node and attribute value goes back out through ``django.utils.html.escape``.
Tags that are not allowed are dropped but keep their text, except for the
elements in ``DROP_CONTENT_TAGS`` whose content is discarded entirely.
"""
from html.parser import HTMLParser
from urllib.parse import urlsplit

from django.utils.html import escape
from django.utils.safestring import mark_safe

from .conf import get_setting


DROP_CONTENT_TAGS = frozenset([
    'script', 'style', 'iframe', 'object', 'embed', 'template', 'noscript',
])
VOID_TAGS = frozenset(['br', 'hr', 'img'])
URL_ATTRIBUTES = frozenset(['href', 'src'])
SAFE_SCHEMES = frozenset(['', 'http', 'https', 'mailto'])


def is_safe_url(url, schemes=SAFE_SCHEMES):
    if not isinstance(url, str):
        return False
    url = url.strip()
    if not url:
        return False
    try:
        scheme = urlsplit(url).scheme.lower()
    except ValueError:
        return False
    return scheme in schemes


class AllowListParser(HTMLParser):

    def __init__(self, tags, attributes):
        super(AllowListParser, self).__init__(convert_charrefs=True)
        self.tags = frozenset(tags)
        self.attributes = attributes
        self.parts = []
        self.open_tags = []
        self.skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in DROP_CONTENT_TAGS:
            self.skip_depth += 1
            return
        if self.skip_depth or tag not in self.tags:
            return
        allowed = self.attributes.get(tag, ())
        kept = []
        for name, value in attrs:
            if name not in allowed or value is None:
                continue
            if name in URL_ATTRIBUTES and not is_safe_url(value):
                continue
            kept.append((name, value))
        if tag == 'a':
            kept.extend([('target', '_blank'), ('rel', 'noopener noreferrer')])
        self.parts.append('<%s%s>' % (
            tag, ''.join(' %s="%s"' % (name, escape(value)) for name, value in kept)
        ))
        if tag not in VOID_TAGS:
            self.open_tags.append(tag)

    def handle_startendtag(self, tag, attrs):
        if tag in DROP_CONTENT_TAGS:
            return
        self.handle_starttag(tag, attrs)
        if tag not in VOID_TAGS and not self.skip_depth and tag in self.tags:
            self.handle_endtag(tag)

    def handle_endtag(self, tag):
        if tag in DROP_CONTENT_TAGS:
            self.skip_depth = max(0, self.skip_depth - 1)
            return
        if self.skip_depth or tag not in self.open_tags:
            return
        while self.open_tags:
            current = self.open_tags.pop()
            self.parts.append('</%s>' % current)
            if current == tag:
                break

    def handle_data(self, data):
        if not self.skip_depth:
            self.parts.append(escape(data))

    def close(self):
        super(AllowListParser, self).close()
        while self.open_tags:
            self.parts.append('</%s>' % self.open_tags.pop())

    def get_html(self):
        return ''.join(self.parts)


def sanitize_html(value, tags=None, attributes=None):
    """
    Return ``value`` reduced to the allow-listed subset of HTML, marked safe
    for templates.
    """
    if value is None:
        return mark_safe('')
    parser = AllowListParser(
        tags if tags is not None else get_setting('RICHTEXT_TAGS'),
        attributes if attributes is not None else get_setting('RICHTEXT_ATTRIBUTES'),
    )
    parser.feed(str(value))
    parser.close()
    return mark_safe(parser.get_html())
