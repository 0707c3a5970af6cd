from django.db import models
from django.db.models import Prefetch, Q
from django.utils.translation import gettext_lazy as _

from .rows import to_keyed


# Catalog entries a dynamic table can be attached to.

class StudyPage(models.Model):

    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.title


class Category(models.Model):

    study_page = models.ForeignKey(StudyPage, on_delete=models.CASCADE, related_name='categories')
    title = models.CharField(max_length=200)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ('position', 'id')
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.title


class Card(models.Model):

    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name='cards')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ('position', 'id')

    def __str__(self):
        return self.title


class DetailPage(models.Model):

    card = models.OneToOneField(Card, on_delete=models.CASCADE, related_name='detail_page')
    content = models.TextField(blank=True)

    def __str__(self):
        return 'Detail page for %s' % self.card


# Dynamic tables: a pivot of rows and columns joined by cells.

class DynamicTableQuerySet(models.QuerySet):

    def with_definition(self):
        return self.prefetch_related(
            'columns',
            Prefetch('rows', queryset=Row.objects.prefetch_related('cells')),
        )

    def for_detail_page(self, detail_page_id):
        return self.filter(detail_page_id=detail_page_id).order_by('created_at', 'id')

    def search(self, term):
        if not term:
            return self
        return self.filter(Q(title__icontains=term) | Q(description__icontains=term))


class DynamicTable(models.Model):

    detail_page = models.ForeignKey(DetailPage, on_delete=models.CASCADE, related_name='tables')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    icon_url = models.CharField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = DynamicTableQuerySet.as_manager()

    def __str__(self):
        return self.title

    def get_columns(self):
        return [col.as_dict() for col in self.columns.all()]

    def get_rows(self):
        """
        Rows in display order, keyed by column id, with an entry for every
        current column.
        """
        keys = {col.pk: col.key for col in self.columns.all()}
        rows = []
        for row in self.rows.all():
            data = {keys[cell.column_id]: cell.value for cell in row.cells.all() if cell.column_id in keys}
            rows.append({'id': row.key, 'data': data})
        return to_keyed(self.get_columns(), rows)


class Column(models.Model):

    TEXT = 'text'
    NUMBER = 'number'
    IMAGE = 'image'
    LINK = 'link'
    RICHTEXT = 'richtext'
    BOOLEAN = 'boolean'
    DATE = 'date'

    TYPE_CHOICES = (
        (TEXT, _('Text')),
        (NUMBER, _('Number')),
        (IMAGE, _('Image')),
        (LINK, _('Link')),
        (RICHTEXT, _('Rich text')),
    )

    table = models.ForeignKey(DynamicTable, on_delete=models.CASCADE, related_name='columns')
    key = models.CharField(max_length=64)
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TEXT)
    width = models.FloatField(blank=True, null=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ('position', 'id')
        unique_together = ('table', 'key')

    def __str__(self):
        return self.name

    def as_dict(self):
        data = {'id': self.key, 'name': self.name, 'type': self.type}
        if self.width is not None:
            data['width'] = self.width
        return data


class Row(models.Model):

    table = models.ForeignKey(DynamicTable, on_delete=models.CASCADE, related_name='rows')
    key = models.CharField(max_length=64)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ('position', 'id')
        unique_together = ('table', 'key')

    def __str__(self):
        return self.key


class Cell(models.Model):

    row = models.ForeignKey(Row, on_delete=models.CASCADE, related_name='cells')
    column = models.ForeignKey(Column, on_delete=models.CASCADE, related_name='cells')
    value = models.JSONField(blank=True, null=True)

    class Meta:
        unique_together = ('row', 'column')
