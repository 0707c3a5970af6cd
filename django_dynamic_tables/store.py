import logging

from django.db import DatabaseError

from .exceptions import StoreError, TableNotFound, TableValidationError
from .models import DynamicTable
from .serializers import DynamicTableSerializer

logger = logging.getLogger(__name__)


class TableStore(object):
    """
    Create, replace, delete and look up table definitions.

    Every method speaks the wire form: plain dicts with camelCase keys and
    positional row data. Writes replace the whole definition; there is no
    merge with what was stored before.
    """

    serializer_class = DynamicTableSerializer

    def get_queryset(self):
        return DynamicTable.objects.with_definition()

    def get_object(self, pk):
        try:
            return self.get_queryset().get(pk=pk)
        except (DynamicTable.DoesNotExist, ValueError, TypeError):
            raise TableNotFound()

    def get(self, pk):
        return self.serializer_class(self.get_object(pk)).data

    def get_by_detail_page(self, detail_page_id):
        tables = self.get_queryset().for_detail_page(detail_page_id)
        return self.serializer_class(tables, many=True).data

    def create(self, data):
        serializer = self.serializer_class(data=data)
        table = self._save(serializer)
        logger.info("Created table %s on detail page %s", table.pk, table.detail_page_id)
        return self.get(table.pk)

    def update(self, pk, data):
        instance = self.get_object(pk)
        previous_page_id = instance.detail_page_id
        serializer = self.serializer_class(instance, data=data)
        table = self._save(serializer)
        if table.detail_page_id != previous_page_id:
            logger.info("Moved table %s from detail page %s to %s", table.pk, previous_page_id, table.detail_page_id)
        logger.info("Updated table %s", table.pk)
        return self.get(table.pk)

    def delete(self, pk):
        try:
            deleted, _ = DynamicTable.objects.filter(pk=pk).delete()
        except DatabaseError as exc:
            logger.exception("Failed to delete table %s", pk)
            raise StoreError() from exc
        if not deleted:
            raise TableNotFound()
        logger.info("Deleted table %s", pk)

    def _save(self, serializer):
        if not serializer.is_valid():
            raise TableValidationError(serializer.errors)
        try:
            return serializer.save()
        except DatabaseError as exc:
            logger.exception("Failed to save table")
            raise StoreError() from exc
