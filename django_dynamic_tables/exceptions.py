from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError


class TableValidationError(ValidationError):
    "Raised by the builder and the store when a table definition is rejected."


class TableNotFound(NotFound):
    default_detail = _('Table not found.')
    default_code = 'table_not_found'


class StoreError(APIException):
    "The table store could not complete a write. Nothing was saved."
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = _('Failed to save table.')
    default_code = 'store_error'
