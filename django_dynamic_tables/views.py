import logging
import math

from django.shortcuts import get_object_or_404, render
from rest_framework import permissions, status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from .conf import get_setting
from .models import Card, DetailPage, DynamicTable
from .renderer import TableView
from .serializers import DetailPageSerializer, DynamicTableSerializer
from .store import TableStore

logger = logging.getLogger(__name__)


def parse_id(value, name):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError({name: ['A valid integer is required.']})


class TablePagination(PageNumberPagination):
    page_size_query_param = 'limit'

    def __init__(self):
        self.page_size = get_setting('PAGE_SIZE')
        self.max_page_size = get_setting('MAX_PAGE_SIZE')

    def get_paginated_response(self, data):
        paginator = self.page.paginator
        return Response({
            'tables': data,
            'pagination': {
                'page': self.page.number,
                'limit': paginator.per_page,
                'total': paginator.count,
                'pages': int(math.ceil(paginator.count / float(paginator.per_page))),
            },
        })


class TableList(APIView):
    permission_classes = (permissions.IsAuthenticated,)
    store = TableStore()

    def get(self, request, format=None):
        tables = DynamicTable.objects.with_definition().search(request.query_params.get('search', ''))
        detail_page_id = request.query_params.get('detailPageId')
        if detail_page_id:
            tables = tables.filter(detail_page_id=parse_id(detail_page_id, 'detailPageId'))
        tables = tables.order_by('-updated_at', '-id')

        paginator = TablePagination()
        page = paginator.paginate_queryset(tables, request, view=self)
        serializer = DynamicTableSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def post(self, request, format=None):
        table = self.store.create(request.data)
        return Response(table, status=status.HTTP_201_CREATED)


class TableDetail(APIView):
    permission_classes = (permissions.IsAuthenticated,)
    store = TableStore()

    def get(self, request, pk, format=None):
        return Response(self.store.get(pk))

    def put(self, request, pk, format=None):
        return Response(self.store.update(pk, request.data))

    def delete(self, request, pk, format=None):
        self.store.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DetailPageForCard(APIView):
    """
    Return the detail page of a card, creating it on first access, together
    with its tables.
    """
    permission_classes = (permissions.IsAuthenticated,)

    def get(self, request, format=None):
        card_id = request.query_params.get('cardId')
        if not card_id:
            raise ValidationError({'cardId': ['Card ID is required.']})
        try:
            card = Card.objects.get(pk=parse_id(card_id, 'cardId'))
        except Card.DoesNotExist:
            raise NotFound('Card not found.')
        detail_page, created = DetailPage.objects.get_or_create(
            card=card, defaults={'content': 'Detailed information about %s' % card.title})
        if created:
            logger.info("Created detail page %s for card %s", detail_page.pk, card.pk)
        return Response(DetailPageSerializer(detail_page).data)


class DetailPageTableList(APIView):
    permission_classes = (permissions.AllowAny,)
    store = TableStore()

    def get(self, request, detail_page_id, format=None):
        return Response(self.store.get_by_detail_page(detail_page_id))


def detail_page(request, pk):
    page = get_object_or_404(DetailPage.objects.select_related('card__category__study_page'), pk=pk)
    tables = DynamicTable.objects.with_definition().for_detail_page(page.pk)
    return render(request, 'django_dynamic_tables/detail_page.html', {
        'detail_page': page,
        'card': page.card,
        'tables': [(table, TableView.for_table(table, params=request.GET)) for table in tables],
    })
