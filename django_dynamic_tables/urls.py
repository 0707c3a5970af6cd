from django.urls import path

from . import views

urlpatterns = [
    path(
        'api/admin/tables/',
        views.TableList.as_view(),
        name='tables'
    ),
    path(
        'api/admin/tables/<int:pk>/',
        views.TableDetail.as_view(),
        name='table-details'
    ),
    path(
        'api/admin/detail-pages/',
        views.DetailPageForCard.as_view(),
        name='detail-page-for-card'
    ),
    path(
        'api/detail-pages/<int:detail_page_id>/tables/',
        views.DetailPageTableList.as_view(),
        name='detail-page-tables'
    ),
    path(
        'detail-pages/<int:pk>/',
        views.detail_page,
        name='detail-page'
    ),
]
