# registry_core/common/api/pagination.py
from __future__ import annotations

from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class RegistryPagination(PageNumberPagination):
    """?page=N&page_size=M; the default size comes from REGISTRY_PAGE_SIZE."""
    page_size_query_param = "page_size"
    max_page_size = 200

    def get_page_size(self, request):
        self.page_size = getattr(settings, "REGISTRY_PAGE_SIZE", 25)
        return super().get_page_size(request)


def paginate(request, queryset, serializer_class, *, paginator: PageNumberPagination | None = None) -> Response:
    """
    List responses always use the { count, next, previous, results } shape.
    Serializers receive the request in their context.
    """
    p = paginator or RegistryPagination()
    ctx = {"request": request}
    page = p.paginate_queryset(queryset, request)
    if page is None:
        return Response(serializer_class(queryset, many=True, context=ctx).data)
    return p.get_paginated_response(serializer_class(page, many=True, context=ctx).data)
