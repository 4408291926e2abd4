"""
core.domain.pagination — Page/limit pagination for list endpoints.

Views built on ``viewsets.ViewSet`` paginate explicitly::

    paginator = StandardPagination()
    page = paginator.paginate_queryset(qs, request, view=self)
    serializer = ComplaintListSerializer(page, many=True)
    return paginator.get_paginated_response(serializer.data)

Response shape::

    {"count": 42, "next": "...?page=3", "previous": "...?page=1", "results": [...]}
"""

from __future__ import annotations

from django.conf import settings
from rest_framework.pagination import PageNumberPagination


class StandardPagination(PageNumberPagination):
    """``?page=<n>&limit=<size>``; page size defaults to ``DEFAULT_PAGE_SIZE``."""

    page_query_param = "page"
    page_size_query_param = "limit"

    def __init__(self) -> None:
        self.page_size = getattr(settings, "DEFAULT_PAGE_SIZE", 10)
        self.max_page_size = getattr(settings, "MAX_PAGE_SIZE", 100)
