"""Page/limit pagination producing a results + pagination payload."""

import math

from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PageLimitPagination(PageNumberPagination):
    """``?page=N&limit=M`` pagination.

    Out-of-range pages return an empty result list instead of a 404 so that
    clients can page past the end without special casing.
    """

    page_query_param = "page"
    page_size_query_param = "limit"

    @property
    def page_size(self) -> int:  # type: ignore[override]
        return getattr(settings, "ARTICLES_PAGE_SIZE", 10)

    @property
    def max_page_size(self) -> int:  # type: ignore[override]
        return getattr(settings, "ARTICLES_MAX_PAGE_SIZE", 100)

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        self.limit = self.get_page_size(request)
        self.page_number = self._requested_page(request)
        self.total_count = queryset.count()
        offset = (self.page_number - 1) * self.limit
        if offset >= self.total_count:
            # Past the end; never hand the database an OFFSET it cannot store.
            return []
        return list(queryset[offset:offset + self.limit])

    def get_paginated_response(self, data):
        return Response(
            {
                "results": data,
                "pagination": {
                    "page": self.page_number,
                    "limit": self.limit,
                    "total_count": self.total_count,
                    "total_pages": math.ceil(self.total_count / self.limit) if self.limit else 0,
                },
            }
        )

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "results": schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "page": {"type": "integer"},
                        "limit": {"type": "integer"},
                        "total_count": {"type": "integer"},
                        "total_pages": {"type": "integer"},
                    },
                },
            },
        }

    def _requested_page(self, request) -> int:
        try:
            page = int(request.query_params.get(self.page_query_param, 1))
        except (TypeError, ValueError):
            return 1
        return max(page, 1)


__all__ = ["PageLimitPagination"]
