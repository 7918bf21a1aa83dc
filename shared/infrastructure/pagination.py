"""Pagination shared by list endpoints."""

from rest_framework.pagination import PageNumberPagination  # type: ignore


class StandardPagination(PageNumberPagination):
    """``?page=2&limit=20`` style pagination."""

    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100
