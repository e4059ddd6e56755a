"""Shared view plumbing: query-driven listings and JSON error pages."""

from django.http import JsonResponse
from rest_framework import status

from core.projection import ProjectionContext
from querying.config import QueryConfig
from querying.executor import Page, QueryExecutor
from querying.parser import parse_query, query_params_to_dict

from .response import api_response, error_payload


class QueryListMixin:
    """Run the client's query string through a QueryConfig and project the results.

    Expects ``resource_class`` and the identity helpers from ``BaseViewSet``.
    """

    resource_class = None

    def get_projection_context(self) -> ProjectionContext:
        return ProjectionContext(identity=self.get_identity(), request=self.request)

    def get_resource(self):
        return self.resource_class(self.get_projection_context())

    def parse_spec(self, config: QueryConfig):
        return parse_query(query_params_to_dict(self.request.query_params), config)

    def run_query(self, config: QueryConfig, queryset) -> Page:
        return QueryExecutor(config).execute(self.parse_spec(config), queryset)

    def with_includes(self, config: QueryConfig, queryset):
        """Eager-load requested relations for single-record reads."""
        return QueryExecutor(config).apply_includes(queryset, self.parse_spec(config))

    def page_response(self, page: Page, message: str):
        return api_response(
            {"items": self.get_resource().collection(page.items), "meta": page.meta()},
            message,
        )

    def record_response(self, record, message: str, status_code: int = status.HTTP_200_OK):
        return api_response(self.get_resource().to_representation(record), message, status=status_code)


def not_found(request, exception=None):
    """handler404: unmatched routes answer with the JSON envelope."""
    return JsonResponse(error_payload("Route not found."), status=status.HTTP_404_NOT_FOUND)


def server_error(request):
    """handler500: crashes outside DRF still answer with the JSON envelope."""
    return JsonResponse(error_payload("Internal server error."), status=status.HTTP_500_INTERNAL_SERVER_ERROR)


__all__ = ["QueryListMixin", "not_found", "server_error"]
