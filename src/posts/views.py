"""Posts API: listings driven by the query layer plus lifecycle actions."""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny

from access_control.permissions import IsAuthenticatedCaller, OwnerOrRolePermission
from core.response import BaseViewSet, api_response
from core.views import QueryListMixin

from . import lifecycle
from .models import Post
from .queries import MY_POSTS_QUERY, POST_DETAIL_QUERY, POST_QUERY, PUBLISHED_QUERY, effectively_published
from .resources import PostResource
from .serializers import PostWriteSerializer

PAGE_PARAMETERS = [
    OpenApiParameter("sort", str, description="Comma-separated keys, '-' prefix for descending."),
    OpenApiParameter("include", str, description="user"),
    OpenApiParameter("page[size]", int),
    OpenApiParameter("page[number]", int),
]

LIST_PARAMETERS = [
    OpenApiParameter("filter[title]", str, description="Partial, case-insensitive match."),
    OpenApiParameter("filter[status]", str, description="draft, published or archived."),
    OpenApiParameter("filter[user_id]", str),
    OpenApiParameter("filter[search]", str, description="Matches title or content."),
    OpenApiParameter("filter[published]", bool),
    OpenApiParameter("filter[draft]", bool),
    *PAGE_PARAMETERS,
]


class PostViewSet(QueryListMixin, BaseViewSet):
    """Posts addressed by slug.

    Everything except the ``published`` listing requires authentication; writes
    are limited to the owner and the moderator roles.
    """

    queryset = Post.objects.all()
    lookup_field = "slug"
    resource_class = PostResource
    permission_classes = [IsAuthenticatedCaller, OwnerOrRolePermission]
    owner_field = "user_id"
    query_configs = {
        "list": POST_QUERY,
        "retrieve": POST_DETAIL_QUERY,
        "my_posts": MY_POSTS_QUERY,
        "published": PUBLISHED_QUERY,
    }

    def get_permissions(self):
        if self.action == "published":
            return [AllowAny()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == "retrieve":
            return self.with_includes(POST_DETAIL_QUERY, queryset)
        return queryset

    def _reload(self, post: Post) -> Post:
        """Fetch ``post`` again with its author loaded for the response."""
        return Post.objects.select_related("user").get(pk=post.pk)

    @extend_schema(parameters=LIST_PARAMETERS)
    def list(self, request):
        page = self.run_query(POST_QUERY, self.get_queryset())
        return self.page_response(page, "Posts retrieved successfully")

    @extend_schema(request=PostWriteSerializer)
    def create(self, request):
        serializer = PostWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        post = lifecycle.create_post(request.user, serializer.validated_data)
        return self.record_response(self._reload(post), "Post created successfully", status.HTTP_201_CREATED)

    @extend_schema(parameters=[OpenApiParameter("include", str)])
    def retrieve(self, request, slug=None):
        return self.record_response(self.get_object(), "Post retrieved successfully")

    @extend_schema(request=PostWriteSerializer)
    def update(self, request, slug=None, partial=False):
        post = self.get_object()
        serializer = PostWriteSerializer(post, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        post = lifecycle.update_post(post, serializer.validated_data)
        return self.record_response(self._reload(post), "Post updated successfully")

    def partial_update(self, request, slug=None):
        return self.update(request, slug=slug, partial=True)

    def destroy(self, request, slug=None):
        self.get_object().delete()
        return api_response(None, "Post deleted successfully")

    @action(detail=True, methods=["post"])
    def publish(self, request, slug=None):
        post = lifecycle.publish(self.get_object())
        return self.record_response(self._reload(post), "Post published successfully")

    @action(detail=True, methods=["post"])
    def archive(self, request, slug=None):
        post = lifecycle.archive(self.get_object())
        return self.record_response(self._reload(post), "Post archived successfully")

    @extend_schema(parameters=PAGE_PARAMETERS)
    @action(detail=False, methods=["get"], url_path="my-posts")
    def my_posts(self, request):
        page = self.run_query(MY_POSTS_QUERY, self.get_queryset().filter(user=request.user))
        return self.page_response(page, "Your posts retrieved successfully")

    @extend_schema(parameters=PAGE_PARAMETERS)
    @action(detail=False, methods=["get"])
    def published(self, request):
        page = self.run_query(PUBLISHED_QUERY, self.get_queryset().filter(effectively_published()))
        return self.page_response(page, "Published posts retrieved successfully")


__all__ = ["PostViewSet"]
