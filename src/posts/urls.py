"""Routing for the posts API."""

from rest_framework.routers import DefaultRouter

from .views import PostViewSet

posts_router = DefaultRouter(trailing_slash=True)
posts_router.include_root_view = False
posts_router.register(r"posts", PostViewSet, basename="post")
