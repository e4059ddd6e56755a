"""System checks for listing endpoint allow-lists."""

from django.core.checks import Error, register
from django.core.exceptions import FieldDoesNotExist


@register()
def query_configs_are_consistent(app_configs, **kwargs):
    """Ensure every QueryConfig exposed by a view can be executed.

    Views are listed explicitly; a new listing view has to be added here so
    its includes and default ordering are validated at startup.
    """
    errors: list[Error] = []

    # Import here to avoid circular imports at module load time.
    from authentication.views import UserViewSet
    from posts.views import PostViewSet

    for view_cls in [UserViewSet, PostViewSet]:
        model = view_cls.queryset.model
        for name, config in getattr(view_cls, "query_configs", {}).items():
            label = f"{view_cls.__name__}.query_configs[{name!r}]"
            for path in sorted(config.includes):
                if not config.allows_include(path):
                    errors.append(
                        Error(f"{label} allows include {path!r} without its parent path.",
                              obj=view_cls, id="querying.E001")
                    )
            for path in sorted(set(config.includes) | set(config.default_includes)):
                if not _relation_path_exists(model, path.split(".")):
                    errors.append(
                        Error(f"{label} includes unknown relation {path!r}.",
                              obj=view_cls, id="querying.E002")
                    )
            for token in config.default_sort:
                column = config.sort_column(token.lstrip("-"))
                if not _relation_path_exists(model, column.split("__"), allow_plain=True):
                    errors.append(
                        Error(f"{label} default sort {token!r} does not resolve to a column.",
                              obj=view_cls, id="querying.E003")
                    )
    return errors


def _relation_path_exists(model, segments, allow_plain=False) -> bool:
    for index, segment in enumerate(segments):
        try:
            field = model._meta.get_field(segment)
        except FieldDoesNotExist:
            return False
        last = index == len(segments) - 1
        if not field.is_relation:
            return allow_plain and last
        model = field.related_model
    return True
