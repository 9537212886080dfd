"""System checks for article access wiring."""

from typing import Iterable, Iterator

from django.core.checks import Error, register
from django.urls import URLPattern, URLResolver, get_resolver

from access_control.permissions import ArticleAccessPermission


def routed_view_classes(patterns=None) -> Iterator[type]:
    """Yield every DRF view class reachable from the root URLconf."""

    if patterns is None:
        patterns = get_resolver().url_patterns
    for pattern in patterns:
        if isinstance(pattern, URLResolver):
            yield from routed_view_classes(pattern.url_patterns)
        elif isinstance(pattern, URLPattern):
            view_cls = getattr(pattern.callback, "cls", None)
            if isinstance(view_cls, type):
                yield view_cls


def _is_guarded(view_cls: type) -> bool:
    return any(
        isinstance(permission, type) and issubclass(permission, ArticleAccessPermission)
        for permission in getattr(view_cls, "permission_classes", None) or ()
    )


def check_view_classes(view_classes: Iterable[type]) -> list[Error]:
    errors: list[Error] = []
    seen: set[type] = set()
    for view_cls in view_classes:
        if view_cls in seen or not _is_guarded(view_cls):
            continue
        seen.add(view_cls)
        if not callable(getattr(view_cls, "get_access_subject", None)):
            errors.append(
                Error(
                    f"{view_cls.__name__} uses ArticleAccessPermission but does not "
                    f"implement get_access_subject().",
                    obj=view_cls,
                    id="access_control.E001",
                )
            )
    return errors


@register()
def access_views_provide_subject(app_configs, **kwargs):
    """Ensure routed views guarded by ArticleAccessPermission implement get_access_subject."""
    return check_view_classes(routed_view_classes())
