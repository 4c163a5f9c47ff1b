"""
Kafiza Backend — Route Method Index
=====================================

What:  Path template → HTTP methods for every route the API registers.
How:   Route modules call `record_methods()` as they add routes; the 405 handler in
       main.py looks the request path up to build the Allow header.
"""

import re
from typing import Iterable, List, Set, Tuple

from fastapi import APIRouter
from starlette.routing import compile_path


class RouteMethodIndex:

    def __init__(self):
        self._entries: List[Tuple[re.Pattern, Set[str]]] = []

    def add(self, path: str, methods: Iterable[str]) -> None:
        path_regex, _, _ = compile_path(path)
        upper = {method.upper() for method in methods}
        for pattern, known in self._entries:
            if pattern.pattern == path_regex.pattern:
                known.update(upper)
                return
        self._entries.append((path_regex, upper))

    def methods_for(self, path: str) -> Set[str]:
        """Every method registered on a template matching `path`."""
        found: Set[str] = set()
        for pattern, methods in self._entries:
            if pattern.match(path):
                found.update(methods)
        return found


# Process-wide index filled at import time by the route modules
route_methods = RouteMethodIndex()


def record_methods(router: APIRouter, path: str, *methods: str) -> None:
    """Records `methods` for `path` under the router's prefix."""
    route_methods.add(router.prefix + path, methods)
