"""
Kafiza Backend — Resource Router Factory
==========================================

What:  Builds the HTTP surface of one resource kind.
How:   Every handler is thin: it reads the request, hands it to a
       ResourceRepository and wraps the result in the success envelope.
       Errors are raised, never returned; the global handlers in main.py
       turn them into the error envelope.

Routes built for prefix /api/{resource}:
    GET     /api/{resource}          list, search, or category filter
    POST    /api/{resource}          create → 201
    OPTIONS /api/{resource}          200, empty body
    GET     /api/{resource}/{id}     fetch one active record
    PUT     /api/{resource}/{id}     partial update
    DELETE  /api/{resource}/{id}     soft delete
    OPTIONS /api/{resource}/{id}     200, empty body

GET precedence on the collection path:
    a category filter (e.g. ?tier=premium) wins over ?search=, which wins
    over a plain paginated list.
"""

from typing import Callable, List, Optional, Type

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel

from kafiza.database import ConnectionManager, get_connection_manager
from kafiza.routes.methods import record_methods
from kafiza.schemas.common import ApiResponse, DeleteResult, ErrorResponse, PaginationParams
from kafiza.services.repository import ResourceKind, ResourceRepository


ERROR_RESPONSES = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
    503: {"description": "Database unavailable", "model": ErrorResponse},
}
NOT_FOUND_RESPONSES = {
    **ERROR_RESPONSES,
    404: {"description": "Record not found or deleted", "model": ErrorResponse},
}


def options_response() -> Response:
    """Answer for OPTIONS requests that are not CORS preflights."""
    return Response(status_code=status.HTTP_200_OK)


def build_resource_router(
    kind: ResourceKind,
    *,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    repository_factory: Callable[[ConnectionManager], ResourceRepository],
    tag: str,
) -> APIRouter:
    """
    Creates the router for one resource kind.

    Args:
        kind: Descriptor of the kind; its collection name is the URL segment
        create_schema: Body model of POST
        update_schema: Body model of PUT (all fields optional)
        repository_factory: Builds the repository from a connection manager
        tag: OpenAPI tag
    """
    router = APIRouter(prefix="/api", tags=[tag])
    response_schema = kind.response_schema
    collection_path = f"/{kind.collection}"
    item_path = f"/{kind.collection}/{{resource_id}}"
    label = kind.label

    def get_repository(
        connections: ConnectionManager = Depends(get_connection_manager),
    ) -> ResourceRepository:
        return repository_factory(connections)

    @router.get(
        collection_path,
        response_model=ApiResponse[List[response_schema]],
        response_model_exclude_none=True,
        responses=ERROR_RESPONSES,
        summary=f"List, search or filter {kind.collection}",
    )
    async def list_resources(
        request: Request,
        page: int = Query(default=1, description="Page number, starting at 1"),
        limit: int = Query(default=10, description="Items per page (1-100)"),
        sort_by: Optional[str] = Query(default=None, alias="sortBy"),
        sort_order: Optional[str] = Query(default=None, alias="sortOrder", description="asc or desc"),
        search: Optional[str] = Query(default=None, description="Case-insensitive text search"),
        repository: ResourceRepository = Depends(get_repository),
    ):
        for attribute in kind.category_filters:
            value = request.query_params.get(attribute)
            if value is not None:
                items = await repository.filter_by(attribute, value)
                return ApiResponse(data=items)

        pagination = PaginationParams(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
        if search is not None and search.strip():
            result = await repository.search(search, pagination)
        else:
            result = await repository.list(pagination)
        return ApiResponse(data=result.items, pagination=result.pagination)

    @router.post(
        collection_path,
        status_code=status.HTTP_201_CREATED,
        response_model=ApiResponse[response_schema],
        response_model_exclude_none=True,
        responses=ERROR_RESPONSES,
        summary=f"Create a {kind.name}",
    )
    async def create_resource(
        body: create_schema,
        repository: ResourceRepository = Depends(get_repository),
    ):
        record = await repository.create(body)
        return ApiResponse(data=record, message=f"{label} created successfully")

    @router.get(
        item_path,
        response_model=ApiResponse[response_schema],
        response_model_exclude_none=True,
        responses=NOT_FOUND_RESPONSES,
        summary=f"Get a {kind.name} by ID",
    )
    async def get_resource(
        resource_id: str,
        repository: ResourceRepository = Depends(get_repository),
    ):
        record = await repository.get_by_id(resource_id)
        return ApiResponse(data=record)

    @router.put(
        item_path,
        response_model=ApiResponse[response_schema],
        response_model_exclude_none=True,
        responses=NOT_FOUND_RESPONSES,
        summary=f"Update a {kind.name}",
        description="Only the fields present in the body are changed; nested objects are merged.",
    )
    async def update_resource(
        resource_id: str,
        body: update_schema,
        repository: ResourceRepository = Depends(get_repository),
    ):
        record = await repository.update(resource_id, body)
        return ApiResponse(data=record, message=f"{label} updated successfully")

    @router.delete(
        item_path,
        response_model=ApiResponse[DeleteResult],
        response_model_exclude_none=True,
        responses=NOT_FOUND_RESPONSES,
        summary=f"Delete a {kind.name}",
        description="Soft delete: the record is marked inactive and hidden from reads.",
    )
    async def delete_resource(
        resource_id: str,
        repository: ResourceRepository = Depends(get_repository),
    ):
        result = await repository.delete(resource_id)
        return ApiResponse(data=result, message=f"{label} deleted successfully")

    router.add_api_route(collection_path, options_response, methods=["OPTIONS"], include_in_schema=False)
    router.add_api_route(item_path, options_response, methods=["OPTIONS"], include_in_schema=False)
    record_methods(router, collection_path, "GET", "POST", "OPTIONS")
    record_methods(router, item_path, "GET", "PUT", "DELETE", "OPTIONS")

    return router
