"""graphql_endpoint() — factory producing a traced GraphQL FastAPI endpoint."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

from graphql import GraphQLError, GraphQLSchema, OperationType, get_operation_ast, parse
from starlette.requests import Request
from starlette.responses import JSONResponse

from graphql_usage_reporting.execution import execute_traced
from graphql_usage_reporting.tracer import Tracer

ContextFactory = Callable[[Request], Awaitable[Any]]


def _error_response(
    message: str, status_code: int = 400, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        {"data": None, "errors": [{"message": message}]},
        status_code=status_code,
        headers=headers,
    )


def _query_only_over_get(params: dict[str, Any]) -> JSONResponse | None:
    try:
        document = parse(params["query"])
    except GraphQLError:
        # reported by execute_traced
        return None
    operation = get_operation_ast(document, params.get("operationName"))
    if operation is None or operation.operation == OperationType.QUERY:
        return None
    return _error_response(
        f"can only perform a {operation.operation.value} operation from a POST request",
        status_code=405,
        headers={"Allow": "POST"},
    )


async def _read_params(request: Request) -> dict[str, Any] | str:
    """Return the GraphQL request params, or an error message."""
    if request.method == "GET":
        params: dict[str, Any] = dict(request.query_params)
        if "variables" in params:
            try:
                params["variables"] = json.loads(params["variables"])
            except ValueError:
                return "variables must be a JSON object"
    else:
        try:
            params = await request.json()
        except ValueError:
            return "request body must be valid JSON"
    if not isinstance(params, dict):
        return "request body must be a JSON object"

    query = params.get("query")
    if not isinstance(query, str) or not query.strip():
        return "must provide a query string"
    variables = params.get("variables")
    if variables is not None and not isinstance(variables, dict):
        return "variables must be a JSON object"
    operation_name = params.get("operationName")
    if operation_name is not None and not isinstance(operation_name, str):
        return "operationName must be a string"
    return params


def graphql_endpoint(
    schema: GraphQLSchema,
    tracer: Tracer,
    *,
    root_value: Any = None,
    context_factory: ContextFactory | None = None,
) -> Callable[[Request], Awaitable[JSONResponse]]:
    """Return a FastAPI/Starlette endpoint that executes GraphQL requests.

    Mount it with ``app.add_api_route(path, endpoint, methods=["GET", "POST"])``.
    Usage reporting never changes the response returned to the client.
    """

    async def endpoint(request: Request) -> JSONResponse:
        params = await _read_params(request)
        if isinstance(params, str):
            return _error_response(params)
        if request.method == "GET":
            rejected = _query_only_over_get(params)
            if rejected is not None:
                return rejected

        context_value = None
        if context_factory is not None:
            context_value = await context_factory(request)

        result = await execute_traced(
            schema,
            params["query"],
            tracer=tracer,
            variable_values=params.get("variables"),
            operation_name=params.get("operationName"),
            context_value=context_value,
            root_value=root_value,
        )
        payload: dict[str, Any] = {"data": result.data}
        if result.errors:
            payload["errors"] = [error.formatted for error in result.errors]
        return JSONResponse(payload)

    return endpoint
