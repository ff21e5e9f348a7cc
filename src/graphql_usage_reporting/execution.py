"""execute_traced() — runs a graphql-core operation with usage tracing."""

from __future__ import annotations

import logging
from inspect import isawaitable
from typing import Any

from graphql import (
    DocumentNode,
    ExecutionResult,
    FragmentDefinitionNode,
    GraphQLError,
    GraphQLSchema,
    execute,
    get_operation_ast,
    parse,
    validate,
)

from graphql_usage_reporting.context import OperationContext
from graphql_usage_reporting.exceptions import TypeMismatch
from graphql_usage_reporting.tracer import Tracer

logger = logging.getLogger(__name__)


def _fragments(document: DocumentNode) -> dict[str, FragmentDefinitionNode]:
    return {
        definition.name.value: definition
        for definition in document.definitions
        if isinstance(definition, FragmentDefinitionNode)
    }


async def execute_traced(
    schema: GraphQLSchema,
    source: str,
    *,
    tracer: Tracer,
    variable_values: dict[str, Any] | None = None,
    operation_name: str | None = None,
    context_value: Any = None,
    root_value: Any = None,
) -> ExecutionResult:
    """Parse, validate and execute ``source``, reporting its usage to ``tracer``.

    Documents that fail to parse or validate never reach execution and are
    not reported. When ``context_value`` is omitted the OperationContext is
    passed to resolvers as ``info.context``.
    """
    try:
        document = parse(source)
    except GraphQLError as error:
        return ExecutionResult(data=None, errors=[error])

    validation_errors = validate(schema, document)
    if validation_errors:
        return ExecutionResult(data=None, errors=validation_errors)

    operation: OperationContext | None = None
    definition = get_operation_ast(document, operation_name)
    if definition is not None:
        try:
            operation = tracer.start_operation(
                schema=schema,
                operation=definition,
                raw_query=source,
                operation_name=operation_name,
                fragments=_fragments(document),
            )
        except TypeMismatch as exc:
            logger.warning("failed to extract schema coordinates: %s", exc)

    if operation is None:
        result = execute(
            schema,
            document,
            root_value=root_value,
            context_value=context_value,
            variable_values=variable_values,
            operation_name=operation_name,
        )
        if isawaitable(result):
            result = await result
        return result

    try:
        result = execute(
            schema,
            document,
            root_value=root_value,
            context_value=operation if context_value is None else context_value,
            variable_values=variable_values,
            operation_name=operation_name,
            middleware=[tracer.middleware(operation)],
        )
        if isawaitable(result):
            result = await result
    finally:
        # every field has settled once execute() has returned or raised
        await tracer.end_operation(operation)

    collected = operation.collected_errors
    if collected:
        errors = list(result.errors or [])
        errors.extend(
            GraphQLError(str(error), path=list(path) or None, original_error=error)
            for path, error in collected
        )
        result = ExecutionResult(data=result.data, errors=errors, extensions=result.extensions)
    return result
