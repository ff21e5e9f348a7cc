"""Shared pytest fixtures for graphql-usage-reporting tests."""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

import pytest
from graphql import GraphQLResolveInfo, GraphQLSchema, build_schema

from graphql_usage_reporting.context import OperationContext
from graphql_usage_reporting.report import OperationRecord, Report, new_operation_record

TODOS_SDL = """
type Query {
  todos(sortBy: SortBy, condition: TodosCondition): [Todo!]!
  broken: String
  warned: String
}

type Mutation {
  createTodo(input: NewTodo!): Todo!
}

type Todo {
  id: ID!
  text: String!
  done: Boolean!
  user: User!
}

type User {
  id: ID!
  name: String!
}

enum SortBy {
  NAME_ASC
  NAME_DESC
}

enum TodoStatus {
  DONE
  ASSIGNED
}

enum TodosConditionUserStatus {
  AVAILABLE
  BUSY
}

input TodosConditionUser {
  name: String
}

input TodosCondition {
  searchText: String
  statuses: [TodoStatus!]
  userStatus: TodosConditionUserStatus
  user: TodosConditionUser
}

input NewTodo {
  text: String!
  userId: String!
}
"""


class TodoRoot:
    """In-memory root resolvers seeded like a tiny todo app."""

    def __init__(self) -> None:
        john = {"id": "u0", "name": "John"}
        self.users = [john]
        self.todo_items: list[dict[str, Any]] = [
            {"id": "t0", "text": "Buy Milk", "done": True, "user": john},
            {"id": "t1", "text": "Make Pancakes", "done": False, "user": john},
        ]

    async def todos(self, info: GraphQLResolveInfo, **args: Any) -> list[dict[str, Any]]:
        await asyncio.sleep(0)
        return list(self.todo_items)

    async def createTodo(  # noqa: N802
        self, info: GraphQLResolveInfo, input: dict[str, Any]  # noqa: A002
    ) -> dict[str, Any]:
        user = next(u for u in self.users if u["id"] == input["userId"])
        todo = {
            "id": f"t{len(self.todo_items)}",
            "text": input["text"],
            "done": False,
            "user": user,
        }
        self.todo_items.append(todo)
        return todo

    async def broken(self, info: GraphQLResolveInfo) -> str:
        raise ValueError("broken resolver")

    def warned(self, info: GraphQLResolveInfo) -> str:
        if isinstance(info.context, OperationContext):
            info.context.report_error(info.path, ValueError("soft failure"))
        return "ok"


class RecordingSender:
    """SendReport stand-in that keeps every report it receives."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, str, str, Report]] = []
        self.error = error
        self.sent = asyncio.Event()

    @property
    def reports(self) -> list[Report]:
        return [call[3] for call in self.calls]

    async def __call__(self, endpoint: str, target: str, token: str, report: Report) -> None:
        self.calls.append((endpoint, target, token, report))
        self.sent.set()
        if self.error is not None:
            raise self.error


@pytest.fixture
def schema() -> GraphQLSchema:
    return build_schema(TODOS_SDL)


@pytest.fixture
def todo_root() -> TodoRoot:
    return TodoRoot()


@pytest.fixture
def recording_sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def target() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def make_record() -> Any:
    """Factory for open OperationRecords."""

    def _make(
        operation_id: str = "op-1",
        operation: str = "{ todos { id } }",
        operation_name: str | None = None,
        fields: list[str] | None = None,
        started_ns: int = 0,
    ) -> OperationRecord:
        return new_operation_record(
            operation_id,
            operation,
            operation_name,
            fields if fields is not None else ["Query.todos", "Todo.id"],
            timestamp=1_700_000_000_000,
            started_ns=started_ns,
        )

    return _make
