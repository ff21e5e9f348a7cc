"""
Usage reporting for a small todo GraphQL API.

Demonstrates:
- Configuring a Tracer from GRAPHQL_USAGE_* environment variables
- Serving a graphql-core schema through a traced FastAPI endpoint
- Flushing pending usage reports on shutdown
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from graphql import build_schema

from graphql_usage_reporting import Tracer, graphql_endpoint

schema = build_schema(
    """
    type Query {
      todos(done: Boolean): [Todo!]!
    }

    type Mutation {
      createTodo(input: NewTodo!): Todo!
    }

    type Todo {
      id: ID!
      text: String!
      done: Boolean!
    }

    input NewTodo {
      text: String!
    }
    """
)


class Root:
    """In-memory resolvers (replace with a real data source)."""

    def __init__(self) -> None:
        self._todos = [
            {"id": "t0", "text": "Buy Milk", "done": True},
            {"id": "t1", "text": "Make Pancakes", "done": False},
        ]

    async def todos(self, info, done=None):
        return [t for t in self._todos if done is None or t["done"] == done]

    async def createTodo(self, info, input):
        todo = {"id": f"t{len(self._todos)}", "text": input["text"], "done": False}
        self._todos.append(todo)
        return todo


# Requires GRAPHQL_USAGE_TARGET and GRAPHQL_USAGE_TOKEN
tracer = Tracer.from_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await tracer.aclose()


app = FastAPI(title="Usage Reporting Example", lifespan=lifespan)
app.add_api_route(
    "/graphql",
    graphql_endpoint(schema, tracer, root_value=Root()),
    methods=["GET", "POST"],
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

    # Test with:
    # curl -X POST -H "Content-Type: application/json" \
    #   -d '{"query": "{ todos { id text } }"}' http://localhost:8000/graphql
