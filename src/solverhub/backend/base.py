"""GraphQL-over-HTTP client shared by the solver and NFT backends."""

import json
import logging
from decimal import Decimal
from typing import Any, Iterable, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from solverhub.backend.schemas import GraphQLEnvelope
from solverhub.errors import ApplicationError, DecodeError, UpstreamError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def gql_string(value: Any) -> str:
    """Render a value as a quoted GraphQL string literal."""
    return json.dumps(str(value))


def gql_number(value: Decimal) -> str:
    """Render a decimal as a GraphQL float literal."""
    text = format(Decimal(value), "f")
    return text if "." in text else f"{text}.0"


def gql_int_list(values: Iterable[int]) -> str:
    """Render bytes or ints as a GraphQL list literal."""
    return "[" + ",".join(str(int(v)) for v in values) + "]"


class GraphQLClient:
    """Posts `{"query": ...}` documents and unwraps the `{data, errors}` envelope.

    Any non-empty `errors` list is fatal for the call and is raised as
    `error_class` with the backend messages preserved verbatim.
    """

    def __init__(
        self,
        url: str,
        name: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.name = name
        self.timeout = timeout
        self.transport = transport

    async def execute(
        self,
        query: str,
        error_class: Type[ApplicationError] = ApplicationError,
    ) -> Any:
        """Execute a query or mutation document and return its `data`."""
        logger.debug(f"{self.name} request: {query}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.url,
                    json={"query": query},
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error(f"{self.name} request failed: {e}")
            raise UpstreamError(f"error sending request to {self.name}: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise DecodeError(
                f"error parsing {self.name} response (HTTP {response.status_code}): {e}"
            ) from e

        try:
            envelope = GraphQLEnvelope.model_validate(body)
        except SchemaError as e:
            raise DecodeError(f"unexpected {self.name} response: {e}") from e

        if envelope.errors:
            messages = [error.message for error in envelope.errors]
            logger.warning(f"{self.name} GraphQL error: {messages[0]}")
            raise error_class(f"GraphQL error: {messages[0]}", messages)

        if response.status_code >= 400:
            raise UpstreamError(f"{self.name} returned HTTP {response.status_code}")

        return envelope.data

    async def query_field(
        self,
        query: str,
        field: str,
        model: Type[ModelT],
        error_class: Type[ApplicationError] = ApplicationError,
    ) -> ModelT:
        """Execute a query and decode `data[field]` into `model`."""
        data = await self.execute(query, error_class)
        return decode_field(data, field, model, self.name)


def decode_field(data: Any, field: str, model: Type[ModelT], source: str) -> ModelT:
    """Validate `data[field]` against a schema, raising DecodeError on mismatch."""
    if not isinstance(data, dict) or data.get(field) is None:
        raise DecodeError(f"{source} response is missing `{field}`")
    try:
        return model.model_validate(data[field])
    except SchemaError as e:
        raise DecodeError(f"invalid `{field}` in {source} response: {e}") from e


def mutation_result(data: Any, field: str) -> Any:
    """Extract a mutation result.

    Linera services answer mutations with the certificate hash as the bare
    `data` value; other services nest it under the mutation name.
    """
    if isinstance(data, dict):
        return data.get(field, data)
    return data
