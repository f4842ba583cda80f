"""Azure existence oracle.

Globally unique resource types (``scope: global``) are checked with the
provider's ``checkNameAvailability`` endpoint. Everything else, and any
global check that cannot be made, goes through an Azure Resource Graph
query. Authentication is the caller's concern: the oracle only needs a
callable returning a bearer token for ``https://management.azure.com``.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx

from .exceptions import OracleTimeoutError, OracleUnavailableError
from .models import ExistenceResult, ResourceType

logger = logging.getLogger(__name__)

MANAGEMENT_URL = "https://management.azure.com"
RESOURCE_GRAPH_API_VERSION = "2021-03-01"
DEFAULT_API_VERSION = "2021-04-01"

# checkNameAvailability API version per provider namespace
CHECK_NAME_API_VERSIONS: dict[str, str] = {
    "Microsoft.Storage": "2023-01-01",
    "Microsoft.Web": "2023-01-01",
    "Microsoft.KeyVault": "2023-07-01",
    "Microsoft.ContainerRegistry": "2023-07-01",
    "Microsoft.CognitiveServices": "2023-05-01",
    "Microsoft.Cache": "2023-08-01",
    "Microsoft.DocumentDB": "2023-11-15",
    "Microsoft.ServiceBus": "2022-10-01-preview",
    "Microsoft.EventHub": "2022-10-01-preview",
    "Microsoft.Devices": "2023-06-30",
    "Microsoft.ApiManagement": "2023-05-01-preview",
    "Microsoft.DataFactory": "2018-06-01",
    "Microsoft.Search": "2023-11-01",
    "Microsoft.Communication": "2023-04-01",
    "Microsoft.SignalRService": "2023-02-01",
    "Microsoft.Sql": "2023-08-01-preview",
    "Microsoft.DBforMySQL": "2023-12-30",
    "Microsoft.DBforPostgreSQL": "2023-12-01-preview",
    "Microsoft.DBforMariaDB": "2020-01-01",
}

GLOBAL_CONFLICT_FALLBACK = "Name already exists globally"

TokenProvider = Callable[[], str | Awaitable[str]]


def parse_resource_type(resource: str) -> tuple[str, str]:
    """
    Split a resource string into provider namespace and type name.

    ``"Storage/storageAccounts"`` and ``"Microsoft.Storage/storageAccounts"``
    both give ``("Microsoft.Storage", "storageAccounts")``. Strings without
    a provider part are treated as ``Microsoft.Resources`` types.
    """
    parts = [p for p in resource.split("/") if p]
    if len(parts) >= 2:
        namespace = parts[0] if parts[0].startswith("Microsoft.") else f"Microsoft.{parts[0]}"
        return namespace, parts[1]
    return "Microsoft.Resources", resource


def resource_graph_type(resource: str) -> str:
    """Lower-cased ``namespace/type`` as stored by Resource Graph."""
    namespace, type_name = parse_resource_type(resource)
    return f"{namespace.lower()}/{type_name.lower()}"


def check_name_api_version(namespace: str) -> str:
    return CHECK_NAME_API_VERSIONS.get(namespace, DEFAULT_API_VERSION)


def _kql_quote(value: str) -> str:
    return value.replace("'", "\\'")


def build_resource_graph_query(name: str, resource: str) -> str:
    """Resource Graph query listing resources with this name and type."""
    return (
        f"Resources | where name =~ '{_kql_quote(name)}' "
        f"| where type =~ '{_kql_quote(resource_graph_type(resource))}' "
        "| project id, name, type, resourceGroup"
    )


class AzureExistenceOracle:
    """
    Existence oracle backed by Azure Resource Manager.

    Args:
        token_provider: Returns a bearer token (sync or async callable)
        subscription_ids: Subscriptions to search; the first one is used
            for checkNameAvailability
        timeout_seconds: HTTP timeout per request
        client: Pre-built httpx client (the oracle creates its own otherwise)

    Example:
        async with AzureExistenceOracle(get_token, ["<subscription-id>"]) as oracle:
            result = await oracle.exists("stbillingprod001", storage_type)
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        subscription_ids: Sequence[str] = (),
        *,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
        base_url: str = MANAGEMENT_URL,
    ) -> None:
        self._token_provider = token_provider
        self._subscription_ids = tuple(subscription_ids)
        self._timeout_seconds = timeout_seconds
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "AzureExistenceOracle":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_seconds)
        return self._client

    async def _headers(self) -> dict[str, str]:
        token = self._token_provider()
        if inspect.isawaitable(token):
            token = await token
        return {"Authorization": f"Bearer {token}"}

    async def exists(self, name: str, resource_type: ResourceType) -> ExistenceResult:
        """
        Check whether ``name`` is taken for ``resource_type``.

        Raises:
            OracleTimeoutError: If Azure does not answer in time
            OracleUnavailableError: If Azure cannot be queried
        """
        try:
            if resource_type.is_global_scope:
                logger.info(
                    "Using CheckNameAvailability API for globally unique resource: %s",
                    resource_type.short_name,
                )
                result = await self._check_name_availability(name, resource_type)
            else:
                logger.info(
                    "Using Resource Graph query for scoped resource: %s", resource_type.short_name
                )
                result = await self._query_resource_graph(name, resource_type)
        except httpx.TimeoutException as e:
            raise OracleTimeoutError(
                self._timeout_seconds, e, resource_type=resource_type.short_name, name=name
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise OracleUnavailableError(
                f"Azure existence check failed: {e}",
                e,
                resource_type=resource_type.short_name,
                name=name,
            ) from e

        logger.info(
            "Azure validation completed for %s: exists=%s, scope=%s",
            name,
            result.exists,
            "global" if resource_type.is_global_scope else "scoped",
        )
        return result

    async def _check_name_availability(
        self, name: str, resource_type: ResourceType
    ) -> ExistenceResult:
        if not self._subscription_ids:
            logger.warning(
                "No subscription ID available for CheckNameAvailability API, "
                "falling back to Resource Graph"
            )
            return await self._query_resource_graph(name, resource_type)

        namespace, type_name = parse_resource_type(resource_type.resource or resource_type.short_name)
        url = (
            f"{self._base_url}/subscriptions/{self._subscription_ids[0]}"
            f"/providers/{namespace}/checkNameAvailability"
        )
        try:
            response = await self._get_client().post(
                url,
                params={"api-version": check_name_api_version(namespace)},
                json={"name": name, "type": f"{namespace}/{type_name}"},
                headers=await self._headers(),
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "Error calling CheckNameAvailability API for %s, falling back to Resource Graph: %s",
                name,
                e,
            )
            return await self._query_resource_graph(name, resource_type)

        available = bool(body.get("nameAvailable", False))
        logger.debug(
            "CheckNameAvailability result for %s: available=%s, reason=%s, message=%s",
            name,
            available,
            body.get("reason"),
            body.get("message"),
        )
        if available:
            return ExistenceResult(exists=False)
        return ExistenceResult(
            exists=True,
            conflicting_identifiers=(body.get("message") or GLOBAL_CONFLICT_FALLBACK,),
        )

    async def _query_resource_graph(self, name: str, resource_type: ResourceType) -> ExistenceResult:
        payload: dict[str, Any] = {
            "query": build_resource_graph_query(name, resource_type.resource or resource_type.short_name),
        }
        if self._subscription_ids:
            payload["subscriptions"] = list(self._subscription_ids)

        response = await self._get_client().post(
            f"{self._base_url}/providers/Microsoft.ResourceGraph/resources",
            params={"api-version": RESOURCE_GRAPH_API_VERSION},
            json=payload,
            headers=await self._headers(),
        )
        response.raise_for_status()
        rows = response.json().get("data") or []
        if not isinstance(rows, list):
            raise ValueError(f"Unexpected Resource Graph data format: {type(rows).__name__}")

        ids = tuple(str(row["id"]) for row in rows if isinstance(row, dict) and row.get("id"))
        return ExistenceResult(exists=bool(ids), conflicting_identifiers=ids)
