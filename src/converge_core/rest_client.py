"""
REST gateway client for cluster status observation.

RestStatusClient implements ClusterStatusSource over the cluster's REST
gateway, so placement can be observed independently of the admin channel
that issues commands:

    ctx = ConvergenceContext(admin=admin, status_source=RestStatusClient(http=http))

RestStatusClient receives an injected httpx.Client with base_url set to the
gateway. All methods are blocking and fail loudly: transport errors and
unexpected status codes are raised as AdminRpcError.
"""

import base64
import binascii
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from converge_core.config import ConvergenceSettings
from converge_core.errors import AdminRpcError, TableNotFoundError
from converge_core.rest_types import RestClusterStatus, RestTableRegions
from converge_core.types import (
    ClusterStatus,
    RegionDescriptor,
    RegionLoad,
    ServerDescriptor,
    ServerLoad,
    TableName,
    make_region,
)

JSON_HEADERS = {"Accept": "application/json"}


def decode_bytes(operation: str, value: str) -> bytes:
    """Decode a base64 field from the gateway, failing loudly on bad input."""
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise AdminRpcError(operation, f"malformed base64 value {value!r}") from e


def parse_server(name: str, start_code: int) -> ServerDescriptor:
    """Build a ServerDescriptor from a "host:port" node name."""
    host, _, port = name.rpartition(":")
    if not host or not port.isdigit():
        raise AdminRpcError("get_cluster_status", f"malformed node name {name!r}")
    return ServerDescriptor(host=host, port=int(port), start_code=start_code)


@dataclass
class RestStatusClient:
    """
    Status source backed by the REST gateway.

    Attributes:
        http: Pre-configured httpx.Client with base_url set to the gateway.

    Example:
        with httpx.Client(base_url="http://hbase-rest:8080") as http:
            client = RestStatusClient(http=http)
            for server in client.get_cluster_status().servers():
                print(server)
    """

    http: httpx.Client

    @classmethod
    def from_settings(cls, settings: ConvergenceSettings | None = None) -> "RestStatusClient":
        """Create a client for the gateway named in settings."""
        settings = settings or ConvergenceSettings()
        return cls(
            http=httpx.Client(
                base_url=settings.rest_url,
                timeout=settings.rest_timeout_seconds,
                headers=JSON_HEADERS,
            )
        )

    def _get(self, operation: str, path: str) -> httpx.Response:
        try:
            return self.http.get(path, headers=JSON_HEADERS)
        except httpx.HTTPError as e:
            raise AdminRpcError(operation, str(e)) from e

    def _check(self, operation: str, response: httpx.Response) -> httpx.Response:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AdminRpcError(operation, f"HTTP {response.status_code}") from e
        return response

    def table_exists(self, table: TableName) -> bool:
        """
        Check table existence via GET /{table}/schema.

        Returns:
            True on 200, False on 404.

        Raises:
            AdminRpcError: On any other status or transport failure.
        """
        response = self._get("table_exists", f"/{quote(table)}/schema")
        if response.status_code == 404:
            return False
        self._check("table_exists", response)
        return True

    def get_cluster_status(self) -> ClusterStatus:
        """
        Fetch live servers and their region loads via GET /status/cluster.

        Raises:
            AdminRpcError: On HTTP errors, malformed node names or bad base64.
            pydantic.ValidationError: On malformed response data.
        """
        response = self._get("get_cluster_status", "/status/cluster")
        data = RestClusterStatus.model_validate(
            self._check("get_cluster_status", response).json()
        )

        loads: dict[ServerDescriptor, ServerLoad] = {}
        for node in data.live_nodes:
            server = parse_server(node.name, node.start_code)
            loads[server] = ServerLoad(
                server=server,
                regions=tuple(
                    RegionLoad(
                        name=decode_bytes("get_cluster_status", region.name),
                        stores=region.stores,
                        storefiles=region.storefiles,
                        memstore_size_mb=region.memstore_size_mb,
                        read_requests=region.read_requests,
                        write_requests=region.write_requests,
                    )
                    for region in node.regions
                ),
            )
        return ClusterStatus(loads=loads)

    def get_table_regions(self, table: TableName) -> list[RegionDescriptor]:
        """
        List the table's regions via GET /{table}/regions.

        Region names are rebuilt from the raw start key and region id; the
        printable name field is lossy for binary keys and is not used.

        Returns:
            RegionDescriptors in catalog order.

        Raises:
            TableNotFoundError: If the gateway returns 404.
            AdminRpcError: On other HTTP errors.
        """
        response = self._get("get_table_regions", f"/{quote(table)}/regions")
        if response.status_code == 404:
            raise TableNotFoundError(table)
        data = RestTableRegions.model_validate(
            self._check("get_table_regions", response).json()
        )

        return [
            make_region(
                table,
                decode_bytes("get_table_regions", region.start_key),
                region.id,
            )
            for region in data.regions
        ]
