"""
Pydantic response types for the cluster REST gateway.

These are API response types for external data validation. Internal types
(ClusterStatus, RegionDescriptor, etc.) are dataclasses in converge_core.types.

Notes:
- Region names in /status/cluster are base64-encoded raw bytes
- Live nodes are named "host:port"; the start code is a separate field
- Unknown fields are ignored so newer gateways still parse
"""

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# /status/cluster
# =============================================================================
# Response structure:
# {"regions": 2, "LiveNodes": [{"name": "rs1:16020", "startCode": 1, "Region": [...]}]}


class RestRegionLoad(BaseModel):
    """
    One region entry inside a live node.

    name is base64 of the region name bytes.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    stores: int = 0
    storefiles: int = 0
    memstore_size_mb: int = Field(default=0, alias="memstoreSizeMB")
    read_requests: int = Field(default=0, alias="readRequestsCount")
    write_requests: int = Field(default=0, alias="writeRequestsCount")


class RestLiveNode(BaseModel):
    """A live region server and the regions it reports."""

    model_config = ConfigDict(populate_by_name=True)

    name: str  # "host:port"
    start_code: int = Field(alias="startCode")
    requests: int = 0
    regions: list[RestRegionLoad] = Field(default_factory=list, alias="Region")


class RestClusterStatus(BaseModel):
    """
    Response from GET /status/cluster.

    Example response:
    {
        "regions": 1,
        "averageLoad": 1.0,
        "LiveNodes": [
            {
                "name": "rs1:16020",
                "startCode": 1700000000000,
                "Region": [{"name": "dDEsLDE3MDAwMDAwMDAwMDAuNWMxZC4=", "stores": 1}]
            }
        ],
        "DeadNodes": []
    }
    """

    model_config = ConfigDict(populate_by_name=True)

    regions: int = 0
    average_load: float = Field(default=0.0, alias="averageLoad")
    live_nodes: list[RestLiveNode] = Field(default_factory=list, alias="LiveNodes")
    dead_nodes: list[str] = Field(default_factory=list, alias="DeadNodes")


# =============================================================================
# /{table}/regions
# =============================================================================


class RestTableRegion(BaseModel):
    """
    One region of a table as listed by the catalog.

    name is the printable region name, e.g. "t1,m,1700000000000.5c1d...".
    start_key and end_key are base64 of the raw key bytes.
    """

    id: int
    name: str
    location: str = ""
    start_key: str = Field(default="", alias="startKey")
    end_key: str = Field(default="", alias="endKey")

    model_config = ConfigDict(populate_by_name=True)


class RestTableRegions(BaseModel):
    """Response from GET /{table}/regions."""

    name: str
    regions: list[RestTableRegion] = Field(default_factory=list, alias="Region")

    model_config = ConfigDict(populate_by_name=True)
