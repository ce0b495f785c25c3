"""
Convergence verification for distributed storage cluster mutations.

Region splits, region moves, table state changes and balancer toggles are
accepted by the cluster long before they are visible everywhere. This
package issues such commands and then polls authoritative cluster state
until the change is observably complete, within a bounded retry budget:

- wait_until: bounded polling returning Converged or TimedOut
- PlacementObserver: region placement from per-server load reports
- SplitVerifier, MoveVerifier, TableStateVerifier, BalancerSwitch
- ConvergenceContext: admin client, status source and budget in one place
- RestStatusClient: status observation over the REST gateway
- SimulatedCluster: in-memory eventually-consistent admin client
"""

from converge_core.budget import RetryBudget
from converge_core.config import ConvergenceSettings
from converge_core.context import ConvergenceContext
from converge_core.errors import (
    AdminRpcError,
    AlreadyInTargetStateError,
    ConvergenceError,
    ConvergenceTimeoutError,
    InvalidTableError,
    TableNotDisabledError,
    TableNotEnabledError,
    TableNotFoundError,
)
from converge_core.move import MoveVerifier
from converge_core.placement import PlacementObserver
from converge_core.poller import Converged, OperationOutcome, TimedOut, wait_until
from converge_core.protocols import ClusterAdminClient, ClusterStatusSource
from converge_core.rest_client import RestStatusClient
from converge_core.simulated import SimulatedCluster
from converge_core.split import SplitVerifier
from converge_core.state import BalancerSwitch, TableStateVerifier
from converge_core.types import (
    ClusterStatus,
    PlacementSnapshot,
    RegionDescriptor,
    RegionLoad,
    ServerDescriptor,
    ServerLoad,
)

__all__ = [
    # Context and budget
    "ConvergenceContext",
    "ConvergenceSettings",
    "RetryBudget",
    # Polling
    "wait_until",
    "Converged",
    "TimedOut",
    "OperationOutcome",
    # Verifiers
    "PlacementObserver",
    "SplitVerifier",
    "MoveVerifier",
    "TableStateVerifier",
    "BalancerSwitch",
    # Clients
    "ClusterAdminClient",
    "ClusterStatusSource",
    "RestStatusClient",
    "SimulatedCluster",
    # Types
    "ClusterStatus",
    "PlacementSnapshot",
    "RegionDescriptor",
    "RegionLoad",
    "ServerDescriptor",
    "ServerLoad",
    # Errors
    "ConvergenceError",
    "ConvergenceTimeoutError",
    "AdminRpcError",
    "AlreadyInTargetStateError",
    "TableNotEnabledError",
    "TableNotDisabledError",
    "TableNotFoundError",
    "InvalidTableError",
]
