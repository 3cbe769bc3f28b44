"""syncgroup-schema: keep a Data Sync group's schema in line with its hub.

Reconciles the schema registered on a sync group with the freshly
refreshed hub database schema, honoring include/exclude rules, and wraps
that in ``pre``/``post`` deployment phases.

Usage:
    from syncgroup_schema import reconcile_schema, FilterRules
    from syncgroup_schema import run_pre_deployment, run_post_deployment
    from syncgroup_schema import AzureSyncGroupClient, SyncGroupRef
"""

__version__ = "0.1.0"

# Clients
from syncgroup_schema.clients.azure import AzureSyncGroupClient
from syncgroup_schema.clients.base import (
    SYNC_INTERVAL_DISABLED,
    SyncGroupClient,
    SyncGroupRef,
)

# Config
from syncgroup_schema.config.loader import load_sync_config
from syncgroup_schema.config.models import SyncConfig, SyncGroupProfile

# Deployment phases
from syncgroup_schema.deploy.post import PostDeploymentResult, run_post_deployment
from syncgroup_schema.deploy.pre import PreDeploymentResult, run_pre_deployment

# Errors
from syncgroup_schema.errors import (
    ConfigurationError,
    ProfileNotFoundError,
    SchemaRefreshTimeoutError,
    SyncWaitTimeoutError,
)

# Schema
from syncgroup_schema.schema.document import to_schema_document, write_schema_document
from syncgroup_schema.schema.filters import FilterRules, should_include
from syncgroup_schema.schema.models import (
    ColumnDescriptor,
    LiveSchema,
    ReconciliationResult,
    RegisteredSchema,
    TableDescriptor,
)
from syncgroup_schema.schema.reconciler import reconcile_schema

__all__ = [
    # Clients
    "SyncGroupClient",
    "SyncGroupRef",
    "SYNC_INTERVAL_DISABLED",
    "AzureSyncGroupClient",
    # Config
    "load_sync_config",
    "SyncConfig",
    "SyncGroupProfile",
    # Deployment phases
    "run_pre_deployment",
    "run_post_deployment",
    "PreDeploymentResult",
    "PostDeploymentResult",
    # Errors
    "ConfigurationError",
    "ProfileNotFoundError",
    "SchemaRefreshTimeoutError",
    "SyncWaitTimeoutError",
    # Schema
    "reconcile_schema",
    "should_include",
    "FilterRules",
    "ColumnDescriptor",
    "TableDescriptor",
    "RegisteredSchema",
    "LiveSchema",
    "ReconciliationResult",
    "to_schema_document",
    "write_schema_document",
]
