"""Deployment phases around the schema reconciler.

Usage:
    from syncgroup_schema.deploy import run_pre_deployment, run_post_deployment
"""

from syncgroup_schema.deploy.post import (
    PostDeploymentResult,
    run_post_deployment,
    wait_for_schema_refresh,
)
from syncgroup_schema.deploy.pre import (
    PreDeploymentResult,
    run_pre_deployment,
    wait_for_sync_idle,
)

__all__ = [
    "run_pre_deployment",
    "run_post_deployment",
    "wait_for_sync_idle",
    "wait_for_schema_refresh",
    "PreDeploymentResult",
    "PostDeploymentResult",
]
