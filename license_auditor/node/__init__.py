"""Node dependency resolution and license collection."""

from license_auditor.node.collector import collect_node_licenses
from license_auditor.node.patterns import match_workspace_pattern
from license_auditor.node.resolver import NodeDependencyResolver, find_dependencies
from license_auditor.node.workspaces import WorkspaceLocator

__all__ = [
    "NodeDependencyResolver",
    "WorkspaceLocator",
    "collect_node_licenses",
    "find_dependencies",
    "match_workspace_pattern",
]
