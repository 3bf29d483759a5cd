"""
Blockchain Interaction Package
Handles artifact resolution, proxy deployment and confirmation tracking
"""

from .artifacts import ArtifactResolver, ContractFactory
from .exceptions import (
    DeployerError,
    ArtifactResolutionError,
    DeploymentError,
    InstanceNotReadyError
)
from .proxy_deployer import ProxyDeployer, DeployedInstance

__all__ = [
    'ArtifactResolver',
    'ContractFactory',
    'ProxyDeployer',
    'DeployedInstance',
    'DeployerError',
    'ArtifactResolutionError',
    'DeploymentError',
    'InstanceNotReadyError'
]
