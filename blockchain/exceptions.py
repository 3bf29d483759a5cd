"""
Deployment Errors
Failures raised while resolving artifacts and deploying contracts
"""


class DeployerError(Exception):
    """Base class for deployment workflow errors"""


class ArtifactResolutionError(DeployerError):
    """Named contract not found, ambiguous, or not deployable"""


class DeploymentError(DeployerError):
    """Transaction rejected, network failure, or confirmation timeout"""


class InstanceNotReadyError(DeployerError):
    """Deployed instance read before its confirmation resolved"""
