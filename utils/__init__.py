"""
Utilities Package
Configuration and deployment record keeping
"""

from .config import DeployConfig
from .manifest import DeploymentManifest

__all__ = ['DeployConfig', 'DeploymentManifest']
