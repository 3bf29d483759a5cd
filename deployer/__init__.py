"""
Deployment Orchestration Package
Sequences artifact resolution, proxy deployment and reporting
"""

from .orchestrator import DeploymentOrchestrator, connect

__all__ = ['DeploymentOrchestrator', 'connect']
