"""
Deployment Configuration
Explicit network, signing and path settings for the deployment workflow
"""

import os
from typing import Optional
from dotenv import load_dotenv


PROXY_KINDS = ('transparent', 'uups')


class DeployConfig:
    """
    Settings passed explicitly to the deployment workflow
    
    Network and signing configuration is read once at the entry point
    (from_env) and handed down, never looked up inside the workflow.
    """
    
    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        artifacts_dir: str = 'artifacts',
        manifest_dir: str = 'deployments',
        contract_name: str = 'NFTmarketplace',
        upgrade_contract_name: str = 'NFTmarketplaceV2',
        proxy_kind: str = 'transparent',
        confirmation_timeout: Optional[float] = None,
        poll_interval: float = 1.0,
        default_gas_limit: int = 6000000
    ):
        """
        Initialize Deployment Configuration
        
        Args:
            rpc_url: JSON-RPC endpoint of the target chain
            private_key: Deployer signing key
            artifacts_dir: Root of the compiled artifacts tree
            manifest_dir: Directory for deployment manifests
            contract_name: Contract deployed behind the proxy
            upgrade_contract_name: Upgrade target resolved after deployment
            proxy_kind: 'transparent' or 'uups'
            confirmation_timeout: Seconds to wait for a receipt (None = forever)
            poll_interval: Seconds between receipt polls
            default_gas_limit: Gas limit used when estimation fails
        """
        if not rpc_url or not private_key:
            raise ValueError("RPC_URL and DEPLOYER_PRIVATE_KEY must be set")
        
        if proxy_kind not in PROXY_KINDS:
            raise ValueError(f"Unknown proxy kind: {proxy_kind} (expected one of {', '.join(PROXY_KINDS)})")
        
        if confirmation_timeout is not None and confirmation_timeout <= 0:
            raise ValueError("confirmation_timeout must be positive")
        
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        
        self.rpc_url = rpc_url
        self.private_key = private_key
        self.artifacts_dir = artifacts_dir
        self.manifest_dir = manifest_dir
        self.contract_name = contract_name
        self.upgrade_contract_name = upgrade_contract_name
        self.proxy_kind = proxy_kind
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.default_gas_limit = default_gas_limit
    
    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'DeployConfig':
        """
        Build configuration from environment (.env supported)
        
        Args:
            env_file: Explicit .env path (None = search from cwd)
            
        Returns:
            DeployConfig
        """
        load_dotenv(env_file)
        
        timeout = os.getenv('CONFIRMATION_TIMEOUT')
        
        return cls(
            rpc_url=os.getenv('RPC_URL'),
            private_key=os.getenv('DEPLOYER_PRIVATE_KEY'),
            artifacts_dir=os.getenv('ARTIFACTS_DIR', 'artifacts'),
            manifest_dir=os.getenv('MANIFEST_DIR', 'deployments'),
            proxy_kind=os.getenv('PROXY_KIND', 'transparent'),
            confirmation_timeout=_parse_float('CONFIRMATION_TIMEOUT', timeout) if timeout else None,
            poll_interval=_parse_float('POLL_INTERVAL', os.getenv('POLL_INTERVAL', '1.0'))
        )
    
    def __repr__(self):
        return (
            f"DeployConfig(rpc_url={self.rpc_url!r}, artifacts_dir={self.artifacts_dir!r}, "
            f"contract_name={self.contract_name!r}, proxy_kind={self.proxy_kind!r})"
        )


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None
