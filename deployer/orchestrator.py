"""
Deployment Orchestrator
Deploys NFTmarketplace behind an upgradeable proxy and reports its address
"""

from typing import Optional, TextIO
from web3 import Web3
from web3.exceptions import Web3Exception
from eth_account import Account
from loguru import logger

from blockchain.artifacts import ArtifactResolver
from blockchain.exceptions import DeploymentError
from blockchain.proxy_deployer import ProxyDeployer, read_chain_id
from utils.config import DeployConfig
from utils.manifest import DeploymentManifest


def connect(rpc_url: str) -> Web3:
    """Connect to the JSON-RPC endpoint"""
    w3 = Web3(Web3.HTTPProvider(rpc_url))
    
    if not w3.is_connected():
        raise DeploymentError(f"Failed to connect to network at {rpc_url}")
    
    return w3


class DeploymentOrchestrator:
    """
    Runs the marketplace deployment workflow
    
    Resolve NFTmarketplace, deploy it behind a proxy, wait for confirmation,
    resolve the NFTmarketplaceV2 upgrade target and print the proxy address.
    Any failure propagates to the caller.
    """
    
    def __init__(
        self,
        config: DeployConfig,
        w3: Optional[Web3] = None,
        account=None,
        resolver: Optional[ArtifactResolver] = None,
        deployer: Optional[ProxyDeployer] = None,
        out: Optional[TextIO] = None
    ):
        """
        Initialize Deployment Orchestrator
        
        Args:
            config: Deployment configuration
            w3: Web3 instance (None = connect to config.rpc_url)
            account: Signing account (None = derive from config.private_key)
            resolver: Artifact resolver (None = config.artifacts_dir)
            deployer: Proxy deployer (None = build from the above)
            out: Stream for the result line (None = stdout)
        """
        self.config = config
        self.w3 = w3 if w3 is not None else connect(config.rpc_url)
        self.account = account if account is not None else Account.from_key(config.private_key)
        self.resolver = resolver if resolver is not None else ArtifactResolver(self.w3, config.artifacts_dir)
        
        if deployer is None:
            deployer = ProxyDeployer(
                self.w3,
                self.account,
                self.resolver,
                manifest=DeploymentManifest(config.manifest_dir, read_chain_id(self.w3)),
                confirmation_timeout=config.confirmation_timeout,
                poll_interval=config.poll_interval,
                default_gas_limit=config.default_gas_limit
            )
        
        self.deployer = deployer
        self.out = out
    
    async def run(self):
        """Execute the deployment workflow"""
        self._log_deployer()
        
        # Deploying
        factory = self.resolver.get_contract_factory(self.config.contract_name)
        instance = await self.deployer.deploy_proxy(factory, kind=self.config.proxy_kind)
        await instance.deployed()
        
        # Upgrading
        upgrade_factory = self.resolver.get_contract_factory(self.config.upgrade_contract_name)
        logger.debug(f"Upgrade target resolved: {upgrade_factory.contract_name}")
        
        # Label names the upgrade target; address is the deployed proxy
        print(f"{self.config.upgrade_contract_name} deployed to: {instance.address}", file=self.out)
    
    def _log_deployer(self):
        """Log deployer address and balance"""
        try:
            balance = self.w3.eth.get_balance(self.account.address)
        except (ValueError, OSError, Web3Exception) as e:
            raise DeploymentError(f"Failed to query deployer balance: {e}") from e
        
        logger.info(f"Deploying from: {self.account.address}")
        logger.info(f"Account balance: {self.w3.from_wei(balance, 'ether')} ETH")
