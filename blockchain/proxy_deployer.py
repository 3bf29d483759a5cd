"""
Proxy Deployer
Deploys contracts behind upgradeable proxies and tracks their confirmation
"""

import time
import asyncio
from typing import Dict, List, Optional
from web3 import Web3
from web3.exceptions import TransactionIndexingInProgress, TransactionNotFound, Web3Exception
from loguru import logger

from .artifacts import ArtifactResolver, ContractFactory
from .exceptions import DeploymentError, InstanceNotReadyError


DEFAULT_INITIALIZER = 'initialize'
GAS_LIMIT_BUFFER = 1.2  # 20% over estimate

PROXY_ARTIFACTS = {
    'transparent': 'TransparentUpgradeableProxy',
    'uups': 'ERC1967Proxy'
}


def read_chain_id(w3: Web3) -> int:
    """Chain id reported by the node"""
    try:
        return w3.eth.chain_id
    except (ValueError, OSError, Web3Exception) as e:
        raise DeploymentError(f"Failed to read chain id: {e}") from e


def apply_gas_buffer(gas_estimate: int) -> int:
    """Gas limit with safety buffer over the node's estimate"""
    return int(gas_estimate * GAS_LIMIT_BUFFER)


async def wait_for_receipt(
    w3: Web3,
    tx_hash: bytes,
    timeout: Optional[float] = None,
    poll_interval: float = 1.0
) -> Dict:
    """
    Poll until a transaction is mined successfully
    
    Args:
        w3: Web3 instance
        tx_hash: Transaction hash
        timeout: Seconds before giving up (None = wait forever)
        poll_interval: Seconds between polls
        
    Returns:
        Transaction receipt
    """
    started = time.monotonic()
    
    while True:
        try:
            receipt = w3.eth.get_transaction_receipt(tx_hash)
        except (TransactionNotFound, TransactionIndexingInProgress):
            # not mined yet, or the node is still indexing
            receipt = None
        except (ValueError, OSError, Web3Exception) as e:
            raise DeploymentError(f"Error fetching receipt for {Web3.to_hex(tx_hash)}: {e}") from e
        
        if receipt is not None:
            break
        
        if timeout is not None and time.monotonic() - started >= timeout:
            raise DeploymentError(
                f"Timed out after {timeout}s waiting for {Web3.to_hex(tx_hash)}"
            )
        
        await asyncio.sleep(poll_interval)
    
    if receipt['status'] != 1:
        raise DeploymentError(f"Transaction {Web3.to_hex(tx_hash)} reverted")
    
    return receipt


class DeployedInstance:
    """
    Handle to a proxy whose deployment has been submitted
    
    Starts pending; the address is only known once deployed() confirms
    the transaction on-chain.
    """
    
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    
    def __init__(
        self,
        w3: Web3,
        deploy_tx_hash: bytes,
        contract_name: str,
        kind: str,
        implementation: str,
        abi: Optional[List[Dict]] = None,
        manifest=None,
        confirmation_timeout: Optional[float] = None,
        poll_interval: float = 1.0
    ):
        self.w3 = w3
        self.deploy_tx_hash = deploy_tx_hash
        self.contract_name = contract_name
        self.kind = kind
        self.implementation = implementation
        self.abi = abi or []
        self.manifest = manifest
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        
        self.state = self.PENDING
        self.receipt = None
        self._address = None
    
    @property
    def address(self) -> str:
        """Proxy address (only after confirmation)"""
        if self._address is None:
            raise InstanceNotReadyError(
                f"{self.contract_name} proxy is not deployed yet; await deployed() first"
            )
        return self._address
    
    @property
    def is_deployed(self) -> bool:
        return self.state == self.CONFIRMED
    
    async def deployed(self) -> 'DeployedInstance':
        """
        Wait for the proxy deployment to be confirmed
        
        Returns:
            This instance, with address set
        """
        if self.is_deployed:
            return self
        
        logger.info(f"Waiting for {self.contract_name} proxy confirmation...")
        
        receipt = await wait_for_receipt(
            self.w3,
            self.deploy_tx_hash,
            timeout=self.confirmation_timeout,
            poll_interval=self.poll_interval
        )
        
        self.receipt = receipt
        self._address = Web3.to_checksum_address(receipt['contractAddress'])
        self.state = self.CONFIRMED
        
        logger.success(f"{self.contract_name} proxy confirmed at {self._address}")
        logger.debug(f"Proxy gas used: {receipt.get('gasUsed')}")
        
        if self.manifest is not None:
            self.manifest.record_proxy(
                self._address,
                self.kind,
                self.implementation,
                Web3.to_hex(self.deploy_tx_hash)
            )
        
        return self
    
    def contract(self):
        """Web3 contract bound to the proxy with the implementation ABI"""
        return self.w3.eth.contract(address=self.address, abi=self.abi)
    
    def __repr__(self):
        return f"DeployedInstance({self.contract_name!r}, state={self.state!r})"


class ProxyDeployer:
    """
    Deploys an implementation contract and a proxy delegating to it
    
    transparent: TransparentUpgradeableProxy(logic, initialOwner, data)
    uups:        ERC1967Proxy(logic, data)
    """
    
    def __init__(
        self,
        w3: Web3,
        account,
        resolver: ArtifactResolver,
        manifest=None,
        confirmation_timeout: Optional[float] = None,
        poll_interval: float = 1.0,
        default_gas_limit: int = 6000000
    ):
        """
        Initialize Proxy Deployer
        
        Args:
            w3: Web3 instance
            account: eth-account LocalAccount used to sign deployments
            resolver: Artifact resolver for proxy contracts
            manifest: DeploymentManifest (None = no implementation reuse)
            confirmation_timeout: Seconds to wait for receipts (None = forever)
            poll_interval: Seconds between receipt polls
            default_gas_limit: Gas limit when estimation fails
        """
        self.w3 = w3
        self.account = account
        self.resolver = resolver
        self.manifest = manifest
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.default_gas_limit = default_gas_limit
        
        self.chain_id = read_chain_id(w3)
        
        logger.info(f"Proxy Deployer initialized (chain {self.chain_id}, deployer {account.address})")
    
    async def deploy_proxy(
        self,
        factory: ContractFactory,
        args: Optional[List] = None,
        initializer: Optional[str] = DEFAULT_INITIALIZER,
        kind: str = 'transparent'
    ) -> DeployedInstance:
        """
        Deploy a contract behind an upgradeable proxy
        
        Args:
            factory: Implementation contract factory
            args: Initializer arguments
            initializer: Initializer function name (None = no initializer call)
            kind: 'transparent' or 'uups'
            
        Returns:
            Pending DeployedInstance for the proxy
        """
        if kind not in PROXY_ARTIFACTS:
            raise DeploymentError(f"Unsupported proxy kind: {kind}")
        
        args = list(args or [])
        
        # Resolve first so a missing proxy artifact fails before anything is sent
        proxy_factory = self.resolver.get_contract_factory(PROXY_ARTIFACTS[kind])
        init_data = self._encode_initializer(factory, initializer, args)
        
        implementation = await self._deploy_implementation(factory)
        
        if kind == 'transparent':
            proxy_args = [implementation, self.account.address, init_data]
        else:
            proxy_args = [implementation, init_data]
        
        logger.info(f"Deploying {kind} proxy for {factory.contract_name}...")
        tx_hash = self._send_deployment(proxy_factory, proxy_args)
        
        return DeployedInstance(
            self.w3,
            tx_hash,
            factory.contract_name,
            kind,
            implementation,
            abi=factory.abi,
            manifest=self.manifest,
            confirmation_timeout=self.confirmation_timeout,
            poll_interval=self.poll_interval
        )
    
    def _encode_initializer(
        self,
        factory: ContractFactory,
        initializer: Optional[str],
        args: List
    ) -> str:
        """Call data for the proxy's initializer"""
        if initializer is None:
            if args:
                raise DeploymentError("Initializer arguments given but initializer is disabled")
            return '0x'
        
        if not factory.has_function(initializer):
            if initializer == DEFAULT_INITIALIZER and not args:
                return '0x'
            raise DeploymentError(
                f"Contract {factory.contract_name} does not have a function `{initializer}`"
            )
        
        return factory.contract().encode_abi(initializer, args=args)
    
    async def _deploy_implementation(self, factory: ContractFactory) -> str:
        """
        Deploy implementation, or reuse an identical one from the manifest
        
        Returns:
            Implementation address
        """
        if self.manifest is not None:
            cached = self.manifest.get_implementation(factory.bytecode_hash)
            
            if cached and self._has_code(cached['address']):
                logger.info(f"Reusing {factory.contract_name} implementation at {cached['address']}")
                return cached['address']
        
        logger.info(f"Deploying {factory.contract_name} implementation...")
        tx_hash = self._send_deployment(factory, [])
        
        receipt = await wait_for_receipt(
            self.w3,
            tx_hash,
            timeout=self.confirmation_timeout,
            poll_interval=self.poll_interval
        )
        address = Web3.to_checksum_address(receipt['contractAddress'])
        
        logger.success(f"{factory.contract_name} implementation deployed at {address}")
        
        if self.manifest is not None:
            self.manifest.record_implementation(
                factory.bytecode_hash,
                factory.contract_name,
                address,
                Web3.to_hex(tx_hash)
            )
        
        return address
    
    def _has_code(self, address: str) -> bool:
        """Check that a contract still exists at an address"""
        try:
            code = self.w3.eth.get_code(Web3.to_checksum_address(address))
        except (ValueError, OSError, Web3Exception) as e:
            raise DeploymentError(f"Error reading code at {address}: {e}") from e
        return len(code) > 0
    
    def _send_deployment(self, factory: ContractFactory, constructor_args: List) -> bytes:
        """
        Sign and submit a contract creation transaction
        
        Returns:
            Transaction hash
        """
        sender = self.account.address
        constructor = factory.contract().constructor(*constructor_args)
        
        try:
            gas_limit = apply_gas_buffer(constructor.estimate_gas({'from': sender}))
        except OSError as e:
            raise DeploymentError(f"Gas estimation for {factory.contract_name} failed: {e}") from e
        except (ValueError, Web3Exception) as e:
            logger.warning(f"Gas estimation failed for {factory.contract_name}: {e}, using default")
            gas_limit = self.default_gas_limit
        
        try:
            transaction = constructor.build_transaction({
                'from': sender,
                'nonce': self.w3.eth.get_transaction_count(sender, 'pending'),
                'gas': gas_limit,
                'gasPrice': self.w3.eth.gas_price,
                'chainId': self.chain_id
            })
            
            signed_tx = self.account.sign_transaction(transaction)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except (ValueError, OSError, Web3Exception) as e:
            raise DeploymentError(f"Deployment of {factory.contract_name} rejected: {e}") from e
        
        logger.info(f"Transaction sent: {Web3.to_hex(tx_hash)} (gas limit {gas_limit})")
        return tx_hash
