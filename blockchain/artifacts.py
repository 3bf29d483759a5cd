"""
Artifact Resolver
Resolves contract names to compiled Hardhat artifacts and deployable factories
"""

import os
import json
from typing import Dict, List
from web3 import Web3
from loguru import logger

from .exceptions import ArtifactResolutionError


BUILD_INFO_DIR = 'build-info'
LIBRARY_PLACEHOLDER = '__$'


class ContractFactory:
    """
    Compiled contract ready to produce deployment transactions
    """
    
    def __init__(self, w3: Web3, contract_name: str, abi: List[Dict], bytecode: str):
        """
        Initialize Contract Factory
        
        Args:
            w3: Web3 instance
            contract_name: Contract name from the artifact
            abi: Contract ABI
            bytecode: Creation bytecode (0x-prefixed hex)
        """
        self.w3 = w3
        self.contract_name = contract_name
        self.abi = abi
        self.bytecode = bytecode
        self.bytecode_hash = Web3.to_hex(Web3.keccak(hexstr=bytecode))
    
    def contract(self):
        """Web3 contract class for building constructor transactions"""
        return self.w3.eth.contract(abi=self.abi, bytecode=self.bytecode)
    
    def has_function(self, name: str) -> bool:
        """Check whether the ABI declares a function with this name"""
        return any(
            item.get('type') == 'function' and item.get('name') == name
            for item in self.abi
        )
    
    def __repr__(self):
        return f"ContractFactory({self.contract_name!r})"


class ArtifactResolver:
    """
    Looks up compiled contracts in a Hardhat artifacts tree
    
    Artifacts live at <artifacts_dir>/<source path>/<ContractName>.json.
    Bare names are searched across the whole tree; fully qualified names
    (contracts/Foo.sol:Foo) map to a single path.
    """
    
    def __init__(self, w3: Web3, artifacts_dir: str = 'artifacts'):
        """
        Initialize Artifact Resolver
        
        Args:
            w3: Web3 instance
            artifacts_dir: Root of the compiled artifacts tree
        """
        self.w3 = w3
        self.artifacts_dir = artifacts_dir
        
        logger.debug(f"Artifact Resolver using {self.artifacts_dir}")
    
    def find_artifact_path(self, name: str) -> str:
        """
        Locate the artifact file for a contract name
        
        Args:
            name: Bare or fully qualified contract name
            
        Returns:
            Path to the artifact JSON
        """
        if ':' in name:
            source, contract_name = name.rsplit(':', 1)
            path = os.path.join(self.artifacts_dir, source, f"{contract_name}.json")
            
            if not os.path.isfile(path):
                raise ArtifactResolutionError(f"Artifact for contract \"{name}\" not found")
            
            return path
        
        if not os.path.isdir(self.artifacts_dir):
            raise ArtifactResolutionError(
                f"Artifacts directory not found: {self.artifacts_dir} (compile the contracts first)"
            )
        
        filename = f"{name}.json"
        matches = []
        
        for root, dirs, files in os.walk(self.artifacts_dir):
            dirs[:] = sorted(d for d in dirs if d != BUILD_INFO_DIR)
            
            if filename in files:
                matches.append(os.path.join(root, filename))
        
        if not matches:
            raise ArtifactResolutionError(f"Artifact for contract \"{name}\" not found")
        
        if len(matches) > 1:
            candidates = ', '.join(self._qualified_name(path) for path in matches)
            raise ArtifactResolutionError(
                f"There are multiple artifacts for contract \"{name}\", "
                f"use a fully qualified name: {candidates}"
            )
        
        return matches[0]
    
    def load_artifact(self, name: str) -> Dict:
        """
        Read and validate an artifact
        
        Args:
            name: Bare or fully qualified contract name
            
        Returns:
            Parsed artifact dict
        """
        path = self.find_artifact_path(name)
        
        try:
            with open(path, 'r') as f:
                artifact = json.load(f)
        except (OSError, ValueError) as e:
            raise ArtifactResolutionError(f"Unreadable artifact {path}: {e}") from e
        
        if not isinstance(artifact, dict):
            raise ArtifactResolutionError(f"Malformed artifact {path}")
        
        missing = [key for key in ('abi', 'bytecode') if key not in artifact]
        if missing:
            raise ArtifactResolutionError(f"Artifact {path} is missing {', '.join(missing)}")
        
        logger.debug(f"Loaded artifact {path}")
        return artifact
    
    def get_contract_factory(self, name: str) -> ContractFactory:
        """
        Resolve a contract name to a deployable factory
        
        Args:
            name: Bare or fully qualified contract name
            
        Returns:
            ContractFactory for the contract
        """
        artifact = self.load_artifact(name)
        contract_name = artifact.get('contractName', name.rsplit(':', 1)[-1])
        bytecode = artifact['bytecode']
        
        if not bytecode or bytecode == '0x':
            raise ArtifactResolutionError(
                f"Contract {contract_name} is abstract and can't be deployed"
            )
        
        if LIBRARY_PLACEHOLDER in bytecode:
            raise ArtifactResolutionError(
                f"Contract {contract_name} has unlinked library references"
            )
        
        try:
            Web3.to_bytes(hexstr=bytecode)
        except (ValueError, TypeError) as e:
            raise ArtifactResolutionError(
                f"Contract {contract_name} has malformed bytecode: {e}"
            ) from e
        
        logger.info(f"Resolved contract factory: {contract_name}")
        return ContractFactory(self.w3, contract_name, artifact['abi'], bytecode)
    
    def _qualified_name(self, path: str) -> str:
        """Fully qualified name for an artifact path"""
        relative = os.path.relpath(path, self.artifacts_dir)
        source, filename = os.path.split(relative)
        return f"{source.replace(os.sep, '/')}:{filename[:-len('.json')]}"
