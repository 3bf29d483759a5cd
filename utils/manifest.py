"""
Deployment Manifest
Per-chain record of deployed implementations and proxies
"""

import os
import json
from typing import Dict, Optional
from loguru import logger


MANIFEST_VERSION = '1'


class DeploymentManifest:
    """
    JSON manifest of deployments on one chain
    
    Implementations are keyed by creation bytecode hash so an unchanged
    implementation can be reused by later proxy deployments.
    """
    
    def __init__(self, manifest_dir: str, chain_id: int):
        """
        Initialize Deployment Manifest
        
        Args:
            manifest_dir: Directory holding manifest files
            chain_id: Chain the manifest describes
        """
        self.chain_id = chain_id
        self.path = os.path.join(manifest_dir, f"chain-{chain_id}.json")
        self.data = self._load()
        
        logger.debug(
            f"Manifest {self.path}: {len(self.data['implementations'])} implementations, "
            f"{len(self.data['proxies'])} proxies"
        )
    
    def _load(self) -> Dict:
        """Load manifest from disk, or start an empty one"""
        if not os.path.exists(self.path):
            return {
                'manifestVersion': MANIFEST_VERSION,
                'implementations': {},
                'proxies': []
            }
        
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except ValueError as e:
            raise ValueError(f"Corrupt deployment manifest {self.path}: {e}") from e
        
        if not isinstance(data, dict):
            raise ValueError(f"Corrupt deployment manifest {self.path}: expected a JSON object")
        
        data.setdefault('implementations', {})
        data.setdefault('proxies', [])
        return data
    
    def get_implementation(self, bytecode_hash: str) -> Optional[Dict]:
        """Recorded implementation for a bytecode hash, if any"""
        return self.data['implementations'].get(bytecode_hash)
    
    def record_implementation(
        self,
        bytecode_hash: str,
        contract_name: str,
        address: str,
        tx_hash: str
    ):
        """
        Record a deployed implementation contract
        
        Args:
            bytecode_hash: Keccak hash of the creation bytecode
            contract_name: Contract name
            address: Implementation address
            tx_hash: Deployment transaction hash
        """
        self.data['implementations'][bytecode_hash] = {
            'contractName': contract_name,
            'address': address,
            'txHash': tx_hash
        }
        self.save()
    
    def record_proxy(self, address: str, kind: str, implementation: str, tx_hash: str):
        """
        Record a deployed proxy
        
        Args:
            address: Proxy address
            kind: Proxy kind (transparent or uups)
            implementation: Implementation address behind the proxy
            tx_hash: Deployment transaction hash
        """
        self.data['proxies'].append({
            'address': address,
            'kind': kind,
            'implementation': implementation,
            'txHash': tx_hash
        })
        self.save()
    
    def save(self):
        """Write manifest to disk"""
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        
        # Atomic replace; the manifest on disk is always complete
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, 'w') as f:
            json.dump(self.data, f, indent=2)
        os.replace(tmp_path, self.path)
        
        logger.debug(f"Manifest saved: {self.path}")
