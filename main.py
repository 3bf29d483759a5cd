"""
NFT Marketplace Deployer - Main Entry Point
Deploys NFTmarketplace behind an upgradeable proxy
"""

import asyncio
import sys
from loguru import logger

from deployer.orchestrator import DeploymentOrchestrator
from utils.config import DeployConfig


def configure_logging():
    """Configure log sinks (stdout is reserved for the result line)"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level="INFO"
    )
    logger.add(
        "data/logs/deploy.log",
        rotation="1 day",
        retention="7 days",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
        level="DEBUG"
    )


async def main():
    """Main entry point"""
    config = DeployConfig.from_env()
    orchestrator = DeploymentOrchestrator(config)
    await orchestrator.run()


def run():
    """Console script entry point; errors propagate and exit nonzero"""
    configure_logging()
    asyncio.run(main())


if __name__ == "__main__":
    run()
