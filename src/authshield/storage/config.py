"""State store configuration and initialization.

Factory for the state store backing all three controls.

Environment variables:
- AUTHSHIELD_STORAGE_TYPE: "file" (default), "memory", or "dynamodb"
- AUTHSHIELD_STATE_DIR: directory for file storage
- AUTHSHIELD_DYNAMODB_TABLE: DynamoDB table for dynamodb storage
- AWS_DEFAULT_REGION / AWS_PROFILE
"""

from typing import Optional

from authshield.common.config import Config, StorageType, get_config
from authshield.common.logging import get_logger
from authshield.storage.store import FileStateStore, InMemoryStateStore, StateStore


logger = get_logger(__name__)


def create_state_store(
    storage_type: Optional[StorageType] = None,
    config: Optional[Config] = None,
) -> StateStore:
    """Factory method to create the state store from configuration.
    
    Args:
        storage_type: Override for the configured backend
        config: Settings to read; the global config if not provided
        
    Returns:
        Configured StateStore instance
    """
    config = config or get_config()
    storage_type = StorageType(storage_type or config.storage_type)
    
    if storage_type == StorageType.MEMORY:
        logger.info("Using in-memory state store")
        return InMemoryStateStore()
    
    if storage_type == StorageType.FILE:
        logger.info(f"Using file state store at {config.state_dir}")
        return FileStateStore(state_dir=str(config.state_dir))
    
    if storage_type == StorageType.DYNAMODB:
        from authshield.storage.dynamodb_store import DynamoDBStateStore
        
        return DynamoDBStateStore(
            table_name=config.dynamodb_table,
            region=config.aws_region,
            aws_profile=config.aws_profile,
        )
    
    raise ValueError(f"Unknown storage type: {storage_type}")
