"""Defense policy loading.

The three control policies live in one YAML document with a section per
control. Sections that are absent fall back to the schema defaults.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from authshield.common.exceptions import ConfigurationError
from authshield.common.logging import get_logger
from authshield.data.schemas.policy import DelayConfig, LoginAlertConfig, SessionConfig


logger = get_logger(__name__)


class DefensePolicy(BaseModel):
    """In-memory representation of defense_policy.yaml."""
    version: str = Field(default="1.0.0")
    delay: DelayConfig = Field(default_factory=DelayConfig)
    alerts: LoginAlertConfig = Field(default_factory=LoginAlertConfig)
    sessions: SessionConfig = Field(default_factory=SessionConfig)
    
    model_config = {"extra": "forbid"}


def load_policy(policy_file: Optional[Union[str, Path]] = None) -> DefensePolicy:
    """Load and validate the defense policy from YAML.
    
    Args:
        policy_file: Path to the policy YAML. A missing file yields defaults.
        
    Returns:
        Validated DefensePolicy
        
    Raises:
        ConfigurationError: If the file exists but is malformed or invalid
    """
    if policy_file is None:
        return DefensePolicy()
    
    path = Path(policy_file)
    if not path.exists():
        logger.warning(f"Policy file not found at {path}; using default policy")
        return DefensePolicy()
    
    try:
        with open(path, "r") as f:
            raw_config: Dict[str, Any] = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Policy file is not valid YAML: {path}", details={"error": str(e)}
        ) from e
    
    try:
        policy = DefensePolicy.model_validate(raw_config)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Policy file failed validation: {path}",
            details={"errors": e.errors(include_url=False)},
        ) from e
    
    logger.info(f"Loaded defense policy {policy.version} from {path}")
    return policy
