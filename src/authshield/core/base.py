"""Base class shared by the three defense controls."""

import threading
from typing import Any, Dict, Generic, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel

from authshield.common.clock import Clock, utc_now
from authshield.common.exceptions import StorageError, ValidationError
from authshield.common.logging import get_logger
from authshield.events.schemas import SecurityEvent, SecurityEventType
from authshield.events.sink import EventSink
from authshield.storage.store import StateStore


logger = get_logger(__name__)

ConfigT = TypeVar("ConfigT", bound=BaseModel)
ModelT = TypeVar("ModelT", bound=BaseModel)


class DefenseControl(Generic[ConfigT]):
    """Holds the pieces every control needs.
    
    - an immutable config snapshot, swapped atomically by update_config()
    - the state store (which owns per-key locking)
    - an injectable clock
    - an optional event sink
    """
    
    config_model: Type[ConfigT]
    
    def __init__(
        self,
        config: Optional[ConfigT],
        store: StateStore,
        clock: Optional[Clock] = None,
        event_sink: Optional[EventSink] = None,
    ):
        self._config: ConfigT = config if config is not None else self.config_model()
        self.store = store
        self._clock: Clock = clock or utc_now
        self._event_sink = event_sink
        self._config_lock = threading.Lock()
    
    @property
    def config(self) -> ConfigT:
        return self._config
    
    def get_config(self) -> ConfigT:
        """Current configuration snapshot."""
        return self._config
    
    def update_config(self, **changes: Any) -> ConfigT:
        """Validate and apply a partial configuration update.
        
        Applies to every call made after it returns; stored state is left
        untouched and is re-evaluated against the new values on next read.
        
        Raises:
            ValidationError: If the merged configuration is invalid
        """
        with self._config_lock:
            merged: Dict[str, Any] = {**self._config.model_dump(), **changes}
            try:
                new_config = self.config_model.model_validate(merged)
            except pydantic.ValidationError as e:
                raise ValidationError(
                    f"Invalid {self.config_model.__name__} update",
                    details={"errors": e.errors(include_url=False, include_context=False)},
                ) from e
            self._config = new_config
        
        logger.info(
            f"{self.config_model.__name__} updated: {sorted(changes)}",
            extra={"changes": changes},
        )
        return new_config
    
    def _parse_document(self, model: Type[ModelT], namespace: str, key: str, doc: Dict[str, Any]) -> ModelT:
        """Validate a stored document, treating a malformed one as a store fault."""
        try:
            return model.model_validate(doc)
        except pydantic.ValidationError as e:
            logger.error(
                f"Corrupt {model.__name__} document at {namespace}/{key}",
                extra={"namespace": namespace, "key": key, "error_count": e.error_count()},
            )
            raise StorageError(
                f"Stored {model.__name__} document is corrupt",
                namespace=namespace,
                key=key,
            ) from e
    
    def _now(self):
        return self._clock()
    
    def _emit(self, event_type: SecurityEventType, subject: str, **details: Any) -> None:
        if self._event_sink is None:
            return
        self._event_sink.emit(
            SecurityEvent(
                event_type=event_type,
                timestamp=self._now(),
                subject=subject,
                details=details,
            )
        )
