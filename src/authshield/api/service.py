"""Defense Service - wires the three controls for the API layer.

Builds one state store, one event sink and the three controls from the
environment settings and the YAML defense policy. Tests and embedders may
inject any of these instead.
"""

from typing import Optional

from authshield.common.clock import Clock
from authshield.common.config import Config, DefensePolicy, get_config, load_policy
from authshield.common.logging import get_logger
from authshield.controls.backoff import BackoffController
from authshield.controls.risk import LoginRiskAnalyzer
from authshield.controls.sessions import SessionRegistry
from authshield.events.sink import EventSink, create_event_sink
from authshield.orchestration import AuthenticationFlow
from authshield.storage import StateStore, create_state_store


logger = get_logger(__name__)


class DefenseService:
    """Owns the controls for one deployment.
    
    Attributes:
        backoff: Backoff/Lockout Controller
        risk: Login Risk Analyzer
        sessions: Concurrent Session Registry
        flow: AuthenticationFlow over the three
    """
    
    def __init__(
        self,
        config: Optional[Config] = None,
        policy: Optional[DefensePolicy] = None,
        store: Optional[StateStore] = None,
        event_sink: Optional[EventSink] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or get_config()
        self.policy = policy or load_policy(self.config.policy_file)
        self.store = store or create_state_store(config=self.config)
        self.event_sink = event_sink or create_event_sink(self.config.event_log_path)
        
        self.backoff = BackoffController(self.policy.delay, self.store, clock, self.event_sink)
        self.risk = LoginRiskAnalyzer(self.policy.alerts, self.store, clock, self.event_sink)
        self.sessions = SessionRegistry(self.policy.sessions, self.store, clock, self.event_sink)
        self.flow = AuthenticationFlow(self.backoff, self.risk, self.sessions)
        
        logger.info(
            f"DefenseService initialized (policy {self.policy.version}, "
            f"store {type(self.store).__name__})"
        )
    
    def is_ready(self) -> bool:
        return self.store.health_check()
    
    def shutdown(self) -> None:
        logger.info("DefenseService shutdown complete")
