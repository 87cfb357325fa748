"""ProviderContext - Shared state passed to all handlers on every operation.

The host framework owns authentication, so the context carries an already
authenticated Azure client rather than credentials.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config_manager import ProviderConfig
from ..timeout_config import Deadline, OperationTimeouts


@dataclass
class ProviderContext:
    """Shared context passed to all handlers.

    Usage:
        context = ProviderContext(
            compute_client=create_compute_client(config.azure),
            config=config,
        )
        state = handler.read(resource_id, context)

    Attributes:
        compute_client: Authenticated azure.mgmt.compute.ComputeManagementClient
        config: Provider configuration
        timeouts: Per-resource timeout overrides; falls back to config.timeouts
        cancel_event: Set by the caller to abandon in-flight waits
    """

    compute_client: Any
    config: ProviderConfig = field(default_factory=ProviderConfig)
    timeouts: Optional[OperationTimeouts] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def effective_timeouts(self) -> OperationTimeouts:
        return self.timeouts or self.config.timeouts

    def deadline_for(self, operation: str) -> Deadline:
        """Start the deadline for a create, read, update or delete call."""
        return Deadline(self.effective_timeouts().for_operation(operation))
