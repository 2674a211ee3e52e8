"""
Deployment State Machine

Validates transitions of a single deployment run and notifies the
progress callback on each one.
"""

import logging
from typing import Any, Callable, Coroutine, Dict, List, Optional, Set

from .models import DeploymentState, InvalidTransitionError, ProgressEvent


ProgressCallback = Callable[[ProgressEvent], Coroutine[Any, Any, None]]


class DeploymentStateMachine:
    """
    Tracks the state of one deployment run.

    Retries loop back to PROBING_RPC, never to CONNECTING: the wallet
    session persists across attempts once established. RETRYING may enter
    SWITCHING_NETWORK only while the network switch has not yet succeeded.
    """

    TRANSITIONS: Dict[DeploymentState, Set[DeploymentState]] = {
        DeploymentState.IDLE: {
            DeploymentState.CONNECTING,
            DeploymentState.FAILED,
        },
        DeploymentState.CONNECTING: {
            DeploymentState.SWITCHING_NETWORK,
            DeploymentState.FAILED,  # Never retried
        },
        DeploymentState.SWITCHING_NETWORK: {
            DeploymentState.PROBING_RPC,
            DeploymentState.RETRYING,
            DeploymentState.FAILED,
        },
        DeploymentState.PROBING_RPC: {
            DeploymentState.ESTIMATING_GAS,
            DeploymentState.RETRYING,
            DeploymentState.FAILED,  # Includes the balance pre-flight
        },
        DeploymentState.ESTIMATING_GAS: {
            DeploymentState.SUBMITTING,
            DeploymentState.FAILED,  # Cancellation only; estimation itself cannot fail
        },
        DeploymentState.SUBMITTING: {
            DeploymentState.POLLING,
            DeploymentState.RETRYING,
            DeploymentState.FAILED,
        },
        DeploymentState.POLLING: {
            DeploymentState.SUCCEEDED,
            DeploymentState.FAILED,  # Timeout keeps the transaction hash
        },
        DeploymentState.RETRYING: {
            DeploymentState.PROBING_RPC,
            DeploymentState.SWITCHING_NETWORK,
            DeploymentState.FAILED,
        },
        DeploymentState.SUCCEEDED: set(),
        DeploymentState.FAILED: set(),
    }

    def __init__(
        self,
        run_id: str,
        on_progress: Optional[ProgressCallback] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.run_id = run_id
        self.logger = logger or logging.getLogger(__name__)
        self._on_progress = on_progress
        self.current_state = DeploymentState.IDLE
        self.attempt_number = 0
        self.history: List[ProgressEvent] = []

    @property
    def is_terminal(self) -> bool:
        return self.current_state.is_terminal

    def can_transition_to(self, to_state: DeploymentState) -> bool:
        return to_state in self.TRANSITIONS.get(self.current_state, set())

    async def transition_to(self, to_state: DeploymentState) -> ProgressEvent:
        """
        Move to ``to_state`` and notify the progress callback.

        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        from_state = self.current_state
        if not self.can_transition_to(to_state):
            allowed = sorted(s.value for s in self.TRANSITIONS.get(from_state, set()))
            raise InvalidTransitionError(
                from_state=from_state,
                to_state=to_state,
                message=f"Invalid transition from {from_state.value} to {to_state.value}. "
                        f"Allowed: {allowed}",
            )

        self.current_state = to_state
        event = ProgressEvent(state=to_state, attempt_number=self.attempt_number)
        self.history.append(event)

        self.logger.info(
            f"Deployment {self.run_id}: {from_state.value} -> {to_state.value} "
            f"(attempt {self.attempt_number})"
        )

        if self._on_progress:
            try:
                await self._on_progress(event)
            except Exception as e:
                self.logger.error(f"Progress callback error: {e}")

        return event
