"""
base agent - foundation for all scholarimpact agents.

principles:
- single responsibility (one task, one agent)
- composable (the pipeline chains agents)
- traceable (every decision logged with reason)
- fallible (execute() raises typed errors; run() and guarded() turn them into results)
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

from ..core.errors import ScholarImpactError, user_message


class AgentStatus(Enum):
    """status of agent execution."""
    SUCCESS = "success"
    PARTIAL = "partial"  # some data retrieved, some failed
    FAILED = "failed"


@dataclass
class AgentError:
    """structured error from agent execution."""
    code: str  # machine-readable error code
    message: str  # user-facing message, one of ErrorMessages
    recoverable: bool = True
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self):
        return f"[{self.code}] {self.message}"


T = TypeVar('T')


@dataclass
class AgentResult(Generic[T]):
    """
    result from agent execution.

    always returns a result, even on failure.
    check status and errors before using data.
    """
    status: AgentStatus
    data: Optional[T] = None
    errors: List[AgentError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    # execution metadata
    duration_ms: float = 0.0

    # tracing
    trace: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """true if status is SUCCESS or PARTIAL with data."""
        return self.status in (AgentStatus.SUCCESS, AgentStatus.PARTIAL) and self.data is not None

    @property
    def failed(self) -> bool:
        return self.status == AgentStatus.FAILED

    @property
    def message(self) -> Optional[str]:
        """first error message, if any."""
        return self.errors[0].message if self.errors else None

    def add_trace(self, message: str):
        """add trace message for debugging."""
        self.trace.append(f"[{time.strftime('%H:%M:%S')}] {message}")

    def add_warning(self, message: str):
        """add non-fatal warning."""
        self.warnings.append(message)

    def add_error(self, code: str, message: str, recoverable: bool = True, **details):
        """add structured error."""
        self.errors.append(AgentError(
            code=code,
            message=message,
            recoverable=recoverable,
            details=details
        ))


class Agent(ABC):
    """
    base class for all agents.

    subclasses must implement:
    - name: str property
    - execute(): the main logic (async, raises on failure)

    run() wraps execute() with timing, logging and the
    error-to-message mapping. guarded() gives other agent methods the
    same wrapper. warn() inside a guarded call marks the result PARTIAL.

    an agent instance runs one guarded call at a time.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(f"scholarimpact.agents.{self.name}")
        self._warnings: List[str] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """agent name for logging and tracing."""
        pass

    @abstractmethod
    async def execute(self, *args, **kwargs) -> Any:
        """
        the agent's task.
        returns data or raises a ScholarImpactError.
        """
        pass

    async def run(self, *args, **kwargs) -> AgentResult:
        """run execute() through guarded()."""
        return await self.guarded(self.execute, *args, **kwargs)

    async def guarded(
        self,
        step: Callable[..., Awaitable[Any]],
        *args,
        **kwargs
    ) -> AgentResult:
        """
        await step with timing and error handling.
        never raises; failures land in result.errors with a fixed message.
        """
        start = time.time()
        result = AgentResult(status=AgentStatus.SUCCESS)
        self._warnings = []
        step_name = getattr(step, "__name__", "step")

        try:
            self._logger.debug(f"[{self.name}] starting {step_name}")
            result.add_trace(f"{step_name} started")
            result.data = await step(*args, **kwargs)
            result.add_trace(f"{step_name} finished")

        except ScholarImpactError as e:
            result.status = AgentStatus.FAILED
            result.add_error(e.code, user_message(e), detail=e.message)

        except Exception as e:
            self._logger.exception(f"[{self.name}] uncaught exception")
            result.status = AgentStatus.FAILED
            result.add_error(
                "UNCAUGHT_EXCEPTION",
                user_message(e),
                recoverable=False,
                exception_type=type(e).__name__
            )

        for warning in self._warnings:
            result.add_warning(warning)
        if result.warnings and not result.failed:
            result.status = AgentStatus.PARTIAL

        result.duration_ms = (time.time() - start) * 1000

        if result.status == AgentStatus.PARTIAL:
            self._logger.warning(
                f"[{self.name}] partial success in {result.duration_ms:.1f}ms: "
                f"{len(result.warnings)} warnings"
            )
        elif result.ok:
            self._logger.info(f"[{self.name}] completed in {result.duration_ms:.1f}ms")
        else:
            self._logger.error(f"[{self.name}] failed in {result.duration_ms:.1f}ms: {result.errors}")

        return result

    def warn(self, message: str):
        """record a non-fatal problem for the current guarded call."""
        self._warnings.append(message)
        self.log(message, "warning")

    def log(self, message: str, level: str = "info"):
        """log with agent context."""
        getattr(self._logger, level)(f"[{self.name}] {message}")
