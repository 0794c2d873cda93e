"""
Error Handler - Classification, history and retry logic for runner failures

Runner failures are never recovered in place: a failed runner stays stopped.
The handler decides how loudly to report a failure, keeps a history for the
run summary, and retries connection-level work against the target.
"""
import time
import random
import logging
from typing import Optional, Callable, Any, Dict, List
from enum import Enum
from dataclasses import dataclass
from valkey.exceptions import ConnectionError as ValkeyConnectionError, ValkeyError
from ..exceptions import (
    DrainIncomplete, FlowDefinitionError, NoEligibleEdge, ResourceNotFound,
    RouteSelectionError, RouteSelectionExhausted, TargetError, UnknownActionError
)

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for errors"""
    LOW = "low"  # Non-critical, can continue
    MEDIUM = "medium"  # Degraded operation
    HIGH = "high"  # Runner stopped
    FATAL = "fatal"  # Engine bug or broken configuration


class ErrorCategory(Enum):
    """Categories of errors for targeted handling"""
    ROUTE_SELECTION = "route_selection"
    RESOURCE_BOOKKEEPING = "resource_bookkeeping"
    CONFIGURATION = "configuration"
    TARGET = "target"
    CONNECTION = "connection"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Context information for an error"""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    exception: Optional[Exception] = None
    runner_id: Optional[str] = None
    state_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class RetryConfig:
    """Configuration for retry behavior"""
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True


class ErrorHandler:
    """
    Centralized error handling for stress runs.

    Provides:
    - Error categorization and severity assessment
    - Retry logic with exponential backoff
    - Error history and summaries
    """

    _CLASSIFICATION = [
        (ResourceNotFound, ErrorCategory.RESOURCE_BOOKKEEPING, ErrorSeverity.FATAL),
        (NoEligibleEdge, ErrorCategory.CONFIGURATION, ErrorSeverity.FATAL),
        (UnknownActionError, ErrorCategory.CONFIGURATION, ErrorSeverity.FATAL),
        (FlowDefinitionError, ErrorCategory.CONFIGURATION, ErrorSeverity.FATAL),
        (RouteSelectionExhausted, ErrorCategory.ROUTE_SELECTION, ErrorSeverity.HIGH),
        (RouteSelectionError, ErrorCategory.ROUTE_SELECTION, ErrorSeverity.HIGH),
        (DrainIncomplete, ErrorCategory.ROUTE_SELECTION, ErrorSeverity.HIGH),
        (TargetError, ErrorCategory.TARGET, ErrorSeverity.HIGH),
        (ValkeyConnectionError, ErrorCategory.CONNECTION, ErrorSeverity.HIGH),
        (ConnectionError, ErrorCategory.CONNECTION, ErrorSeverity.HIGH),
        (ValkeyError, ErrorCategory.TARGET, ErrorSeverity.HIGH),
    ]

    def __init__(self):
        self.error_history: List[ErrorContext] = []

    def classify(self, exception: Exception, runner_id: Optional[str] = None, state_id: Optional[str] = None) -> ErrorContext:
        """Build an error context for an exception raised by a runner"""
        category, severity = ErrorCategory.UNKNOWN, ErrorSeverity.HIGH
        for exception_type, known_category, known_severity in self._CLASSIFICATION:
            if isinstance(exception, exception_type):
                category, severity = known_category, known_severity
                break

        return ErrorContext(
            category=category,
            severity=severity,
            message=f"{type(exception).__name__}: {exception}",
            exception=exception,
            runner_id=runner_id,
            state_id=state_id
        )

    def handle_error(self, error_context: ErrorContext) -> bool:
        """Record an error. Returns True when the run may carry on."""
        self._log_error(error_context)
        self.error_history.append(error_context)

        if error_context.severity == ErrorSeverity.FATAL:
            logger.error(f"Fatal error encountered: {error_context.message}")
            return False

        return error_context.severity in [ErrorSeverity.LOW, ErrorSeverity.MEDIUM]

    def retry_with_backoff(
        self,
        operation: Callable,
        config: RetryConfig,
        error_category: ErrorCategory,
        operation_name: str = "operation",
        **kwargs
    ) -> tuple[bool, Any]:
        """Execute an operation with retry logic and exponential backoff"""
        last_exception = None
        delay = config.initial_delay

        for attempt in range(config.max_attempts):
            try:
                logger.info(f"Executing {operation_name} (attempt {attempt + 1}/{config.max_attempts})")

                result = operation(**kwargs)

                logger.info(f"{operation_name} succeeded on attempt {attempt + 1}")
                return True, result

            except Exception as e:
                last_exception = e
                logger.warning(f"{operation_name} failed on attempt {attempt + 1}: {e}")

                self.error_history.append(ErrorContext(
                    category=error_category,
                    severity=ErrorSeverity.MEDIUM if attempt < config.max_attempts - 1 else ErrorSeverity.HIGH,
                    message=f"{operation_name} failed: {e}",
                    exception=e,
                    metadata={'attempt': attempt + 1, 'max_attempts': config.max_attempts}
                ))

                if attempt < config.max_attempts - 1:
                    backoff_delay = min(
                        delay * (config.exponential_base ** attempt),
                        config.max_delay
                    )

                    if config.jitter:
                        backoff_delay *= (0.5 + random.random())

                    logger.info(f"Retrying in {backoff_delay:.2f} seconds...")
                    time.sleep(backoff_delay)

        logger.error(f"{operation_name} failed after {config.max_attempts} attempts")

        self.error_history.append(ErrorContext(
            category=error_category,
            severity=ErrorSeverity.HIGH,
            message=f"{operation_name} failed after all retry attempts",
            exception=last_exception,
            metadata={'attempts': config.max_attempts}
        ))

        return False, None

    def _log_error(self, error_context: ErrorContext):
        """Log error with appropriate level based on severity"""
        log_message = f"[{error_context.category.value}] {error_context.message}"

        if error_context.runner_id:
            log_message = f"[{error_context.runner_id}] {log_message}"

        if error_context.state_id:
            log_message += f" (state: {error_context.state_id})"

        if error_context.severity == ErrorSeverity.FATAL:
            logger.critical(log_message)
        elif error_context.severity == ErrorSeverity.HIGH:
            logger.error(log_message)
        elif error_context.severity == ErrorSeverity.MEDIUM:
            logger.warning(log_message)
        else:
            logger.info(log_message)

        if error_context.exception and error_context.severity == ErrorSeverity.FATAL:
            logger.error("Traceback of fatal error", exc_info=error_context.exception)

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of all errors encountered"""
        errors_by_category = {}
        errors_by_severity = {}

        for error in self.error_history:
            category = error.category.value
            errors_by_category[category] = errors_by_category.get(category, 0) + 1

            severity = error.severity.value
            errors_by_severity[severity] = errors_by_severity.get(severity, 0) + 1

        return {
            'total_errors': len(self.error_history),
            'by_category': errors_by_category,
            'by_severity': errors_by_severity,
            'recent_errors': [
                {
                    'category': e.category.value,
                    'severity': e.severity.value,
                    'message': e.message,
                    'runner_id': e.runner_id
                }
                for e in self.error_history[-10:]
            ]
        }

    def clear_history(self):
        """Clear error history"""
        self.error_history.clear()
        logger.info("Error history cleared")


# Global error handler instance
_error_handler = None


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance"""
    global _error_handler
    if _error_handler is None:
        _error_handler = ErrorHandler()
    return _error_handler
