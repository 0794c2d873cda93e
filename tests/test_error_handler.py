"""
Tests for error classification and retry handling
"""
import pytest
from unittest.mock import Mock, patch
from valkey.exceptions import ConnectionError as ValkeyConnectionError, ResponseError
from stress_flow.engine.error_handler import (
    ErrorCategory, ErrorContext, ErrorHandler, ErrorSeverity, RetryConfig, get_error_handler
)
from stress_flow.exceptions import (
    DrainIncomplete, FlowDefinitionError, NoEligibleEdge, ResourceNotFound,
    RouteSelectionError, RouteSelectionExhausted, TargetError
)


class TestClassify:
    """Test mapping of exceptions to categories and severities"""

    @pytest.mark.parametrize("exception, category, severity", [
        (ResourceNotFound("r"), ErrorCategory.RESOURCE_BOOKKEEPING, ErrorSeverity.FATAL),
        (NoEligibleEdge("end"), ErrorCategory.CONFIGURATION, ErrorSeverity.FATAL),
        (FlowDefinitionError("bad"), ErrorCategory.CONFIGURATION, ErrorSeverity.FATAL),
        (RouteSelectionExhausted("n", 10), ErrorCategory.ROUTE_SELECTION, ErrorSeverity.HIGH),
        (RouteSelectionError("x"), ErrorCategory.ROUTE_SELECTION, ErrorSeverity.HIGH),
        (DrainIncomplete(5, 2), ErrorCategory.ROUTE_SELECTION, ErrorSeverity.HIGH),
        (TargetError("refused"), ErrorCategory.TARGET, ErrorSeverity.HIGH),
        (ValkeyConnectionError("down"), ErrorCategory.CONNECTION, ErrorSeverity.HIGH),
        (ResponseError("WRONGTYPE"), ErrorCategory.TARGET, ErrorSeverity.HIGH),
        (RuntimeError("boom"), ErrorCategory.UNKNOWN, ErrorSeverity.HIGH),
    ])
    def test_classification(self, exception, category, severity):
        """Test classification"""
        context = ErrorHandler().classify(exception, runner_id="runner-0", state_id="s0")

        assert context.category == category
        assert context.severity == severity
        assert context.exception is exception
        assert context.runner_id == "runner-0"
        assert context.state_id == "s0"
        assert context.message.startswith(type(exception).__name__)


class TestHandleError:
    """Test error recording"""

    def test_fatal_errors_stop(self):
        """Test fatal errors stop"""
        handler = ErrorHandler()

        can_continue = handler.handle_error(handler.classify(ResourceNotFound("r")))

        assert can_continue is False
        assert len(handler.error_history) == 1

    @pytest.mark.parametrize("severity, expected", [
        (ErrorSeverity.LOW, True),
        (ErrorSeverity.MEDIUM, True),
        (ErrorSeverity.HIGH, False),
    ])
    def test_severity_decides(self, severity, expected):
        """Test severity decides"""
        handler = ErrorHandler()
        context = ErrorContext(category=ErrorCategory.TARGET, severity=severity, message="m")

        assert handler.handle_error(context) is expected

    def test_summary(self):
        """Test summary"""
        handler = ErrorHandler()
        handler.handle_error(handler.classify(TargetError("a"), runner_id="runner-1"))
        handler.handle_error(handler.classify(TargetError("b")))
        handler.handle_error(handler.classify(NoEligibleEdge("x")))

        summary = handler.get_error_summary()

        assert summary['total_errors'] == 3
        assert summary['by_category'] == {'target': 2, 'configuration': 1}
        assert summary['by_severity'] == {'high': 2, 'fatal': 1}
        assert summary['recent_errors'][0]['runner_id'] == "runner-1"

        handler.clear_history()

        assert handler.get_error_summary()['total_errors'] == 0


class TestRetryWithBackoff:
    """Test retry_with_backoff"""

    @patch('stress_flow.engine.error_handler.time.sleep')
    def test_success_first_attempt(self, mock_sleep):
        """Test success first attempt"""
        operation = Mock(return_value="ok")

        success, result = ErrorHandler().retry_with_backoff(
            operation, RetryConfig(), ErrorCategory.CONNECTION, value=1
        )

        assert (success, result) == (True, "ok")
        operation.assert_called_once_with(value=1)
        mock_sleep.assert_not_called()

    @patch('stress_flow.engine.error_handler.time.sleep')
    def test_exponential_backoff(self, mock_sleep):
        """Test exponential backoff"""
        operation = Mock(side_effect=[OSError("1"), OSError("2"), "ok"])
        config = RetryConfig(max_attempts=3, initial_delay=1.0, exponential_base=2.0, jitter=False)

        success, result = ErrorHandler().retry_with_backoff(operation, config, ErrorCategory.CONNECTION)

        assert (success, result) == (True, "ok")
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch('stress_flow.engine.error_handler.time.sleep')
    def test_delay_capped(self, mock_sleep):
        """Test delay capped"""
        operation = Mock(side_effect=OSError("down"))
        config = RetryConfig(max_attempts=4, initial_delay=10.0, max_delay=15.0, jitter=False)

        success, result = ErrorHandler().retry_with_backoff(operation, config, ErrorCategory.CONNECTION)

        assert (success, result) == (False, None)
        assert [c.args[0] for c in mock_sleep.call_args_list] == [10.0, 15.0, 15.0]


def test_global_handler_is_shared():
    """Test global handler is shared"""
    assert get_error_handler() is get_error_handler()


def test_import_leaves_root_logging_alone():
    """Test importing the package does not replace the application's log handlers"""
    import subprocess
    import sys

    script = (
        "import logging\n"
        "handler = logging.NullHandler()\n"
        "logging.getLogger().addHandler(handler)\n"
        "import stress_flow\n"
        "assert handler in logging.getLogger().handlers\n"
    )

    result = subprocess.run([sys.executable, "-c", script], capture_output=True, text=True)

    assert result.returncode == 0, result.stderr
