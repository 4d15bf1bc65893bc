"""
Structured exception hierarchy with calculation context for the bonus engine.

All exceptions include:
- correlation_id: Trace errors across a scoring or allocation run
- calculation context: period, pool, rule, weight config, employee
- resolution_hints: Actionable suggestions for common issues
- severity: ERROR, WARNING, RECOVERABLE

Four categories mirror how callers must react:
- CONFIGURATION: fail the whole call, no partial result
- DATA: isolated per employee in batch scoring, fatal for single calls
- BUDGET: fail the allocation, nothing persisted
- VALIDATION: final results failed structural checks and are not committable
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(str, Enum):
    """Error severity levels for triage and alerting"""
    CRITICAL = "critical"
    ERROR = "error"
    RECOVERABLE = "recoverable"  # Retry with corrected input possible
    WARNING = "warning"


class ErrorCategory(str, Enum):
    """Error categories for diagnostics and resolution routing"""
    CONFIGURATION = "configuration"  # Unsupported method, bad ratio sums, missing tiers
    DATA = "data"                    # Missing employee or dimension score
    BUDGET = "budget"                # Non-positive available amount, empty cohort
    VALIDATION = "validation"        # Final results failed structural checks


@dataclass
class CalculationContext:
    """Context attached to every engine error for diagnosis"""

    period: Optional[str] = None
    employee_id: Optional[str] = None
    weight_config_id: Optional[str] = None
    pool_id: Optional[str] = None
    rule_id: Optional[str] = None
    operation: Optional[str] = None

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize context for logging and storage"""
        return {
            k: v for k, v in self.__dict__.items()
            if v is not None and not k.startswith('_')
        }

    def format_summary(self) -> str:
        """Human-readable one-line summary"""
        parts = []
        if self.operation:
            parts.append(f"operation={self.operation}")
        if self.period:
            parts.append(f"period={self.period}")
        if self.employee_id:
            parts.append(f"employee={self.employee_id}")
        if self.pool_id:
            parts.append(f"pool={self.pool_id}")
        if self.rule_id:
            parts.append(f"rule={self.rule_id}")
        parts.append(f"correlation_id={self.correlation_id}")
        return " | ".join(parts)


@dataclass
class ResolutionHint:
    """Actionable resolution guidance for common error patterns"""

    title: str
    description: str
    steps: List[str]


class BonusEngineError(Exception):
    """
    Base exception for the bonus engine with structured context.

    Every error raised by scoring or allocation inherits from this class so
    callers can branch on ``category`` instead of concrete types.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[CalculationContext] = None,
        category: ErrorCategory = ErrorCategory.DATA,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        resolution_hints: Optional[List[ResolutionHint]] = None,
        original_exception: Optional[Exception] = None,
        **kwargs
    ):
        super().__init__(message)
        self.message = message
        self.context = context or CalculationContext()
        self.category = category
        self.severity = severity
        self.resolution_hints = resolution_hints or []
        self.original_exception = original_exception
        self.additional_data = kwargs

    def format_diagnostic_message(self) -> str:
        """
        Format diagnostic message for logs and CLI display.

        Returns multi-line formatted error with the message, severity,
        calculation context, resolution hints and the original exception.
        """
        lines = [
            f"{'='*72}",
            f"ERROR: {self.message}",
            f"Severity: {self.severity.value.upper()} | Category: {self.category.value}",
            f"{'='*72}",
            "",
            "CALCULATION CONTEXT:",
        ]

        for key, value in self.context.to_dict().items():
            if key == 'metadata' and isinstance(value, dict):
                for meta_key, meta_value in value.items():
                    lines.append(f"  {meta_key}: {meta_value}")
            else:
                lines.append(f"  {key}: {value}")

        if self.resolution_hints:
            lines.append("")
            lines.append("RESOLUTION HINTS:")
            for i, hint in enumerate(self.resolution_hints, 1):
                lines.append(f"\n{i}. {hint.title}")
                lines.append(f"   {hint.description}")
                for step in hint.steps:
                    lines.append(f"     - {step}")

        if self.original_exception:
            lines.append("")
            lines.append("ORIGINAL EXCEPTION:")
            lines.append(f"  {type(self.original_exception).__name__}: {self.original_exception}")

        lines.append("")
        lines.append(f"{'='*72}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for structured logging and batch error entries"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.context.to_dict(),
            "resolution_hints": [
                {"title": hint.title, "description": hint.description, "steps": hint.steps}
                for hint in self.resolution_hints
            ],
            "original_exception": str(self.original_exception) if self.original_exception else None,
            **self.additional_data
        }


# Configuration Errors
class ConfigurationError(BonusEngineError):
    """Configuration errors fail the whole scoring or allocation call"""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)


class UnsupportedMethodError(ConfigurationError):
    """A method name has no registered strategy"""
    def __init__(self, kind: str, method: Any, supported: Optional[List[str]] = None, **kwargs):
        message = f"Unsupported {kind}: {method!r}"
        if supported:
            message = f"{message} (supported: {', '.join(supported)})"
        self.kind = kind
        self.method = method
        super().__init__(message, severity=ErrorSeverity.ERROR, **kwargs)


class InvalidConfigurationError(ConfigurationError):
    """Configuration record failed validation"""
    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        violations: Optional[List[str]] = None,
        **kwargs
    ):
        if config_path:
            message = f"{message} (config_path: {config_path})"
        self.violations = list(violations or [])
        if self.violations:
            message = f"{message}: {'; '.join(self.violations)}"
        super().__init__(message, severity=ErrorSeverity.ERROR, **kwargs)


class MissingTierConfigError(ConfigurationError):
    """tier_based or hybrid allocation requested without any tiers"""
    def __init__(self, rule_id: Optional[str] = None, **kwargs):
        message = "Tier-based and hybrid allocation require a non-empty tier_config"
        if rule_id:
            message = f"{message} (rule: {rule_id})"
        if "resolution_hints" not in kwargs:
            kwargs["resolution_hints"] = [
                ResolutionHint(
                    title="Add Tier Configuration",
                    description="Each tier needs a unique name, a min_score and a ratio",
                    steps=[
                        "Add tier_config entries to the allocation rule",
                        "Make tier ratios sum to 1.0",
                        "Validate the rule: bonus-engine validate <dataset>",
                    ],
                )
            ]
        super().__init__(message, severity=ErrorSeverity.ERROR, **kwargs)


class ConfigurationNotFoundError(ConfigurationError):
    """Pool, rule or weight config id not present in the configuration store"""
    def __init__(self, kind: str, record_id: str, **kwargs):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}", **kwargs)


# Data Errors
class DataError(BonusEngineError):
    """Per-employee data problems"""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.DATA, **kwargs)


class EmployeeNotFoundError(DataError):
    """Employee id is unknown to the directory"""
    def __init__(self, employee_id: str, **kwargs):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}", severity=ErrorSeverity.ERROR, **kwargs)


class MissingDimensionScoreError(DataError):
    """A raw dimension score is missing or not numeric"""
    def __init__(self, employee_id: str, dimension: str, period: Optional[str] = None, **kwargs):
        message = f"Missing {dimension} score for employee {employee_id}"
        if period:
            message = f"{message} in period {period}"
        self.employee_id = employee_id
        self.dimension = dimension
        super().__init__(message, severity=ErrorSeverity.RECOVERABLE, **kwargs)


# Budget Errors
class BudgetError(BonusEngineError):
    """Allocation cannot proceed with the available money or cohort"""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.BUDGET, **kwargs)


class InsufficientBudgetError(BudgetError):
    """Available amount after reserve is zero or negative"""
    def __init__(self, available_amount: float, **kwargs):
        self.available_amount = available_amount
        if "resolution_hints" not in kwargs:
            kwargs["resolution_hints"] = [
                ResolutionHint(
                    title="Check Pool and Reserve",
                    description="available = total_amount x (1 - reserve_ratio) must be positive",
                    steps=[
                        "Confirm the pool total_amount is positive",
                        "Lower the rule reserve_ratio below 1.0",
                    ],
                )
            ]
        super().__init__(
            f"Available allocation amount must be positive (got {available_amount:.2f})",
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class EmptyEligibleSetError(BudgetError):
    """No employee passed eligibility for the rule"""
    def __init__(self, period: Optional[str] = None, **kwargs):
        message = "No eligible employees for allocation"
        if period:
            message = f"{message} in period {period}"
        super().__init__(message, severity=ErrorSeverity.ERROR, **kwargs)


# Validation Errors
class AllocationValidationError(BonusEngineError):
    """Final allocation results failed validation and cannot be committed"""
    def __init__(self, violations: List[str], **kwargs):
        self.violations = list(violations)
        preview = "; ".join(self.violations[:5])
        if len(self.violations) > 5:
            preview = f"{preview}; ... ({len(self.violations)} total)"
        super().__init__(
            f"Allocation results failed validation: {preview}",
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )
