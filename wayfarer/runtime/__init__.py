"""Runtime error classification and escalation."""

from wayfarer.runtime.recovery import ErrorClass, ErrorEscalator, ErrorRecord, classify_error

__all__ = ["ErrorClass", "ErrorEscalator", "ErrorRecord", "classify_error"]
