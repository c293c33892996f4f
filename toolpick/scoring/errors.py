# ABOUTME: Error types raised by the scoring core
# ABOUTME: Bad records, unusable scenario config, and bad caller input


class ScoringError(Exception):
    """Base class for every failure the scoring core reports"""


class ValidationError(ScoringError):
    """A tool or scenario record is malformed (missing, unknown or out-of-range attribute)"""


class ConfigurationError(ScoringError):
    """Scenario settings make scoring impossible (e.g. all weights are zero)"""


class InputError(ScoringError):
    """Caller-supplied values are invalid (e.g. submitted before presented)"""
