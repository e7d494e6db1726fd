"""ISMS maturity assessment and remediation roadmap engine."""

__version__ = "1.0.0"
