"""Policy compliance checks over a normalized, language-agnostic symbol model."""

__version__ = "0.1.0"
