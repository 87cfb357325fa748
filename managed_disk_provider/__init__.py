"""Azure managed disk resource handler for an infrastructure-as-code provider."""

__version__ = "0.1.0"
