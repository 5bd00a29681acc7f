"""VosDroits: structured lookups over French public-service websites."""

__version__ = "1.0.0"
