"""Pay period and pay run generation engine for shift-scheduled staff."""

__version__ = "0.1.0"
