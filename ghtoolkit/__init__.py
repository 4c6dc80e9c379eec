"""Rate-limit aware GitHub REST API toolkit."""

__version__ = "0.3.0"
