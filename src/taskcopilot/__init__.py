"""Task Copilot - task prioritization and nudge scheduling engine."""

__version__ = "0.1.0"
