"""scout - conversational lookup agent: streams answers, calls search tools, checkpoints each turn."""

__version__ = "0.1.0"
