"""AgentDesk: command routing across specialized agents."""

__version__ = "0.3.0"
