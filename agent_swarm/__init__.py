"""
Agent Swarm
===========
Orchestration core that runs groups of specialized agents concurrently over
one master task, with per-agent timeout, retry, metrics and best-effort
event logging.
"""

__version__ = "0.1.0"
