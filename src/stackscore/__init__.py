"""StackScore: repository tech-stack detection and LLM code review scoring."""

__version__ = "0.1.0"
