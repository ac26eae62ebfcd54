"""
ai-vitals: probe LLM endpoints and report liveness to Cronitor.
"""

__version__ = "1.2.0"
