"""
ClauseCloud: contract review assistant.

Upload or paste a contract, get an LLM-produced risk analysis checked against
the company's red lines, then chat about it or compare it with other contracts.
"""

__version__ = "0.1.0"
__author__ = "ClauseCloud Team"

from clausecloud.config import get_settings

__all__ = ["get_settings", "__version__"]
