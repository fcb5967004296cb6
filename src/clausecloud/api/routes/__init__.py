"""
API route modules.
"""

from clausecloud.api.routes import chat, contracts, portfolio, settings

__all__ = ["chat", "contracts", "portfolio", "settings"]
