"""
In-memory storage for ClauseCloud.

Contracts, chat histories and company settings live for the lifetime of the
process.
"""

from clausecloud.storage.contract_store import ContractStore, get_contract_store
from clausecloud.storage.chat_store import (
    GENERAL_CHAT_KEY,
    PORTFOLIO_CHAT_KEY,
    ChatStore,
    get_chat_store,
)
from clausecloud.storage.settings_store import SettingsStore, get_settings_store

__all__ = [
    "ContractStore",
    "get_contract_store",
    "ChatStore",
    "get_chat_store",
    "GENERAL_CHAT_KEY",
    "PORTFOLIO_CHAT_KEY",
    "SettingsStore",
    "get_settings_store",
]
