"""
In-memory contract store.
"""

from functools import lru_cache
from typing import Any
from uuid import uuid4

import structlog

from clausecloud.models.contract import ContractRecord, utcnow

logger = structlog.get_logger(__name__)

# Fields an update may never touch
_IMMUTABLE_FIELDS = {"id", "created_at", "text"}


class ContractStore:
    """
    Process-lifetime registry of analyzed contracts, keyed by a uuid4 string.

    Operations contain no awaits, so each one is atomic with respect to the
    event loop. Nothing is persisted or evicted.
    """

    def __init__(self):
        self._contracts: dict[str, ContractRecord] = {}

    def add(self, record: ContractRecord | dict[str, Any]) -> str:
        """
        Store a new contract under a freshly generated identifier.

        Any ``id`` on the input is ignored.
        """
        data = record.model_dump() if isinstance(record, ContractRecord) else dict(record)
        contract_id = str(uuid4())
        while contract_id in self._contracts:
            contract_id = str(uuid4())

        now = utcnow()
        data["id"] = contract_id
        data["created_at"] = now
        data.setdefault("upload_date", now)
        data["updated_at"] = None

        contract = ContractRecord.model_validate(data)
        self._contracts[contract_id] = contract
        logger.debug("contract_stored", contract_id=contract_id, filename=contract.filename)
        return contract_id

    def get_by_id(self, contract_id: str) -> ContractRecord | None:
        return self._contracts.get(contract_id)

    def get_all(self) -> list[ContractRecord]:
        """All contracts in insertion order."""
        return list(self._contracts.values())

    def update(self, contract_id: str, updates: dict[str, Any]) -> ContractRecord | None:
        """Merge top-level fields into a stored contract. Returns None if absent."""
        contract = self._contracts.get(contract_id)
        if contract is None:
            return None

        changes = {k: v for k, v in updates.items() if k not in _IMMUTABLE_FIELDS}
        changes["updated_at"] = utcnow()
        updated = ContractRecord.model_validate({**contract.model_dump(), **changes})
        self._contracts[contract_id] = updated
        logger.debug("contract_updated", contract_id=contract_id, fields=sorted(changes))
        return updated

    def delete(self, contract_id: str) -> bool:
        return self._contracts.pop(contract_id, None) is not None

    def search(self, query: str) -> list[ContractRecord]:
        """Case-insensitive substring match over filename, text and analysis."""
        needle = query.lower()
        return [c for c in self._contracts.values() if needle in c.searchable_text()]

    def clear(self) -> None:
        self._contracts.clear()

    def __len__(self) -> int:
        return len(self._contracts)


@lru_cache()
def get_contract_store() -> ContractStore:
    """Get the process-wide contract store."""
    return ContractStore()
