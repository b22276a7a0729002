"""
app/db/memory.py

Purpose: In-process ledger and flow stores

- Same interface as the MongoDB stores
- Used by the test suite and for STORE_BACKEND=memory local runs
- Mutations hold a lock so each call behaves as one atomic operation
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional


class InMemoryAccountStore:
    
    def __init__(self):
        self.documents: Dict[int, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()
    
    async def find(self, user_id: int) -> Optional[Dict[str, Any]]:
        doc = self.documents.get(user_id)
        return copy.deepcopy(doc) if doc is not None else None
    
    async def insert(self, document: Dict[str, Any]) -> bool:
        async with self._lock:
            if document["_id"] in self.documents:
                return False
            self.documents[document["_id"]] = copy.deepcopy(document)
            return True
    
    async def increment(
        self,
        user_id: int,
        inc: Dict[str, int],
        minimums: Optional[Dict[str, int]] = None
    ) -> Optional[Dict[str, Any]]:
        async with self._lock:
            doc = self.documents.get(user_id)
            if doc is None:
                return None
            for field, minimum in (minimums or {}).items():
                if doc.get(field, 0) < minimum:
                    return None
            for field, delta in inc.items():
                doc[field] = doc.get(field, 0) + delta
            return copy.deepcopy(doc)
    
    async def count(self) -> int:
        return len(self.documents)
    
    async def list_ids(self) -> List[int]:
        return list(self.documents)


class InMemoryFlowStore:
    
    def __init__(self):
        self.documents: Dict[int, Dict[str, Any]] = {}
    
    async def get(self, user_id: int) -> Optional[Dict[str, Any]]:
        doc = self.documents.get(user_id)
        return copy.deepcopy(doc) if doc is not None else None
    
    async def save(self, user_id: int, document: Dict[str, Any]):
        self.documents[user_id] = {**copy.deepcopy(document), "_id": user_id}
    
    async def delete(self, user_id: int):
        self.documents.pop(user_id, None)
