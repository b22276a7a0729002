"""
app/db/store.py

Purpose: MongoDB-backed ledger and flow stores

- Every account mutation is one atomic document operation
- Conditional increments implement check-and-mutate without read-then-write
- Flow documents hold at most one active flow per user
"""

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.logging import get_logger

logger = get_logger(__name__)


class MongoAccountStore:
    """Account documents in the `users` collection, keyed by user id."""
    
    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection
    
    async def find(self, user_id: int) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"_id": user_id})
    
    async def insert(self, document: Dict[str, Any]) -> bool:
        """
        Inserts a new account document.
        
        Returns:
            False if a document with the same _id already exists
        """
        try:
            await self.collection.insert_one(document)
            return True
        except DuplicateKeyError:
            logger.info(f"Account {document['_id']} already exists, insert skipped")
            return False
    
    async def increment(
        self,
        user_id: int,
        inc: Dict[str, int],
        minimums: Optional[Dict[str, int]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Atomically increments fields of one account.
        
        Args:
            user_id: Account id
            inc: Field -> delta
            minimums: Field -> value the current field must be >= for the update to apply
        
        Returns:
            The updated document, or None if no document matched
        """
        query: Dict[str, Any] = {"_id": user_id}
        for field, minimum in (minimums or {}).items():
            query[field] = {"$gte": minimum}
        
        return await self.collection.find_one_and_update(
            query,
            {"$inc": inc},
            return_document=ReturnDocument.AFTER
        )
    
    async def count(self) -> int:
        return await self.collection.count_documents({})
    
    async def list_ids(self) -> List[int]:
        cursor = self.collection.find({}, projection={"_id": 1})
        return [doc["_id"] async for doc in cursor]


class MongoFlowStore:
    """Active conversation flows in the `flows` collection, keyed by user id."""
    
    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection
    
    async def get(self, user_id: int) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"_id": user_id})
    
    async def save(self, user_id: int, document: Dict[str, Any]):
        await self.collection.replace_one(
            {"_id": user_id},
            {**document, "_id": user_id},
            upsert=True
        )
    
    async def delete(self, user_id: int):
        await self.collection.delete_one({"_id": user_id})
