"""
app/db/indexes.py

Purpose: Database index management

- Account and flow documents are keyed by _id (unique by default)
- Secondary indexes for admin queries and stale-flow scans
"""

from pymongo import ASCENDING

from app.db.mongo import get_users_collection, get_flows_collection
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        flows = get_flows_collection()
        
        logger.info("Creating database indexes...")
        
        # Newest members / member-since queries
        await users.create_index([("join_date", ASCENDING)], name="join_date_idx")
        logger.debug("Created index on users.join_date")
        
        # Top referrers
        await users.create_index([("referrals", ASCENDING)], name="referrals_idx")
        logger.debug("Created index on users.referrals")
        
        # Abandoned flow scans
        await flows.create_index([("updated_at", ASCENDING)], name="flow_updated_idx")
        logger.debug("Created index on flows.updated_at")
        
        logger.info("✅ Database indexes created")
        
    except Exception as e:
        logger.error(f"Error creating indexes: {str(e)}", exc_info=True)
        raise
