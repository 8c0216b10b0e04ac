"""
app/db/indexes.py

Purpose: Database index management

- Enforces one user per phone number
- Keeps the opaque ids unique
- Fast per-user expense listing by date
"""

from pymongo import ASCENDING, DESCENDING

from app.db.mongo import get_users_collection, get_expenses_collection
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        expenses = get_expenses_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # USERS COLLECTION INDEXES
        # ==============================================

        await users.create_index([("id", ASCENDING)], unique=True, name="users_id_unique")
        await users.create_index([("phone", ASCENDING)], unique=True, name="users_phone_key")
        logger.debug("Created unique indexes on users.id and users.phone")

        await users.create_index([("email", ASCENDING)], sparse=True, name="idx_users_email")
        logger.debug("Created index on users.email")

        # ==============================================
        # EXPENSES COLLECTION INDEXES
        # ==============================================

        await expenses.create_index([("id", ASCENDING)], unique=True, name="expenses_id_unique")

        # Listing and period summaries both filter on user_id and sort/range on date
        await expenses.create_index(
            [("user_id", ASCENDING), ("date", DESCENDING)],
            name="expenses_user_date_idx"
        )
        logger.debug("Created compound index on expenses.user_id + date")

        logger.info("✅ All database indexes created")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise
