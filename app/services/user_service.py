"""
app/services/user_service.py

Purpose: User data management

- Lookup by phone (the WhatsApp identity) and by id
- Create registered users at the end of onboarding
"""

from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.config import settings
from app.core.exceptions import PersistenceError
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_users_collection
from app.models.user import build_user_document
from typing import Optional, Dict, Any

logger = get_logger(__name__)

NO_MONGO_ID = {"_id": 0}


async def get_user_by_phone(phone: str) -> Optional[Dict[str, Any]]:
    """
    Retrieves a user by phone number.

    Args:
        phone: E.164 phone number (without the whatsapp: prefix)

    Returns:
        User document or None if not found
    """
    users = get_users_collection()
    return await users.find_one({"phone": phone}, NO_MONGO_ID)


async def get_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    users = get_users_collection()
    return await users.find_one({"id": user_id}, NO_MONGO_ID)


async def create_user(phone: str, name: str, email: Optional[str] = None) -> Dict[str, Any]:
    """
    Persists a new registered user.

    Args:
        phone: E.164 phone number
        name: Display name collected during onboarding
        email: Email collected during onboarding

    Returns:
        The created user document

    Raises:
        PersistenceError: If the phone is already registered or the insert fails
    """
    with LogContext(phone=phone):
        users = get_users_collection()
        user = build_user_document(
            phone=phone,
            name=name,
            email=email,
            company_id=settings.DEFAULT_COMPANY_ID,
        )

        try:
            await users.insert_one(user)
        except DuplicateKeyError as e:
            logger.warning("Phone already registered")
            raise PersistenceError("User already exists for this phone number") from e
        except PyMongoError as e:
            logger.error(f"Failed to create user: {e}", exc_info=True)
            raise PersistenceError("Could not create user") from e

        # insert_one adds the Mongo _id to the dict in place
        user.pop("_id", None)
        logger.info("New user created successfully", extra={"user_id": user["id"]})
        return user
