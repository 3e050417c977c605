import sys
import os
import asyncio
from pymongo import ASCENDING, DESCENDING

# Add parent directory to path to import database
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import notifications_collection, tasks_collection, users_collection
from logging_config import get_logger, setup_logging

logger = get_logger("setup_indexes")

async def create_indexes():
    logger.info("Starting index creation")

    # --- Tasks ---
    # Lookups by public id (get/update/delete)
    await tasks_collection.create_index([("id", ASCENDING)], unique=True)
    # Default listing: find({}).sort(created_at: -1)
    await tasks_collection.create_index([("created_at", DESCENDING)])
    # My Tasks: find({assigned_to_id: X}) / find({creator_id: X})
    await tasks_collection.create_index([("assigned_to_id", ASCENDING), ("created_at", DESCENDING)])
    await tasks_collection.create_index([("creator_id", ASCENDING), ("created_at", DESCENDING)])
    # Overdue: find({due_date: {$lt: now}, status: {$ne: Completed}})
    await tasks_collection.create_index([("status", ASCENDING), ("due_date", ASCENDING)])
    logger.info("Task indexes ready")

    # --- Notifications ---
    # List: find({recipient_id: X}).sort(created_at: -1)
    await notifications_collection.create_index([("recipient_id", ASCENDING), ("created_at", DESCENDING)])
    # Unread count / mark-all-read: find({recipient_id: X, is_read: False})
    await notifications_collection.create_index([("recipient_id", ASCENDING), ("is_read", ASCENDING)])
    logger.info("Notification indexes ready")

    # --- Users ---
    await users_collection.create_index([("id", ASCENDING)], unique=True)
    await users_collection.create_index([("email", ASCENDING)], unique=True)
    logger.info("User indexes ready")

if __name__ == "__main__":
    setup_logging()
    asyncio.run(create_indexes())
