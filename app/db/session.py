from app.db.mongo import mongodb


async def get_database():
    """Return the active database connection; fails before the app has connected."""
    if mongodb.db is None:
        raise RuntimeError("MongoDB is not connected")
    return mongodb.db
