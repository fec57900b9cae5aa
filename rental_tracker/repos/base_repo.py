from sqlalchemy.exc import SQLAlchemyError


class BaseRepo:
    def __init__(self, db):
        self.db = db

    async def db_commit(self):
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def db_rollback(self):
        await self.db.rollback()

    async def db_add_and_flush(self, value):
        try:
            self.db.add(value)
            await self.db.flush()
            return value
        except SQLAlchemyError:
            await self.db.rollback()
            raise
