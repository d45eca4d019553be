from app import models  # noqa: F401
from app.models.catalog.branch_models import Branch
from app.models.users.user_models import User
from app.core.config import MAIN_STORAGE_BRANCH_ID
from app.core.db import AsyncSessionLocal
from app.core.security import hash_password
from app.utils.get_user import find_user_by_name
from app.utils.ids import new_id
import asyncio
import os

async def create_admin():
    name = os.getenv("ADMIN_NAME", "admin")

    async with AsyncSessionLocal() as session:
        if await find_user_by_name(session, name):
            print(f"User {name!r} already exists")
            return

        if not await session.get(Branch, MAIN_STORAGE_BRANCH_ID):
            session.add(Branch(id=MAIN_STORAGE_BRANCH_ID, name="Main Storage"))

        admin = User(
            id=new_id("USR"),
            name=name,
            name_key=name.lower(),
            password_hash=hash_password(os.getenv("ADMIN_PASSWORD", "admin123")),
            role="admin",
            branch_id=MAIN_STORAGE_BRANCH_ID,
        )
        session.add(admin)
        await session.commit()
        print("Admin user created!")

if __name__ == "__main__":
    asyncio.run(create_admin())
