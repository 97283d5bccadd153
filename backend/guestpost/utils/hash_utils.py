# guestpost/utils/hash_utils.py
import re
from typing import List, Tuple

from passlib.hash import argon2, bcrypt


def hash_password(password: str) -> str:
    """Hash plain password with Argon2."""
    return argon2.hash(password)


async def verify_and_upgrade_password(user_id, plain_password: str, hashed_password: str, collection) -> bool:
    if not hashed_password:
        return False

    if hashed_password.startswith("$argon2"):
        return argon2.verify(plain_password, hashed_password)

    elif hashed_password.startswith("$2b$") or hashed_password.startswith("$2a$"):
        # Verify old bcrypt
        if bcrypt.verify(plain_password, hashed_password):
            # Auto-upgrade -> store argon2
            new_hash = argon2.hash(plain_password)
            await collection.update_one({"_id": user_id}, {"$set": {"user_pass": new_hash}})
            return True
    return False


def validate_password_strength(password: str) -> Tuple[bool, List[str]]:
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    return not errors, errors
