# app/core/security.py

import secrets

from passlib.context import CryptContext

# =====================================================
# PASSWORD HASHING
# =====================================================
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
)

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)

# =====================================================
# SHARED SECRETS
# =====================================================
def shared_secret_matches(supplied: str | None, expected: str) -> bool:
    if not expected or supplied is None:
        return False
    return secrets.compare_digest(supplied.encode(), expected.encode())
