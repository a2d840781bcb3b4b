"""
Password hashing utilities using bcrypt
"""

import bcrypt

BCRYPT_ROUNDS = 10


class PasswordHasher:
    """Simple password hashing utility"""

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash a password using bcrypt (cost factor 10).

        Args:
            password: Plain text password

        Returns:
            Hashed password as string
        """
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        A stored value that is not a bcrypt hash never matches.

        Args:
            password: Plain text password
            hashed_password: Previously hashed password

        Returns:
            True if password matches, False otherwise
        """
        if not password or not hashed_password:
            return False
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"), hashed_password.encode("utf-8")
            )
        except ValueError:
            return False
