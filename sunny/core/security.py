import bcrypt

# bcrypt hard-limit: 72 bytes
BCRYPT_MAX_BYTES = 72


def password_bytes_ok(pw: str) -> bool:
    return len(pw.encode("utf-8")) <= BCRYPT_MAX_BYTES


def hash_password(pw: str) -> str:
    """
    Hash bcrypt (sel inclus), stocké en str dans users.password_hash.
    """
    return bcrypt.hashpw(pw.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(pw: str, pw_hash: str) -> bool:
    if not pw_hash:
        return False
    try:
        return bcrypt.checkpw(pw.encode("utf-8"), pw_hash.encode("utf-8"))
    except ValueError:
        # hash corrompu / pas un hash bcrypt
        return False
