import secrets
import string

_PUBLIC_ID_ALPHABET = string.ascii_lowercase + string.digits
_PUBLIC_ID_LENGTH = 7


def generate_public_id(kind: str) -> str:
    """Return a shareable id such as ``track_x8f2k9a`` for the given kind."""
    token = "".join(secrets.choice(_PUBLIC_ID_ALPHABET) for _ in range(_PUBLIC_ID_LENGTH))
    return f"{kind}_{token}"

