import hashlib
import secrets

import attrs


@attrs.define(frozen=True)
class CancelToken:
    """
    Cancellation secret and its digest.

    Only `digest` is stored; `secret` is handed to the volunteer once.
    """

    secret: str
    digest: str

    @classmethod
    def generate(cls) -> 'CancelToken':
        secret = secrets.token_hex(32)
        return cls(secret=secret, digest=cls.hash(secret))

    @staticmethod
    def hash(secret: str) -> str:
        return hashlib.sha256(secret.encode()).hexdigest()
