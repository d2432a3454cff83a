"""
Hash and HMAC primitives used by AWS request signers.

SigV4 chains hmac_sha256 to derive its signing key and hex-encodes
hash_sha256 of the payload; SigV2 and S3 use hmac_sha1. hash_md5
produces the value of the Content-MD5 header.
"""

import base64
import hashlib
import hmac
from typing import Union

Content = Union[bytes, str]


def _to_bytes(content: Content) -> bytes:
    if isinstance(content, str):
        return content.encode('utf-8')
    return content


def hmac_sha256(key: bytes, content: Content) -> bytes:
    """
    Compute HMAC-SHA256.

    Args:
        key: Signing key
        content: Message; str is encoded as UTF-8

    Returns:
        32-byte raw digest
    """
    return hmac.new(key, _to_bytes(content), hashlib.sha256).digest()


def hmac_sha1(key: bytes, content: Content) -> bytes:
    """Compute HMAC-SHA1, returning the 20-byte raw digest."""
    return hmac.new(key, _to_bytes(content), hashlib.sha1).digest()


def hash_sha256(content: Content) -> str:
    """Lowercase hex SHA-256 of content."""
    return hashlib.sha256(_to_bytes(content)).hexdigest()


def hash_md5(content: Content) -> str:
    """
    Base64-encoded MD5 of content.

    Used for content integrity headers only.
    """
    digest = hashlib.md5(_to_bytes(content)).digest()
    return base64.b64encode(digest).decode('ascii')
