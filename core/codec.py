"""
URL-safe base64 helpers for VAPID application server keys.
"""
import base64
import binascii


def url_base64_to_bytes(base64_string: str) -> bytes:
    """
    Decode a URL-safe base64 string (padding optional) into raw bytes.

    The string is re-padded to a multiple of 4 characters and translated to the
    standard alphabet before decoding. A length with remainder 1 can never be
    produced by an encoder and is rejected.
    """
    base64_string = base64_string.strip()
    if len(base64_string) % 4 == 1:
        raise ValueError(f"Invalid base64url length: {len(base64_string)}")

    padding = "=" * ((4 - len(base64_string) % 4) % 4)
    standard = (base64_string + padding).replace("-", "+").replace("_", "/")
    try:
        return base64.b64decode(standard, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64url string: {e}") from e


def bytes_to_url_base64(data: bytes) -> str:
    """Encode raw bytes as unpadded URL-safe base64 (the browser's key format)."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")
