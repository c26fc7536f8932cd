"""
Identifier utilities

Derives stable, reversible catalog ids from receiver service references
and the picon filename convention used by Enigma2 images.
"""
import base64
import re

BOUQUET_ID_PREFIX = "bouquet_"
META_ID_PREFIX = "enigma2_"

_TOKEN_PATTERN = re.compile(r"[A-Za-z0-9_-]*")


def encode_reference(reference: str) -> str:
    """
    Encode a service reference as unpadded base64url

    Args:
        reference: Raw service reference string

    Returns:
        URL-safe token that decodes back to the same bytes
    """
    return base64.urlsafe_b64encode(reference.encode("utf-8")).decode("ascii").rstrip("=")


def decode_reference(token: str) -> str:
    """
    Reverse encode_reference

    Raises:
        ValueError: If the token is not valid base64url
    """
    if not _TOKEN_PATTERN.fullmatch(token):
        raise ValueError(f"Invalid reference token: {token!r}")

    padded = token + "=" * (-len(token) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (ValueError, UnicodeEncodeError) as e:
        raise ValueError(f"Invalid reference token: {token!r}") from e


def derive_bouquet_id(reference: str) -> str:
    """Catalog id for a bouquet reference"""
    return f"{BOUQUET_ID_PREFIX}{encode_reference(reference)}"


def decode_bouquet_id(bouquet_id: str) -> str:
    """Recover the bouquet reference from a catalog id"""
    if not bouquet_id.startswith(BOUQUET_ID_PREFIX):
        raise ValueError(f"Not a bouquet id: {bouquet_id!r}")
    return decode_reference(bouquet_id[len(BOUQUET_ID_PREFIX):])


def derive_meta_id(bouquet_id: str, service_reference: str) -> str:
    """Catalog item id for a channel inside a bouquet"""
    return f"{META_ID_PREFIX}{bouquet_id}_{encode_reference(service_reference)}"


def picon_filename(service_reference: str) -> str:
    """
    Picon file stem for a service reference

    '1:0:19:283D:3FB:1:C00000:0:0:0:' -> '1_0_19_283D_3FB_1_C00000_0_0_0'
    """
    return service_reference.replace(":", "_").rstrip("_")
