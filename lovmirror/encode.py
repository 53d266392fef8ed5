# lovmirror/encode.py
import hashlib
from urllib.parse import quote, unquote

# most filesystems cap a single name at 255 bytes
MAX_NAME_BYTES = 255
_KEEP_CHARS = 200


def enc_prefix_segment(prefix: str) -> str:
    return quote(prefix, safe="")


def enc_uri_segment(uri: str) -> str:
    # "/" must be encoded too, otherwise an IRI would turn into nested folders.
    return quote(uri, safe="")


def dec_segment(segment: str) -> str:
    return unquote(segment)


def fit_name(segment: str, key: str, suffix: str = "") -> str:
    """
    `segment + suffix` when it fits in one file name, otherwise a truncated
    segment plus the sha1 of `key`. Shortened names no longer decode back
    to `key`.
    """
    name = segment + suffix
    if len(name.encode("utf-8")) <= MAX_NAME_BYTES:
        return name
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
    return f"{segment[:_KEEP_CHARS]}-{digest}{suffix}"
