from clpd.models.entry import (
    ClipboardEntry,
    ContentType,
    entries_from_compressed_string,
    entries_to_compressed_string,
)
from clpd.models.image import ImageData
from clpd.models.content import ClipboardContent, hash_data

__all__ = [
    'ClipboardEntry',
    'ContentType',
    'ImageData',
    'ClipboardContent',
    'hash_data',
    'entries_to_compressed_string',
    'entries_from_compressed_string',
]
