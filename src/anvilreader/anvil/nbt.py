"""NBT (Named Binary Tag) access for chunk documents.

Documents are parsed with nbtlib. Tags keep the type declared on disk (an
``Int`` is not a ``Long`` even though both are ints), lists carry their
element type as ``subtype`` and array tags are numpy arrays.
"""

import io
import struct
from typing import Any, Optional, Type

import nbtlib
from nbtlib import Compound

# Everything nbtlib lets escape on malformed input. Deeply nested lists
# exhaust the interpreter stack before the parser notices.
PARSE_ERRORS = (RecursionError, KeyError, TypeError, ValueError, EOFError, struct.error)


def parse(data: bytes) -> nbtlib.File:
    """Parse an uncompressed NBT document.

    Args:
        data: Raw NBT bytes

    Returns:
        The root compound (``root_name`` holds the root name)

    Raises:
        One of ``PARSE_ERRORS`` if the document is malformed
    """
    return nbtlib.File.parse(io.BytesIO(data))


def get_field(compound: Compound, name: str, tag_type: Type, subtype: Optional[Type] = None) -> Any:
    """Look up a field by name and declared tag type.

    Missing fields and fields of another type both return None.

    Args:
        compound: Compound to search
        name: Field name
        tag_type: Expected tag class (e.g. ``Int``, ``Compound``, ``List``)
        subtype: For lists, the expected element tag class. Empty lists
            match any subtype.

    Returns:
        The field value or None
    """
    if not isinstance(compound, Compound):
        return None
    value = compound.get(name)
    if not isinstance(value, tag_type):
        return None
    if subtype is not None and len(value) and value.subtype is not subtype:
        return None
    return value
