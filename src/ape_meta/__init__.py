__all__ = (
    "ApeParser",
    "parse_file",
    "Config",
    "ParserConfig",
    "Metadata",
    # Decoder pieces
    "AudioHeader",
    "HeaderLayout",
    "decode_header",
    "can_decode",
    "ApeTag",
    "TagItems",
    "TagValue",
    "TextValue",
    "BinaryValue",
    "locate_tag",
    "decode_items",
    "read_tag",
    "Picture",
    "PictureRole",
    "extract_pictures",
    # Sources
    "ByteRangeSource",
    "BytesSource",
    "FileSource",
    # Errors
    "ApeMetaError",
    "ApeReadError",
    "HeaderTooShortError",
    "SourceReadError",
    "TagHeaderError",
    "UnsupportedContainerError",
)

from ape_meta.apetag import (
    ApeTag,
    BinaryValue,
    TagItems,
    TagValue,
    TextValue,
    decode_items,
    locate_tag,
    read_tag,
)
from ape_meta.config import Config, ParserConfig
from ape_meta.errors import (
    ApeMetaError,
    ApeReadError,
    HeaderTooShortError,
    SourceReadError,
    TagHeaderError,
    UnsupportedContainerError,
)
from ape_meta.header import AudioHeader, HeaderLayout, decode_header
from ape_meta.metadata import Metadata
from ape_meta.parser import ApeParser, parse_file
from ape_meta.pictures import Picture, PictureRole, extract_pictures
from ape_meta.reader import ByteRangeSource, BytesSource, FileSource
from ape_meta.signature import can_decode
