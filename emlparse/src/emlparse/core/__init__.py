"""Core parsing pipeline for emlparse.

What:
  Re-export the stage functions and the data model that make up the parser:
  header parsing, transfer decoding, multipart splitting, part
  classification, attachment filtering and the :func:`parse_message`
  orchestrator.

Why:
  Viewers usually need only :func:`parse_message`, but tests and tools that
  inspect individual stages import them from here rather than from private
  module paths.

Interfaces:
  See ``__all__``.

Invariants:
  - Every exported function is pure with respect to process state; the only
    side effect is writing diagnostics to the supplied logger.
"""

from .encoding import (
    decode_base64,
    decode_content,
    decode_quoted_printable,
    encode_base64,
)
from .headers import (
    decode_encoded_words,
    normalize_address_field,
    parse_header_block,
    split_lines,
)
from .model import (
    Attachment,
    AttachmentCandidate,
    DecodedPart,
    HeaderMap,
    HtmlBody,
    MimePart,
    ParsedEmail,
    PartRecord,
    TextBody,
)
from .multipart import extract_boundary, split_multipart
from .parser import parse_message
from .parts import (
    classify_part,
    decode_part,
    extract_filename,
    filter_attachments,
    parse_mime_part,
)

__all__ = [
    "parse_message",
    "split_lines",
    "parse_header_block",
    "decode_encoded_words",
    "normalize_address_field",
    "decode_content",
    "decode_base64",
    "encode_base64",
    "decode_quoted_printable",
    "extract_boundary",
    "split_multipart",
    "parse_mime_part",
    "classify_part",
    "extract_filename",
    "decode_part",
    "filter_attachments",
    "HeaderMap",
    "MimePart",
    "TextBody",
    "HtmlBody",
    "AttachmentCandidate",
    "DecodedPart",
    "Attachment",
    "PartRecord",
    "ParsedEmail",
]
