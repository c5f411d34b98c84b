"""Immutable data model shared by every parser stage.

What:
  Define the header map, raw MIME part, the tagged part outcomes, the part-tree
  arena records, and the final :class:`ParsedEmail` record.

Why:
  Each stage hands its output to the next without mutation. Freezing the
  dataclasses keeps that contract explicit and lets a parsed record be shared
  across threads without copying.

How:
  Plain frozen dataclasses plus :class:`HeaderMap`, a read-only mapping that
  lowercases keys on lookup. Part outcomes are a closed union
  (:data:`DecodedPart`) so consumers can dispatch with ``isinstance``.

Interfaces:
  :class:`HeaderMap`, :class:`MimePart`, :class:`TextBody`, :class:`HtmlBody`,
  :class:`AttachmentCandidate`, :class:`Attachment`, :class:`PartRecord`,
  :class:`ParsedEmail`, :data:`DecodedPart`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union


class HeaderMap(Mapping[str, str]):
    """Ordered, read-only, case-insensitive header mapping.

    Keys are stored lowercased. Values are the raw header text, which may still
    contain RFC 2047 encoded words.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Optional[Mapping[str, str]] = None) -> None:
        self._items: Dict[str, str] = {}
        for key, value in (items or {}).items():
            self._items[key.lower().strip()] = value

    def __getitem__(self, key: str) -> str:
        return self._items[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"HeaderMap({self._items!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeaderMap):
            return self._items == other._items
        if isinstance(other, Mapping):
            return self._items == {str(k).lower(): v for k, v in other.items()}
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._items.items()))

    def value(self, key: str) -> str:
        """Return the header value or an empty string when absent."""

        return self._items.get(key.lower(), "")


@dataclass(frozen=True)
class MimePart:
    """A part segment split into its header block and undecoded body."""

    headers: HeaderMap
    raw_body: str

    @property
    def content_type(self) -> str:
        return self.headers.value("content-type")

    @property
    def content_disposition(self) -> str:
        return self.headers.value("content-disposition")

    @property
    def transfer_encoding(self) -> str:
        return self.headers.value("content-transfer-encoding")


@dataclass(frozen=True)
class TextBody:
    content: str


@dataclass(frozen=True)
class HtmlBody:
    content: str


@dataclass(frozen=True)
class AttachmentCandidate:
    """Attachment produced by the classifier, before the final filter.

    ``data`` is base64 text; ``size`` is its length in characters.
    """

    name: str
    content_type: str
    data: str
    size: int


DecodedPart = Union[TextBody, HtmlBody, AttachmentCandidate]


@dataclass(frozen=True)
class Attachment:
    """Attachment that survived filtering."""

    name: str
    content_type: str
    data: str
    size: int

    @classmethod
    def from_candidate(cls, candidate: AttachmentCandidate) -> "Attachment":
        return cls(
            name=candidate.name,
            content_type=candidate.content_type,
            data=candidate.data,
            size=candidate.size,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "contentType": self.content_type,
            "data": self.data,
            "size": self.size,
        }


PART_KINDS = ("multipart", "text", "html", "attachment", "discarded", "truncated", "failed")


@dataclass(frozen=True)
class PartRecord:
    """One node of the MIME part tree.

    The tree is stored as a flat arena: ``parent`` is the index of the
    enclosing multipart record, ``None`` for the message itself.
    """

    index: int
    parent: Optional[int]
    depth: int
    content_type: str
    kind: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "parent": self.parent,
            "depth": self.depth,
            "contentType": self.content_type,
            "kind": self.kind,
        }


@dataclass(frozen=True)
class ParsedEmail:
    """Structured result of :func:`emlparse.core.parser.parse_message`."""

    from_: str = "Unknown"
    to: str = ""
    cc: str = ""
    subject: str = "No Subject"
    date: str = ""
    text: str = ""
    html: str = ""
    attachments: Tuple[Attachment, ...] = ()
    headers: HeaderMap = field(default_factory=HeaderMap, compare=False)
    parts: Tuple[PartRecord, ...] = field(default=(), compare=False)

    def to_dict(self, *, include_parts: bool = False) -> Dict[str, Any]:
        """Return the stable serialisable record consumed by renderers."""

        record: Dict[str, Any] = {
            "from": self.from_,
            "to": self.to,
            "cc": self.cc,
            "subject": self.subject,
            "date": self.date,
            "text": self.text,
            "html": self.html,
            "attachments": [attachment.to_dict() for attachment in self.attachments],
        }
        if include_parts:
            record["parts"] = [part.to_dict() for part in self.parts]
        return record
