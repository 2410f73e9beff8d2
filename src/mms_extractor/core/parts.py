"""MIME part access and flattening of nested multipart containers."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from email.message import Message
from email.utils import collapse_rfc2231_value
from typing import Protocol

logger = logging.getLogger(__name__)

# Multipart types whose children are folded into the parent's part list.
CONTAINER_TYPES = frozenset(
    {
        "multipart/related",
        "multipart/alternative",
        "multipart/mixed",
        "multipart/appledouble",
    }
)

# Passes over the part list. Covers alternative → related → leaf, the deepest
# nesting seen from carriers; anything deeper is left partially folded.
FLATTEN_PASSES = 2


class Part(Protocol):
    """The minimal view of a parsed MIME part the extractor relies on."""

    def mime_type(self) -> str: ...

    def is_container(self) -> bool: ...

    def children(self) -> Sequence[Part]: ...

    def header_subvalue(self, header: str, param: str) -> str | None: ...

    def raw_header_value(self, header: str) -> str | None: ...

    def body(self) -> str | bytes: ...


class EmailPart:
    """Adapts a stdlib ``email.message.Message`` to the Part protocol."""

    def __init__(self, message: Message) -> None:
        self._message = message

    @property
    def message(self) -> Message:
        return self._message

    def mime_type(self) -> str:
        return self._message.get_content_type()

    def is_container(self) -> bool:
        return self._message.is_multipart()

    def children(self) -> list[EmailPart]:
        if not self._message.is_multipart():
            return []
        return [EmailPart(p) for p in self._message.get_payload()]

    def header_subvalue(self, header: str, param: str) -> str | None:
        value = self._message.get_param(param, header=header)
        if value is None:
            return None
        return collapse_rfc2231_value(value)

    def raw_header_value(self, header: str) -> str | None:
        value = self._message.get(header)
        return None if value is None else str(value)

    def body(self) -> str | bytes:
        """Transfer-decoded body; ``str`` for text types, ``bytes`` otherwise."""
        if self._message.is_multipart():
            return b""
        payload = self._message.get_payload(decode=True) or b""
        if self._message.get_content_maintype() != "text":
            return payload
        charset = self._message.get_content_charset() or "utf-8"
        try:
            return payload.decode(charset, errors="replace")
        except LookupError:
            logger.debug("Unknown charset %r, decoding as latin-1", charset)
            return payload.decode("latin-1")

    def __repr__(self) -> str:
        return f"EmailPart({self.mime_type()!r})"


def main_type(mime_type: str) -> str:
    """Coarse type: the part of a MIME type before the slash."""
    return mime_type.split("/", 1)[0]


def sub_type(mime_type: str) -> str:
    return mime_type.rsplit("/", 1)[-1]


def body_text(part: Part) -> str:
    """The part's body as stripped text."""
    body = part.body()
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return body.strip()


def top_level_parts(root: Part) -> list[Part]:
    return list(root.children()) if root.is_container() else [root]


def flatten_parts(parts: Sequence[Part], passes: int = FLATTEN_PASSES) -> list[Part]:
    """Replace container parts with their children, ``passes`` times over.

    Order is preserved and duplicates are kept. The pass count is fixed, so
    containers nested deeper than ``passes`` levels survive in the output.
    """
    flat = list(parts)
    for _ in range(passes):
        expanded: list[Part] = []
        for part in flat:
            if part.mime_type() in CONTAINER_TYPES:
                expanded.extend(part.children())
            else:
                expanded.append(part)
        flat = expanded
    return flat
