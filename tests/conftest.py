"""Shared fixtures for MMS extractor tests."""

from __future__ import annotations

import email
from email import policy
from email.message import EmailMessage, MIMEPart
from pathlib import Path

import pytest

from mms_extractor.config.settings import MmsExtractorSettings
from mms_extractor.core.parts import EmailPart

PIX_FLIX_RULES = """\
ignore:
  image/jpeg:
  - masthead.jpg
  image/gif:
  - /^logo\\.gif$/i
  text/plain:
  - Multimedia message
  - /\\AThis message was sent using PIX-FLIX Messaging service from .*/m
transform:
  text/plain:
  - - /\\A(.+?)\\s+This message was sent using PIX-FLIX Messaging .*/m
    - '\\1'
number:
  - x-sender-number
  - /^tel:\\+1(\\d+)$/
  - '\\1'
"""

DEFAULT_RULES = """\
ignore:
  image/gif:
  - spacer.gif
"""

ALIASES = """\
legacy.pix.example.com: pix.example.com
"""

PIX_FLIX_TEXT = "Hello world. This message was sent using PIX-FLIX Messaging service from CarrierX"


def leaf(
    mime_type: str,
    body: str | bytes,
    filename: str | None = None,
    *,
    name: str | None = None,
    headers: dict[str, str] | None = None,
) -> MIMEPart:
    """Build a single non-multipart MIME part."""
    part = MIMEPart(policy=policy.default)
    maintype, subtype = mime_type.split("/")
    if maintype == "text":
        part.set_content(body, subtype=subtype, filename=filename)
    else:
        if isinstance(body, str):
            body = body.encode("utf-8")
        part.set_content(body, maintype=maintype, subtype=subtype, filename=filename)
    if name is not None:
        part.set_param("name", name)
    for key, value in (headers or {}).items():
        part[key] = value
    return part


def container(mime_type: str, *children: MIMEPart) -> MIMEPart:
    """Build a multipart part of the given type holding ``children``."""
    part = MIMEPart(policy=policy.default)
    part.make_mixed()
    part.set_type(mime_type)
    for child in children:
        part.attach(child)
    return part


def build_message(
    *parts: MIMEPart,
    sender: str = "2065551212@pix.example.com",
    return_path: str | None = None,
    message_id: str | None = "<abc.123@pix.example.com>",
    subject: str = "Photo",
    root_type: str | None = "multipart/mixed",
    extra_headers: dict[str, str] | None = None,
) -> EmailMessage:
    """Assemble an MMS-style message and round-trip it through the parser."""
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = "someone@example.com"
    msg["Subject"] = subject
    if return_path is not None:
        msg["Return-Path"] = return_path
    if message_id is not None:
        msg["Message-ID"] = message_id
    for key, value in (extra_headers or {}).items():
        msg[key] = value

    if root_type is None:
        # Single-part message: the only part becomes the message body.
        (single,) = parts
        for key, value in single.items():
            msg[key] = value
        msg.set_payload(single.get_payload())
    else:
        msg.make_mixed()
        msg.set_type(root_type)
        for part in parts:
            msg.attach(part)

    return email.message_from_bytes(msg.as_bytes(), policy=policy.default)


def as_part(part: MIMEPart) -> EmailPart:
    """Round-trip a single part through the parser and wrap it."""
    return EmailPart(email.message_from_bytes(part.as_bytes(), policy=policy.default))


@pytest.fixture
def conf_dir(tmp_path: Path) -> Path:
    """Rule directory with a default file, an alias file and one carrier."""
    conf = tmp_path / "conf"
    conf.mkdir()
    (conf / "mms_media.yml").write_text(DEFAULT_RULES, encoding="utf-8")
    (conf / "aliases.yml").write_text(ALIASES, encoding="utf-8")
    (conf / "pix.example.com.yml").write_text(PIX_FLIX_RULES, encoding="utf-8")
    return conf


@pytest.fixture
def settings(tmp_path: Path, conf_dir: Path) -> MmsExtractorSettings:
    """Settings pointing to temporary staging and rule directories."""
    return MmsExtractorSettings(tmp_dir=tmp_path / "staging", conf_dir=conf_dir)


@pytest.fixture
def photo_bytes() -> bytes:
    """10000 bytes standing in for a JPEG."""
    return b"\xff\xd8\xff\xe0" + b"\x00" * 9996


@pytest.fixture
def pix_flix_message(photo_bytes: bytes) -> EmailMessage:
    """Carrier masthead, user photo and a text part with a carrier signature."""
    return build_message(
        leaf("image/jpeg", b"\xff\xd8masthead", "masthead.jpg"),
        leaf("image/jpeg", photo_bytes, "photo.jpg"),
        leaf("text/plain", PIX_FLIX_TEXT),
    )
