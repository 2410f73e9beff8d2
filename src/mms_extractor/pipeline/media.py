"""MMS processing session: resolve rules → flatten → ignore → extract → stage."""

from __future__ import annotations

import email
import logging
import re
from collections.abc import Callable, Sequence
from email import policy
from email.message import Message
from pathlib import Path

from mms_extractor.config.resolver import ConfigResolver, carrier_domain, first_from_address
from mms_extractor.config.settings import MmsExtractorSettings, get_settings
from mms_extractor.core.exceptions import StagingError
from mms_extractor.core.filenames import resolve_filename
from mms_extractor.core.ignore import should_ignore
from mms_extractor.core.models import LiteralRule, MediaItem, RuleSet
from mms_extractor.core.parts import EmailPart, Part, flatten_parts, top_level_parts
from mms_extractor.core.processor import PartProcessor, ProcessorRegistry, default_registry
from mms_extractor.core.transformer import TextTransformer
from mms_extractor.storage.media_store import MediaStore, safe_message_id

DEFAULT_MEDIA_TYPES = ("video", "image", "text")
DEFAULT_TEXT_TYPES = ("text",)


class MmsMedia:
    """Collects the user's media from one MMS message, minus carrier branding.

    The message's carrier is derived from its envelope and decides which
    rules apply. Processing runs on construction unless ``lazy`` is set, in
    which case ``process()`` must be called. Staged files stay on disk until
    ``purge()`` is called.
    """

    def __init__(
        self,
        message: Message,
        *,
        settings: MmsExtractorSettings | None = None,
        logger: logging.Logger | None = None,
        lazy: bool = False,
        registry: ProcessorRegistry | None = None,
    ) -> None:
        self._message = message
        self._settings = settings or get_settings()
        self._log = logger or logging.getLogger(__name__)
        self._log.info("%s created", type(self).__name__)

        self._carrier = carrier_domain(message, self._settings.default_carrier)
        resolver = ConfigResolver(self._settings)
        self._config_id = resolver.canonical_carrier(self._carrier)
        self._rules = resolver.resolve(self._carrier)
        self._processor = (registry or default_registry).create(self._config_id, self._rules)
        self._transformer = TextTransformer(self._rules)

        self._store = MediaStore(
            self._settings.tmp_dir / safe_message_id(message.get("message-id"))
        )
        self._was_processed = False
        self._number: str | None = None
        self._subject: str | None = None
        self._default_media: MediaItem | None = None
        self._default_text: MediaItem | None = None

        if not lazy:
            self.process()

    @classmethod
    def from_bytes(cls, raw: bytes, **kwargs) -> MmsMedia:
        """Parse raw RFC 822 bytes and build a session from them."""
        return cls(email.message_from_bytes(raw, policy=policy.default), **kwargs)

    @classmethod
    def from_file(cls, path: Path, **kwargs) -> MmsMedia:
        return cls.from_bytes(Path(path).read_bytes(), **kwargs)

    @property
    def message(self) -> Message:
        return self._message

    @property
    def carrier(self) -> str:
        """Domain of the carrier gateway the message came through."""
        return self._carrier

    @property
    def config_id(self) -> str:
        """Canonical carrier id after alias lookup."""
        return self._config_id

    @property
    def rules(self) -> RuleSet:
        return self._rules

    @property
    def processor(self) -> PartProcessor:
        return self._processor

    @property
    def media_dir(self) -> Path:
        return self._store.media_dir

    @property
    def media(self) -> dict[str, list[MediaItem]]:
        """Staged media keyed by MIME type, in the order parts were processed."""
        return self._store.as_dict()

    @property
    def was_processed(self) -> bool:
        return self._was_processed

    def process(
        self, on_media: Callable[[str, list[MediaItem]], None] | None = None
    ) -> None:
        """Extract and stage media from the message. Runs at most once.

        Args:
            on_media: Called with each (MIME type, items) pair of the result,
                on every call.

        Raises:
            StagingError: If extracted media can't be written to disk.
        """
        if not self._was_processed:
            self._log.info("%s processing", type(self).__name__)
            try:
                self._stage_parts()
            except StagingError:
                # drop partial output before re-raising
                self._store.purge()
                raise
            self._was_processed = True

        if on_media is not None:
            for mime_type, items in self._store.items():
                on_media(mime_type, items)

    def _stage_parts(self) -> None:
        for part in self.leaf_parts():
            filename = resolve_filename(part)
            if should_ignore(part, self._rules, filename):
                continue
            mime_type, content = self._processor.extract(part, filename)
            if mime_type is None or not content:
                continue
            item = self._store.stage(mime_type, filename, content)
            self._log.info("%s writing file %s", type(self).__name__, item.path)

    def leaf_parts(self) -> list[Part]:
        return flatten_parts(top_level_parts(EmailPart(self._message)))

    def media_of_type(self, types: Sequence[str]) -> MediaItem | None:
        """Largest staged file whose coarse type is in ``types``, or None."""
        return self._store.attachment(types)

    @property
    def default_media(self) -> MediaItem | None:
        """Most likely user media: the largest video, image or text file."""
        if self._default_media is None:
            self._default_media = self.media_of_type(DEFAULT_MEDIA_TYPES)
        return self._default_media

    @property
    def default_text(self) -> MediaItem | None:
        if self._default_text is None:
            self._default_text = self.media_of_type(DEFAULT_TEXT_TYPES)
        return self._default_text

    @property
    def body(self) -> str:
        """Stripped text of ``default_text``, or an empty string."""
        item = self.default_text
        return item.read_text().strip() if item else ""

    @property
    def subject(self) -> str:
        """Subject with carrier boilerplate removed; empty if it is pure boilerplate."""
        if self._subject is None:
            subject = str(self._message.get("subject", "")).strip()
            ignores = self._rules.ignore_rules("text/plain")
            if any(isinstance(r, LiteralRule) and r.text == subject for r in ignores):
                self._subject = ""
            else:
                self._subject = self._transformer.transform("text/plain", subject)[1]
        return self._subject

    @property
    def number(self) -> str:
        """Sender's number, as found by the carrier's number rule or the From user.

        Not validated; most carriers use the phone number as the mailbox name.
        """
        if self._number is None:
            self._number = self._number_from_rule() or first_from_address(
                self._message
            ).split("@")[0]
        return self._number

    def purge(self) -> None:
        """Remove the staging directory and all media written to it."""
        self._log.info(
            "%s purging %s and all its contents", type(self).__name__, self.media_dir
        )
        self._store.purge()
        self._default_media = None
        self._default_text = None

    def _number_from_rule(self) -> str:
        rule = self._rules.number
        if rule is None:
            return ""
        value = self._message.get(rule.header)
        if value is None:
            return ""
        try:
            return rule.rule.sub(rule.replacement, str(value).strip())
        except (re.error, IndexError) as e:
            self._log.debug("Number rule failed: %s", e)
            return ""
