"""Frozen dataclasses for the MMS extractor domain model."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class LiteralRule:
    """A rule compared by plain string equality."""

    text: str

    def search(self, value: str) -> bool:
        # Literal rules only take part in equality checks.
        return False

    def sub(self, replacement: str, value: str) -> str:
        return value.replace(self.text, replacement)


@dataclass(frozen=True)
class PatternRule:
    """A rule written as a delimited regular expression, e.g. ``/^ad.gif$/i``.

    ``pattern`` is None when the source failed to compile; such a rule never matches.
    """

    source: str
    pattern: re.Pattern[str] | None = field(default=None, compare=False)

    def search(self, value: str) -> bool:
        if self.pattern is None:
            return False
        return self.pattern.search(value) is not None

    def sub(self, replacement: str, value: str) -> str:
        if self.pattern is None:
            return value
        return self.pattern.sub(replacement, value)


Rule = LiteralRule | PatternRule


@dataclass(frozen=True)
class TransformRule:
    """An ordered rewrite step: every match of ``rule`` becomes ``replacement``."""

    rule: Rule
    replacement: str


@dataclass(frozen=True)
class NumberRule:
    """Where to find the sender's number when the from-address isn't it."""

    header: str
    rule: Rule
    replacement: str


@dataclass(frozen=True)
class RuleSet:
    """Effective ignore/transform/number rules for one carrier."""

    ignore: Mapping[str, tuple[Rule, ...]] = field(default_factory=dict)
    transform: Mapping[str, tuple[TransformRule, ...]] = field(default_factory=dict)
    number: NumberRule | None = None

    def ignore_rules(self, mime_type: str) -> tuple[Rule, ...]:
        return tuple(self.ignore.get(mime_type, ()))

    def transform_rules(self, mime_type: str) -> tuple[TransformRule, ...]:
        return tuple(self.transform.get(mime_type, ()))

    def merge(self, other: RuleSet) -> RuleSet:
        """Layer ``other`` over this rule-set.

        Ignore and transform sequences are concatenated per MIME type, ours
        first. ``other.number`` replaces ours when present.
        """
        ignore = {k: tuple(v) for k, v in self.ignore.items()}
        for mime_type, rules in other.ignore.items():
            ignore[mime_type] = ignore.get(mime_type, ()) + tuple(rules)

        transform = {k: tuple(v) for k, v in self.transform.items()}
        for mime_type, rules in other.transform.items():
            transform[mime_type] = transform.get(mime_type, ()) + tuple(rules)

        return RuleSet(
            ignore=ignore,
            transform=transform,
            number=other.number if other.number is not None else self.number,
        )


@dataclass(frozen=True)
class MediaItem:
    """A staged media file.

    Exposes the attributes an upload handler expects (``local_path``,
    ``original_filename``, ``size``, ``content_type``).
    """

    path: Path
    mime_type: str

    @property
    def local_path(self) -> Path:
        return self.path

    @property
    def original_filename(self) -> str:
        return self.path.name

    @property
    def content_type(self) -> str:
        return self.mime_type

    @property
    def size(self) -> int:
        """Byte size read from the filesystem on every access."""
        return self.path.stat().st_size

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8", errors="replace")
