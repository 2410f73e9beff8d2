"""Custom exceptions for the MMS extractor."""


class MmsExtractorError(Exception):
    """Base exception for all MMS extractor errors."""


class ConfigError(MmsExtractorError):
    """A rule or alias file is missing or malformed."""


class StagingError(MmsExtractorError):
    """Failed to write extracted media to the staging directory."""
