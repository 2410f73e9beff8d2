"""MMS Extractor - Pull user media out of carrier MMS messages, minus the branding."""

from mms_extractor.config.settings import MmsExtractorSettings, configure, get_settings
from mms_extractor.core.exceptions import ConfigError, MmsExtractorError, StagingError
from mms_extractor.core.models import MediaItem, RuleSet
from mms_extractor.core.processor import MediaProcessor, ProcessorRegistry, default_registry
from mms_extractor.pipeline.media import MmsMedia

__all__ = [
    "ConfigError",
    "MediaItem",
    "MediaProcessor",
    "MmsExtractorError",
    "MmsExtractorSettings",
    "MmsMedia",
    "ProcessorRegistry",
    "RuleSet",
    "StagingError",
    "configure",
    "default_registry",
    "get_settings",
]
