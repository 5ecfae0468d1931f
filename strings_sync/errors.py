"""Exception types raised by strings-sync."""

from __future__ import annotations


class StringsSyncError(Exception):
    """Base class for every error raised by this package."""


class ResourceParseError(StringsSyncError):
    """A strings.xml document could not be parsed."""


class GitError(StringsSyncError):
    """A git command failed."""


class ConfigError(StringsSyncError):
    """Configuration is missing or invalid."""


class NoStringsFilesError(StringsSyncError):
    """No default strings.xml file was found under the project root."""


class TranslationError(StringsSyncError):
    """The translation provider returned an unusable response."""
