"""Custom Exceptions for the ScriptCut application."""

class ScriptCutError(Exception):
    """Base class for exceptions in this package."""
    pass

class ConfigurationError(ScriptCutError):
    """Exception raised for errors in configuration loading."""
    pass

class FileSystemError(ScriptCutError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass

class MediaProbeError(ScriptCutError):
    """Exception raised when the duration of a media file cannot be determined."""
    pass

class InvariantViolationError(ScriptCutError):
    """Exception raised when an edit would leave overlapping or zero-length segments."""
    pass

class PlaybackError(ScriptCutError):
    """Exception raised for misuse of the playback token or player failures."""
    pass

class CommandSyntaxError(ScriptCutError):
    """Exception raised for a command line whose keyword is known but whose fields are invalid."""
    pass
