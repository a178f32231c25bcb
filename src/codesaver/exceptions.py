"""
Custom exceptions for code-saver
"""


class CodeSaverError(Exception):
    """Base exception for all code-saver errors"""
    pass


class DestinationError(CodeSaverError):
    """Invalid destination definition"""
    pass


class DestinationNotFoundError(DestinationError):
    """No destination with the requested id"""
    pass


class NoDestinationsError(DestinationError):
    """Save attempted before any destination was configured"""
    pass


class InvalidConfigError(CodeSaverError):
    """Imported or stored configuration failed validation"""
    pass


class ProtocolError(CodeSaverError):
    """Malformed message on the host channel"""
    pass


class CommandError(CodeSaverError):
    """Error processing a command"""
    pass
