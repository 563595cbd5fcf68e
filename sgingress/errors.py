# sgingress/errors.py

from typing import Optional


class SGIngressError(Exception):
    """Base class for every error the CLI reports and exits 1 on."""


class ParseError(SGIngressError):
    pass


class ConfigReadError(ParseError):
    pass


class ConfigParseError(ParseError):
    pass


class RulesReadError(ParseError):
    pass


class RulesParseError(ParseError):
    def __init__(self, message: str, line: Optional[int] = None):
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)
        self.line = line


class RemoteError(SGIngressError):
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class RemoteLookupError(RemoteError):
    pass


class RemoteMutationError(RemoteError):
    pass
