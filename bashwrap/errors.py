# bashwrap/errors.py
from __future__ import annotations


class BashwrapError(Exception):
    """bashwrap 공통 에러 (CLI에서 한 줄 메시지로 출력)"""


class ConfigurationError(BashwrapError, ValueError):
    """Invalid argument model, component or platform description."""


class ResourceError(BashwrapError, OSError):
    """A resource could not be read or an output path could not be written."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class ExecutionError(BashwrapError, RuntimeError):
    def __init__(self, message: str, returncode: int = 1):
        super().__init__(message)
        self.returncode = returncode


class VersionError(BashwrapError, RuntimeError): ...
