from typing import Optional


class StructgenError(Exception):
    """Base error for structured generation"""


class OutputShapeError(StructgenError):
    """Raised when an output shape cannot be used for generation"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class InputValidationError(StructgenError):
    """Raised when run input does not conform to the declared input shape"""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class GenerationError(StructgenError):
    """Raised when a call to the generation service fails"""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class CapabilityError(StructgenError):
    """Raised when capability discovery or invocation fails"""

    def __init__(self, message: str, provider: Optional[str] = None, capability: Optional[str] = None):
        super().__init__(message)
        self.provider = provider
        self.capability = capability


class InvalidURLError(StructgenError):
    """Raised when a provider address is not a safe http(s) url"""
