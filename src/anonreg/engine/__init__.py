"""Pre-flight checks — operator input and signature bundle validation."""

from anonreg.engine.bundle_validator import SignatureBundleValidator, load_bundle
from anonreg.engine.input_validator import (
    MalformedAddressError,
    MalformedTagError,
    MissingFieldError,
    RegistrationRequest,
    ValidationError,
)

__all__ = [
    "MalformedAddressError",
    "MalformedTagError",
    "MissingFieldError",
    "RegistrationRequest",
    "SignatureBundleValidator",
    "ValidationError",
    "load_bundle",
]
