from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union


class StructuralConfigurationError(Exception):
    """Exception raised when a model is constructed from an unusable field registry."""

    def __init__(self, message: str = "The field registry is not valid for this model."):
        super().__init__(message)


class ObjectNotFoundException(Exception):
    """Exception raised when no object matches the supplied filter expression."""

    def __init__(self, message: str = "The requested object was not found."):
        super().__init__(message)


class StoreError(Exception):
    """Base class for failures raised by a table client."""

    def __init__(self, message: str = "The table client failed to execute the operation."):
        super().__init__(message)


class KeyAlreadyExistsException(StoreError):
    """Exception raised when trying to insert an entity that would violate a unique constraint."""

    def __init__(self, message: str = "An object with the same key already exists."):
        super().__init__(message)


Location = Tuple[Union[str, int], ...]


@dataclass(frozen=True)
class Violation:
    """A single violated constraint, located by its path inside the payload."""

    location: Location
    message: str
    kind: str = "value_error"

    def __str__(self) -> str:
        path = ".".join(str(part) for part in self.location) or "<root>"
        return f"{path}: {self.message}"


class ValidationError(ValueError):
    """Raised when a payload violates a compiled schema. Carries every violation."""

    violations: List[Violation]

    def __init__(self, violations: Sequence[Violation], title: str = "Validation failed"):
        self.violations = list(violations)
        lines = "\n".join(f"  - {violation}" for violation in self.violations)
        super().__init__(f"{title} ({len(self.violations)} violation(s)):\n{lines}")

    def kinds(self) -> List[str]:
        return [violation.kind for violation in self.violations]
