# domain/exceptions.py
class ValidationError(Exception):
    """Raised when a domain object is constructed from invalid values."""


class NavigationRuleError(ValidationError):
    """Raised when a navigation rule cannot be built, e.g. on an arity mismatch."""


class FlowDefinitionError(ValidationError):
    pass
