# application/exceptions.py
from typing import Optional


class NavigationError(Exception):
    """Raised when the next step cannot be decided for a flow."""

    def __init__(self, message: str, step_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.step_id = step_id
