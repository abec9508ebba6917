"""Entity ID value objects"""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserId:
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("User ID must be an integer")

    def __str__(self) -> str:
        return str(self.value)
