# ABOUTME: The fixed set of ten attributes tools and scenarios are rated on
# ABOUTME: Each attribute knows its rating domain (1-5, except application at 1-4)

from enum import Enum

from toolpick.scoring.errors import ValidationError

RATING_MIN = 1
RATING_MAX = 5

# application is rated on a 1-4 scale; its range (3) drives accuracy normalization
APPLICATION_MAX = 4


class Attribute(str, Enum):
    """Rated dimensions, in display order"""

    EASE = "ease"
    FLEXIBILITY = "flexibility"
    COLLABORATION = "collaboration"
    PRIVACY = "privacy"
    COST = "cost"
    SPEED = "speed"
    INTEGRATIONS = "integrations"
    CODE = "code"
    APPLICATION = "application"
    A11Y = "a11y"

    @property
    def low(self) -> int:
        return RATING_MIN

    @property
    def high(self) -> int:
        return APPLICATION_MAX if self is Attribute.APPLICATION else RATING_MAX

    @property
    def range(self) -> int:
        """Width of the rating domain: the largest possible difference"""
        return self.high - self.low

    def contains(self, value: float) -> bool:
        return self.low <= value <= self.high

    @classmethod
    def parse(cls, name) -> "Attribute":
        """Resolve a wire name (or member) to an Attribute."""
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            raise ValidationError(f"Unknown attribute: {name!r}") from None


ATTRIBUTES = tuple(Attribute)
