# grouper/domain/errors.py
"""
Structured grouping errors.

Each error carries a symbolic message key and interpolation params instead of
display text, so callers can localize them however they like.
"""
from typing import Dict, Optional, Union


class GroupingError(Exception):
    """Base class for configuration errors raised by the grouping core."""
    key = "grouping.errors.unknown"

    def __init__(self, params: Optional[Dict[str, Union[int, float, str]]] = None):
        self.params = params or {}
        super().__init__(self.key)

    def to_dict(self) -> Dict:
        return {"key": self.key, "params": self.params}


class InvalidConfigurationError(GroupingError):
    """Raised when group_size is below 1."""
    key = "grouping.errors.groupSizeMin"


class PreferencesRequiredError(GroupingError):
    """Raised when preference-based grouping is asked for without a preference map."""
    key = "grouping.errors.preferencesRequired"


class NoWeightsSelectedError(GroupingError):
    """Raised when weighted grouping has no weight ids left after expansion."""
    key = "grouping.errors.noWeightsSelected"


class UnknownStrategyError(GroupingError):
    key = "grouping.errors.unknownStrategy"

    def __init__(self, strategy):
        super().__init__({"strategy": str(getattr(strategy, "value", strategy))})
