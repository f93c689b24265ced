"""Exceptions raised by monobump."""

from __future__ import annotations


class ConfigValidationError(ValueError):
    """The release config is invalid.

    Carries every violation found in one validation pass, in check order,
    so a single run can report all of them.
    """

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__(
            "Some errors occurred when validating the monobump config:\n"
            + "\n".join(self.messages)
        )


class InvalidRangeError(ValueError):
    """A dependency range declared in a manifest cannot be parsed."""

    def __init__(self, range_str: str) -> None:
        self.range = range_str
        super().__init__(f"Invalid semver range: {range_str!r}")
