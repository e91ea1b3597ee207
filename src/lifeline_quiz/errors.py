"""Errors raised by the quiz core."""


class QuizError(Exception):
    """Base class for all quiz errors."""


class LoadError(QuizError):
    """Question source is missing or holds no usable records."""


class RecordParseError(QuizError):
    """A single question record could not be parsed."""

    def __init__(self, line_no: int, reason: str):
        super().__init__(f"line {line_no}: {reason}")
        self.line_no = line_no
        self.reason = reason


class LifelineMisuseError(QuizError):
    """A lifeline was invoked after it had already been used."""

    def __init__(self, lifeline):
        super().__init__(f"{lifeline.label} already used!")
        self.lifeline = lifeline


class ExhaustedPoolError(QuizError):
    """No unused question is left in the band for a replacement."""
