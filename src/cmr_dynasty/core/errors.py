"""League rule violations. The exception message is the text shown to the user."""

from __future__ import annotations


class LeagueError(Exception):
    """Base class for errors that are reported back to the Discord user as-is."""


class TeamNotFound(LeagueError):
    pass


class NoTeamControlled(LeagueError):
    def __init__(self, message: str = "You don't control a team.") -> None:
        super().__init__(message)


class DuplicateSubmission(LeagueError):
    def __init__(self, opponent_name: str) -> None:
        super().__init__(f"You already submitted a result this week (vs {opponent_name}).")
        self.opponent_name = opponent_name


class OfferAlreadyUsed(LeagueError):
    """Raised when a user who already received offers asks again."""

    def __init__(self) -> None:
        super().__init__("You already received a job offer.")


class ClockConflict(LeagueError):
    """The league clock moved between read and write."""
