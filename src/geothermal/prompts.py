"""
Interactive collaborator for the login flow.

The library never reads from a terminal itself; Auth.complete asks a Prompter.
The CLI ships a click-based implementation.
"""

from typing import Protocol


class Prompter(Protocol):
    def show(self, message: str) -> None:
        """Display a server status message ("please complete the captcha below")."""

    def captcha(self, url: str) -> str:
        """Show the CAPTCHA image URL and return the solution."""

    def second_factor(self, email_domain: str) -> str:
        """Return the SteamGuard code sent to an address at ``email_domain``."""

    def username(self) -> str: ...

    def password(self) -> str: ...
