"""
SteamID64 — the 64-bit identifier for practically any entity on the platform.

Bit layout (low to high):
  0-31   account number
  32-51  instance (usually 1 for user accounts)
  52-55  account type
  56-63  universe
"""

from enum import IntEnum
from typing import NamedTuple, Optional, Union

ACCOUNT_BITS = 32
INSTANCE_BITS = 20
TYPE_BITS = 4
UNIVERSE_BITS = 8

ACCOUNT_MASK = (1 << ACCOUNT_BITS) - 1
INSTANCE_MASK = (1 << INSTANCE_BITS) - 1
TYPE_MASK = (1 << TYPE_BITS) - 1
UNIVERSE_MASK = (1 << UNIVERSE_BITS) - 1

INSTANCE_SHIFT = ACCOUNT_BITS
TYPE_SHIFT = INSTANCE_SHIFT + INSTANCE_BITS
UNIVERSE_SHIFT = TYPE_SHIFT + TYPE_BITS


class Universe(IntEnum):
    UNSPECIFIED = 0
    PUBLIC = 1
    BETA = 2
    INTERNAL = 3
    DEV = 4
    RC = 5


class AccountType(IntEnum):
    INVALID = 0
    INDIVIDUAL = 1
    MULTISEAT = 2
    GAME_SERVER = 3
    ANON_GAME_SERVER = 4
    PENDING = 5
    CONTENT_SERVER = 6
    CLAN = 7
    CHAT = 8
    SUPER_SEEDER = 9  # P2P
    ANON_USER = 10


_LETTERS = {
    AccountType.INVALID: "I",
    AccountType.INDIVIDUAL: "U",
    AccountType.MULTISEAT: "M",
    AccountType.GAME_SERVER: "G",
    AccountType.ANON_GAME_SERVER: "A",
    AccountType.PENDING: "P",
    AccountType.CONTENT_SERVER: "C",
    AccountType.CLAN: "g",
    AccountType.CHAT: "c",
    AccountType.SUPER_SEEDER: "",
    AccountType.ANON_USER: "",
}


class Parts(NamedTuple):
    account: int
    instance: int
    type: Union[AccountType, int]
    universe: Union[Universe, int]


def _enum_or_raw(enum_cls, value: int):
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _check(name: str, value: int, mask: int) -> None:
    if not 0 <= int(value) <= mask:
        raise ValueError(f"{name} {value} does not fit in {mask.bit_length()} bits")


def account_type_name(value: int) -> Optional[str]:
    """Human-readable label for an account type, None when out of range."""
    try:
        return AccountType(value).name
    except ValueError:
        return None


def universe_name(value: int) -> Optional[str]:
    try:
        return Universe(value).name
    except ValueError:
        return None


def account_type_letter(value: int) -> Optional[str]:
    """Steam3 letter for an account type ("U" for individuals, "g" for clans)."""
    try:
        return _LETTERS[AccountType(value)]
    except ValueError:
        return None


class SteamID(int):
    """An unsigned 64-bit entity identifier.

    Behaves as a plain int (it is sent on the wire as a decimal string) with
    accessors for each packed field.
    """

    def __new__(cls, value: Union[int, str]) -> "SteamID":
        value = int(value)
        if not 0 <= value < (1 << 64):
            raise ValueError(f"SteamID {value} is not an unsigned 64-bit integer")
        return super().__new__(cls, value)

    @property
    def account(self) -> int:
        return int(self) & ACCOUNT_MASK

    @property
    def instance(self) -> int:
        return (int(self) >> INSTANCE_SHIFT) & INSTANCE_MASK

    @property
    def type(self) -> Union[AccountType, int]:
        return _enum_or_raw(AccountType, (int(self) >> TYPE_SHIFT) & TYPE_MASK)

    @property
    def universe(self) -> Union[Universe, int]:
        return _enum_or_raw(Universe, (int(self) >> UNIVERSE_SHIFT) & UNIVERSE_MASK)

    def parts(self) -> Parts:
        return Parts(self.account, self.instance, self.type, self.universe)

    @property
    def steam3(self) -> str:
        """Render as ``[U:1:account]``."""
        letter = account_type_letter(int(self.type)) or "?"
        return f"[{letter}:{int(self.universe)}:{self.account}]"

    def __str__(self) -> str:
        return int.__repr__(self)

    def __repr__(self) -> str:
        return f"SteamID({int.__repr__(self)})"


def pack(account: int, instance: int, type: int, universe: int) -> SteamID:
    _check("account", account, ACCOUNT_MASK)
    _check("instance", instance, INSTANCE_MASK)
    _check("account type", type, TYPE_MASK)
    _check("universe", universe, UNIVERSE_MASK)
    return SteamID(
        int(account)
        | (int(instance) << INSTANCE_SHIFT)
        | (int(type) << TYPE_SHIFT)
        | (int(universe) << UNIVERSE_SHIFT)
    )


def unpack(steamid: Union[int, str]) -> Parts:
    return SteamID(steamid).parts()


def user_id(account: int) -> SteamID:
    return pack(account, 1, AccountType.INDIVIDUAL, Universe.PUBLIC)


def group_id(account: int) -> SteamID:
    return pack(account, 0, AccountType.CLAN, Universe.PUBLIC)
