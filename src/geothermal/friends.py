"""
Friends list from the community profile XML feed.
"""

import xml.etree.ElementTree as ET

from geothermal.errors import DecodeError
from geothermal.ids import SteamID
from geothermal.transport.http import COMMUNITY_URL, HttpClient


async def friends(http: HttpClient, user: str = "my") -> list[SteamID]:
    """Friends of ``user`` (a profile path such as ``id/alice`` or ``profiles/7656...``).

    ``my`` resolves to the logged-in account.
    """
    body = await http.get_text(f"{COMMUNITY_URL}/{user}/friends", params={"xml": "1"})
    try:
        root = ET.fromstring(body)
        return [SteamID(f.text.strip()) for f in root.iterfind("friends/friend") if f.text]
    except (ET.ParseError, ValueError) as e:
        raise DecodeError(f"invalid friends list for {user}: {e}")
