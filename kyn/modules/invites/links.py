"""Invite link format: {origin}/join?family={familyId}&token={token}"""

from typing import Tuple
from urllib.parse import urlencode, urlsplit, parse_qs

from kyn.core.errors import InvalidInviteLink

JOIN_PATH = "/join"


def build_invite_link(origin: str, family_id: str, token: str) -> str:
    query = urlencode({"family": family_id, "token": token})
    return f"{origin.rstrip('/')}{JOIN_PATH}?{query}"


def parse_invite_link(url: str) -> Tuple[str, str]:
    """Return (family_id, token) from an invite link"""
    params = parse_qs(urlsplit(url.strip()).query)
    family = params.get("family", [""])[0]
    token = params.get("token", [""])[0]
    if not family or not token:
        raise InvalidInviteLink()
    return family, token
