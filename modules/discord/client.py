"""Minimal Discord REST client: the three calls the linking flow needs."""

import requests

from logging_config import get_logger

logger = get_logger(__name__)

API_BASE = "https://discord.com/api/v10"


class DiscordError(RuntimeError):
    pass


class DiscordClient:
    def __init__(self, bot_token: str, guild_id: str, timeout: int = 10):
        self.guild_id = guild_id
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bot {bot_token}",
            "Content-Type": "application/json",
        })

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "DiscordClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs):
        try:
            resp = self.session.request(method, API_BASE + path, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise DiscordError(f"{method} {path} failed: {exc}") from exc
        if resp.status_code >= 300:
            raise DiscordError(f"{method} {path} returned {resp.status_code}: {resp.text}")
        return resp

    def update_nickname(self, user_id: str, nickname: str) -> None:
        self._request("PATCH", f"/guilds/{self.guild_id}/members/{user_id}", json={"nick": nickname})

    def role_id(self, role_name: str) -> str:
        roles = self._request("GET", f"/guilds/{self.guild_id}/roles").json()
        for role in roles:
            if role.get("name") == role_name:
                return role["id"]
        raise DiscordError(f"Role not found: {role_name}")

    def add_user_role(self, user_id: str, role_name: str) -> None:
        role_id = self.role_id(role_name)
        self._request("PUT", f"/guilds/{self.guild_id}/members/{user_id}/roles/{role_id}")

    def send_message(self, user_id: str, content: str) -> None:
        channel = self._request("POST", "/users/@me/channels", json={"recipient_id": user_id}).json()
        self._request("POST", f"/channels/{channel['id']}/messages", json={"content": content})
