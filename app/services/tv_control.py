"""
Helpers for picking televisions out of a device list and building the
SmartThings command payloads used to control them.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

_TV_MARKER = "tv"
_MATCH_FIELDS = ("name", "label", "deviceTypeName", "type")

Command = Dict[str, Any]


def _command(capability: str, command: str, *arguments: Any, component: str = "main") -> Command:
    return {
        "component": component,
        "capability": capability,
        "command": command,
        "arguments": list(arguments),
    }


def is_tv(device: Dict[str, Any]) -> bool:
    """Case-insensitive ``tv`` substring match over the descriptive fields."""
    candidates = [device.get(field) for field in _MATCH_FIELDS]
    ocf = device.get("ocf")
    if isinstance(ocf, dict):
        candidates.append(ocf.get("deviceType"))
    return any(
        isinstance(value, str) and _TV_MARKER in value.lower() for value in candidates
    )


def filter_tvs(devices: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [device for device in devices if is_tv(device)]


def power_command(on: bool) -> List[Command]:
    return [_command("switch", "on" if on else "off")]


def volume_command(
    level: Optional[int] = None,
    direction: Optional[str] = None,
    muted: Optional[bool] = None,
) -> List[Command]:
    """Build an ``audioVolume``/``audioMute`` command batch.

    Exactly one of ``level`` (0-100) or ``direction`` (``up``/``down``) may be
    given; ``muted`` can be combined with either or used alone.
    """
    if level is not None and direction is not None:
        raise ValueError("Provide either a volume level or a direction, not both.")

    commands: List[Command] = []
    if level is not None:
        if not 0 <= level <= 100:
            raise ValueError("Volume level must be between 0 and 100.")
        commands.append(_command("audioVolume", "setVolume", level))
    elif direction is not None:
        if direction not in ("up", "down"):
            raise ValueError("Volume direction must be 'up' or 'down'.")
        commands.append(_command("audioVolume", "volumeUp" if direction == "up" else "volumeDown"))

    if muted is not None:
        commands.append(_command("audioMute", "mute" if muted else "unmute"))

    if not commands:
        raise ValueError("Provide a volume level, direction or mute flag.")
    return commands


def channel_command(
    channel: Optional[str] = None,
    direction: Optional[str] = None,
) -> List[Command]:
    if channel is not None and direction is not None:
        raise ValueError("Provide either a channel or a direction, not both.")
    if channel is not None:
        channel = str(channel).strip()
        if not channel:
            raise ValueError("Channel must not be empty.")
        return [_command("tvChannel", "setTvChannel", channel)]
    if direction == "up":
        return [_command("tvChannel", "channelUp")]
    if direction == "down":
        return [_command("tvChannel", "channelDown")]
    if direction is not None:
        raise ValueError("Channel direction must be 'up' or 'down'.")
    raise ValueError("Provide a channel or a direction.")


__all__ = [
    "channel_command",
    "filter_tvs",
    "is_tv",
    "power_command",
    "volume_command",
]
