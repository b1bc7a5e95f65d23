"""Payloads for the share and emergency-call collaborators."""

import config
from geo import Coordinate


def maps_url(coordinate: Coordinate) -> str:
    return f"{config.MAPS_LINK_BASE}{coordinate.lat:.6f},{coordinate.lng:.6f}"


def share_message(coordinate: Coordinate, address: str = "") -> str:
    """Multi-line text handed to the clipboard/share sheet.

    My location: <lat>, <lng>
    Address: <address>      (omitted when there is no address)
    Map: <maps link>
    """
    lines = [f"My location: {coordinate.lat:.6f}, {coordinate.lng:.6f}"]
    if address:
        lines.append(f"Address: {address}")
    lines.append(f"Map: {maps_url(coordinate)}")
    return "\n".join(lines)


def dial_uri(number: str) -> str:
    if number not in config.EMERGENCY_NUMBERS:
        raise ValueError(f"Not an emergency number: {number!r}")
    return f"tel:{number}"
