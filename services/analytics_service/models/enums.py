"""Enum definitions for analytics service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class EventType(str, enum.Enum):
    VIEW = "view"
    LINK_CLICK = "link_click"
    QR_SCAN = "qr_scan"
    SHARE = "share"
