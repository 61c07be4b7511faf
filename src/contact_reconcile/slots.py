from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

from .models import ContactMethodSlot, IdentifierKind

SLOTS_BY_KIND: Mapping[IdentifierKind, Tuple[ContactMethodSlot, ...]] = MappingProxyType(
    {
        IdentifierKind.EMAIL: (ContactMethodSlot.EMAIL_PERSONAL, ContactMethodSlot.EMAIL_WORK),
        IdentifierKind.PHONE: (ContactMethodSlot.PHONE,),
        IdentifierKind.CHAT_HANDLE: (ContactMethodSlot.CHAT_HANDLE,),
    }
)

WHATSAPP_SLOTS: Tuple[ContactMethodSlot, ...] = (
    ContactMethodSlot.WHATSAPP,
    ContactMethodSlot.PHONE,
)

KIND_BY_SLOT: Mapping[ContactMethodSlot, IdentifierKind] = MappingProxyType(
    {
        ContactMethodSlot.EMAIL_PERSONAL: IdentifierKind.EMAIL,
        ContactMethodSlot.EMAIL_WORK: IdentifierKind.EMAIL,
        ContactMethodSlot.PHONE: IdentifierKind.PHONE,
        ContactMethodSlot.WHATSAPP: IdentifierKind.PHONE,
        ContactMethodSlot.CHAT_HANDLE: IdentifierKind.CHAT_HANDLE,
    }
)


def slots_for(kind: IdentifierKind, whatsapp: bool = False) -> Tuple[ContactMethodSlot, ...]:
    """
    Every slot an identifier of ``kind`` may occupy, in preference order.

    ``whatsapp`` only applies to phones; it puts the WhatsApp slot first.
    """
    if whatsapp and kind is IdentifierKind.PHONE:
        return WHATSAPP_SLOTS
    return SLOTS_BY_KIND[kind]


def kind_for_slot(slot: ContactMethodSlot) -> IdentifierKind:
    return KIND_BY_SLOT[slot]


def is_email_slot(slot: ContactMethodSlot) -> bool:
    return slot in SLOTS_BY_KIND[IdentifierKind.EMAIL]
