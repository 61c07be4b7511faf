from __future__ import annotations

from typing import FrozenSet, Optional

from .models import ContactMethodSlot

WORK_HINTS: FrozenSet[str] = frozenset({"work", "other"})
PERSONAL_HINTS: FrozenSet[str] = frozenset({"personal", "home"})

FREE_EMAIL_DOMAINS: FrozenSet[str] = frozenset(
    {
        # global providers
        "gmail.com",
        "googlemail.com",
        "yahoo.com",
        "ymail.com",
        "rocketmail.com",
        "hotmail.com",
        "outlook.com",
        "live.com",
        "msn.com",
        "icloud.com",
        "me.com",
        "mac.com",
        "aol.com",
        "protonmail.com",
        "protonmail.ch",
        "proton.me",
        "pm.me",
        "gmx.com",
        "gmx.net",
        "mail.com",
        "zoho.com",
        "yandex.com",
        "tutanota.com",
        "fastmail.com",
        "hey.com",
        # regional variants
        "yahoo.co.uk",
        "yahoo.ca",
        "yahoo.com.au",
        "yahoo.fr",
        "yahoo.de",
        "yahoo.es",
        "yahoo.it",
        "yahoo.co.in",
        "yahoo.co.jp",
        "yahoo.com.br",
        "hotmail.co.uk",
        "hotmail.fr",
        "hotmail.de",
        "hotmail.es",
        "hotmail.it",
        "outlook.fr",
        "outlook.de",
        "live.co.uk",
        "live.fr",
        "gmx.de",
        "web.de",
        "t-online.de",
        "orange.fr",
        "free.fr",
        "laposte.net",
        "libero.it",
        "virgilio.it",
        "btinternet.com",
        "sky.com",
        "mail.ru",
        "yandex.ru",
        "seznam.cz",
        "wp.pl",
        "o2.pl",
        "bol.com.br",
        "uol.com.br",
        "rediffmail.com",
        "qq.com",
        "163.com",
        "126.com",
        "naver.com",
        "daum.net",
        # US ISPs
        "comcast.net",
        "verizon.net",
        "att.net",
        "sbcglobal.net",
        "cox.net",
        "charter.net",
    }
)


def is_free_email_domain(domain: str) -> bool:
    return (domain or "").strip().lower() in FREE_EMAIL_DOMAINS


def _domain_of(email: str) -> str:
    parts = (email or "").strip().split("@")
    return parts[1].lower() if len(parts) > 1 else ""


def infer_email_slot(email: str, origin_hint: Optional[str] = None) -> ContactMethodSlot:
    """
    Decide whether ``email`` belongs in the personal or the work email slot.

    A usable ``origin_hint`` from the source system wins over the domain.
    Without one, free-provider domains are personal and any other domain is
    work. An address with no domain at all is treated as personal, which is
    the opposite of the unknown-domain default; callers rely on both.
    """
    hint = (origin_hint or "").strip().lower()
    if hint in WORK_HINTS:
        return ContactMethodSlot.EMAIL_WORK
    if hint in PERSONAL_HINTS:
        return ContactMethodSlot.EMAIL_PERSONAL

    domain = _domain_of(email)
    if not domain:
        return ContactMethodSlot.EMAIL_PERSONAL
    if domain in FREE_EMAIL_DOMAINS:
        return ContactMethodSlot.EMAIL_PERSONAL
    return ContactMethodSlot.EMAIL_WORK
