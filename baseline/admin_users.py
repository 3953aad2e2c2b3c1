"""
Admin personas allowed to manage the dashboard.

PINs are never part of the persona data; they are read from configuration.
"""
import hmac
from dataclasses import dataclass
from typing import List, Mapping, Optional


@dataclass(frozen=True)
class AdminPersona:
    slug: str
    name: str
    short_label: str
    title: str
    pin_setting: str


ADMIN_PERSONAS: List[AdminPersona] = [
    AdminPersona(
        slug="chase-admin",
        name="Chase (Admin)",
        short_label="Chase",
        title="Co-Founder",
        pin_setting="ADMIN_PIN_CHASE",
    ),
    AdminPersona(
        slug="sheldon-admin",
        name="Sheldon (Admin)",
        short_label="Sheldon",
        title="Partner",
        pin_setting="ADMIN_PIN_SHELDON",
    ),
]

ADMIN_SLUGS = [persona.slug for persona in ADMIN_PERSONAS]


def get_admin(slug: str) -> Optional[AdminPersona]:
    for persona in ADMIN_PERSONAS:
        if persona.slug == slug:
            return persona
    return None


def find_admin_by_pin(pin: str, settings: Mapping[str, str]) -> Optional[AdminPersona]:
    """Persona whose configured PIN matches; personas without a PIN can never log in"""
    for persona in ADMIN_PERSONAS:
        expected = (settings.get(persona.pin_setting) or "").strip()
        if expected and hmac.compare_digest(expected.encode("utf-8"), pin.encode("utf-8")):
            return persona
    return None


def author_label(slug: str) -> str:
    persona = get_admin(slug)
    if persona is None:
        return "Admin"
    return persona.short_label or persona.name
