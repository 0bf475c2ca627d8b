"""Specialist overlays appended to the base prompt."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from application.services.prompts.loader import load_template

DEFAULT_SPECIALIST = "default"


@dataclass(frozen=True)
class SpecialistConfig:
    id: str
    name: str
    name_rw: str
    icon: str
    template: Optional[str] = None

    @property
    def prompt(self) -> str:
        return load_template(self.template) if self.template else ""


SPECIALISTS: Dict[str, SpecialistConfig] = {
    "default": SpecialistConfig("default", "Bakame", "Bakame", "🐰"),
    "gov-services": SpecialistConfig(
        "gov-services", "Government Services", "Serivisi za Leta", "🏛️", "gov_services"
    ),
    "business-finance": SpecialistConfig(
        "business-finance", "Business & Finance", "Ubucuruzi n'Imari", "💼", "business_finance"
    ),
    "police-services": SpecialistConfig(
        "police-services", "Police Services", "Serivisi za Polisi", "👮", "police_services"
    ),
    "rra-tax": SpecialistConfig("rra-tax", "RRA Tax Guide", "Amahoro ya RRA", "📊", "rra_tax"),
    "health-guide": SpecialistConfig(
        "health-guide", "Health Guide", "Ubujyanama bw'Ubuzima", "⚕️", "health_guide"
    ),
    "education": SpecialistConfig("education", "Education", "Uburezi", "📚", "education"),
}


def get_specialist(specialist_id: Optional[str]) -> SpecialistConfig:
    """Config for ``specialist_id``; unknown ids get the default."""
    return SPECIALISTS.get(specialist_id or DEFAULT_SPECIALIST, SPECIALISTS[DEFAULT_SPECIALIST])


def get_specialist_prompt(specialist_id: Optional[str]) -> str:
    return get_specialist(specialist_id).prompt


def list_specialists() -> List[SpecialistConfig]:
    return list(SPECIALISTS.values())
