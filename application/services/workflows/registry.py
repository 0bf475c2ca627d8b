"""
Workflow Registry

Knowledge workflows hosted on the workflow engine, with the trigger
keywords and patterns the matcher scores queries against.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Pattern


@dataclass(frozen=True)
class WorkflowParameter:
    """One input accepted by a workflow."""

    name: str
    type: str
    required: bool
    description: str


@dataclass(frozen=True)
class WorkflowDefinition:
    """A routable workflow."""

    id: str
    name: str
    name_rw: str
    description: str
    category: str
    triggers: List[str]
    trigger_patterns: List[Pattern[str]] = field(default_factory=list)
    parameters: List[WorkflowParameter] = field(default_factory=list)
    response_type: str = "text"
    enabled: bool = True


WORKFLOW_REGISTRY: List[WorkflowDefinition] = [
    WorkflowDefinition(
        id="bakame-tax",
        name="Rwanda Tax Info",
        name_rw="Amakuru y'Imisoro",
        description="Rwanda tax information from RRA (VAT, income tax, TIN, filing)",
        category="knowledge",
        triggers=[
            "tax", "imisoro", "vat", "rra", "tin", "tax rate", "umusoro",
            "filing", "ebm", "withholding", "paye", "customs", "import duty",
            "kubara imisoro", "kwishyura imisoro",
        ],
    ),
    WorkflowDefinition(
        id="bakame-gov-services",
        name="Government Services",
        name_rw="Serivisi za Leta",
        description="Irembo services, documents, registration procedures",
        category="knowledge",
        triggers=[
            "irembo", "government", "leta", "passport", "id card", "indangamuntu",
            "birth certificate", "icyemezo", "permit", "license", "uruhushya",
            "registration", "kwiyandikisha", "rdb", "business registration",
        ],
    ),
    WorkflowDefinition(
        id="bakame-business",
        name="Business & Finance",
        name_rw="Ubucuruzi n'Imari",
        description="Business registration, banking, MoMo, investment",
        category="knowledge",
        triggers=[
            "business", "ubucuruzi", "company", "sosiyete", "bank", "banki",
            "momo", "mobile money", "airtel money", "investment", "ishoramari",
            "loan", "inguzanyo", "import", "export", "trade",
        ],
    ),
    WorkflowDefinition(
        id="bakame-health",
        name="Health Guide",
        name_rw="Ubujyanama bw'Ubuzima",
        description="Health information, hospitals, insurance (Mutuelle)",
        category="knowledge",
        triggers=[
            "health", "ubuzima", "hospital", "ibitaro", "clinic", "kliniki",
            "mutuelle", "insurance", "ubwishingizi", "doctor", "muganga",
            "medicine", "imiti", "pharmacy", "farumasi",
        ],
    ),
    WorkflowDefinition(
        id="bakame-education",
        name="Education",
        name_rw="Uburezi",
        description="Schools, exams, university, scholarships",
        category="knowledge",
        triggers=[
            "education", "uburezi", "school", "ishuri", "university", "kaminuza",
            "exam", "ikizami", "scholarship", "bourse", "admission", "kwinjira",
            "student", "umunyeshuri", "teacher", "mwarimu",
        ],
    ),
    WorkflowDefinition(
        id="bakame-police",
        name="Police Services",
        name_rw="Serivisi za Polisi",
        description="Police clearance, traffic, reporting incidents",
        category="knowledge",
        triggers=[
            "police", "polisi", "clearance", "ubuziranenge", "traffic", "umuhanda",
            "accident", "impanuka", "report", "gutanga ikirego", "crime",
            "emergency", "byihutirwa", "112", "113",
        ],
    ),
]


def get_enabled_workflows(
    registry: Optional[List[WorkflowDefinition]] = None,
) -> List[WorkflowDefinition]:
    return [w for w in (registry or WORKFLOW_REGISTRY) if w.enabled]

