"""
Dashboard content: useful links, projects and teaching sequences.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class Link:
    title: str
    url: str
    description: Optional[str] = None


@dataclass
class Project:
    title: str
    url: str
    description: str


@dataclass
class Resource:
    title: str
    type: str  # 'cours', 'exercice', 'video', 'lien', 'ressource', 'image'
    url: Optional[str] = None
    description: Optional[str] = None


@dataclass
class Sequence:
    slug: str
    title: str
    description: str
    status: str = "available"  # or 'coming-soon'
    resources: List[Resource] = field(default_factory=list)

    @property
    def url(self) -> str:
        return f"/sequences/{self.slug}"

    @property
    def is_available(self) -> bool:
        return self.status == "available"


USEFUL_LINKS: List[Link] = [
    Link("GitHub", "https://github.com/", "Mes repositories"),
    Link("Vercel", "https://vercel.com/login", "Déploiement"),
    Link("MDN HTML", "https://developer.mozilla.org/en-US/docs/Web/HTML/Reference/Elements", "Référence HTML"),
    Link("MDN CSS", "https://developer.mozilla.org/fr/docs/Web/CSS/Reference/Properties", "Référence CSS"),
    Link("MDN JavaScript", "https://developer.mozilla.org/fr/docs/Web/JavaScript/Reference", "Référence JavaScript"),
    Link("Adobe color", "https://color.adobe.com/fr/create/color-wheel", "Adobe color"),
    Link("TinkerCAD", "https://www.tinkercad.com/login", "CAO en ligne"),
    Link("Markdown", "https://docs.framasoft.org/fr/grav/markdown.html", "Référence Markdown"),
]

PROJECTS: List[Project] = [
    Project("Calisthenie Tracker", "https://calisthenie-tracker.vercel.app/",
            "Application de suivi d'entraînement calisthénie"),
    Project("Note Solve", "https://note-solve.vercel.app/", "Outil de gestion et calcul de notes"),
    Project("Ryse Portfolio", "https://ryse-portfolio.vercel.app", "Portfolio professionnel moderne"),
]

SEQUENCES: List[Sequence] = [
    Sequence(
        slug="sequence-Arduino",
        title="SEQ 1 - Arduino",
        description="Systèmes embarqués",
        resources=[
            Resource("Lien : Arduino documentation", "lien",
                     "https://www.arduino.cc/reference/fr/", "Documentation Arduino"),
            Resource("Ressource : Arduino ressource", "ressource",
                     "/files/cours", "Ressource de cours sur Arduino en .md"),
        ],
    ),
    Sequence(
        slug="sequence-HTML",
        title="SEQ 2 - HTML",
        description="HTML",
        status="coming-soon",
    ),
]

_SEQUENCES_BY_SLUG: Dict[str, Sequence] = {s.slug: s for s in SEQUENCES}


def get_sequence(slug: str) -> Optional[Sequence]:
    """Return an available sequence, or None."""
    sequence = _SEQUENCES_BY_SLUG.get(slug)
    if sequence and sequence.is_available:
        return sequence
    return None
