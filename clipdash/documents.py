"""
Markdown documents served by the viewer under /files/{slug}.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import List

from clipdash.errors import NotFound
from clipdash.security import log_security_event, sanitize_slug, validate_path_traversal

DOCUMENT_SUFFIX = ".md"


@dataclass
class Document:
    slug: str
    title: str
    body: str


def format_title(slug: str) -> str:
    """'cours-arduino' -> 'Cours Arduino'"""
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def list_documents(docs_path: Path) -> List[str]:
    """Slugs of the available documents, sorted."""
    if not docs_path.is_dir():
        return []
    return sorted(p.stem for p in docs_path.glob(f"*{DOCUMENT_SUFFIX}") if p.is_file())


def load_document(docs_path: Path, slug: str) -> Document:
    """
    Read a Markdown document by slug.

    Raises:
        NotFound: If the slug is empty after sanitization or the file is missing
    """
    safe_slug = sanitize_slug(slug)
    if not safe_slug:
        log_security_event("invalid_document_slug", {"slug": slug[:50]})
        raise NotFound("Fichier non trouvé")

    try:
        path = validate_path_traversal(docs_path, safe_slug + DOCUMENT_SUFFIX)
    except ValueError:
        raise NotFound("Fichier non trouvé")

    if not path.is_file():
        raise NotFound("Fichier non trouvé")

    return Document(
        slug=safe_slug,
        title=format_title(safe_slug),
        body=path.read_text(encoding="utf-8"),
    )
