"""Shared vocabulary and small helpers for shapes, values and type nodes."""
from __future__ import annotations

from dataclasses import dataclass

from rdflib import Namespace
from rdflib.namespace import OWL, RDF, RDFS, SH, SKOS, XSD

SHUI = Namespace("http://www.w3.org/ns/shacl-ui#")
DASH = Namespace("http://datashapes.org/dash#")

# Namespaces whose local names are accepted as widget hints
HINT_NAMESPACES = (str(SHUI), str(DASH))

DEFAULT_ORDER = 999  # Sentinel so unordered properties sort last

PREFIXES = {
    "sh": SH,
    "shui": SHUI,
    "dash": DASH,
    "rdf": RDF,
    "rdfs": RDFS,
    "xsd": XSD,
    "owl": OWL,
    "skos": SKOS,
}


def local_name(iri: str) -> str:
    """Return the last segment of an IRI.

    E.g., 'http://example.org/onto#Person' → 'Person'
         'http://schema.org/name' → 'name'
    """
    if "#" in iri:
        name = iri.rsplit("#", 1)[-1]
    else:
        name = iri.rstrip("/").rsplit("/", 1)[-1]
    return name or iri


def label_sort_key(label: str, uri: str = "") -> tuple[str, str, str]:
    """Case-insensitive label ordering, ties broken on exact label then uri."""
    return (label.casefold(), label, uri)


@dataclass(frozen=True)
class ResourceRef:
    """An identified resource together with its display label."""
    uri: str
    label: str
