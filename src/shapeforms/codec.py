"""Translate entity values to and from RDF terms.

Encoding rules:
- reference → IRI link, never a literal
- literal with a language tag → language-tagged literal
- literal with a datatype → typed literal
- any other literal → plain string literal

Decoding relies on the store's own term typing, so display code needs no
separate type registry.
"""
from __future__ import annotations

import re
import secrets
import string
import threading
import time
from collections import OrderedDict
from collections.abc import Iterable, Mapping
from typing import Optional, Union

import rdflib
from rdflib import RDF, BNode, URIRef

from shapeforms.errors import InvalidValueError
from shapeforms.schema.values import EntityValue, EntityValues

DEFAULT_NAMESPACE = "http://archigraph.org/data#"

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 9
_INVALID_IRI_CHARS = re.compile(r'[\s<>"{}|\\^`]')

# Older identifiers carry an earlier timestamp and cannot be drawn again
_RECENT_LIMIT = 4096
_recent: OrderedDict[str, None] = OrderedDict()
_recent_lock = threading.Lock()

RawValue = Union[EntityValue, str]


def check_iri(value: str) -> str:
    """Reject strings that cannot be written as an IRI."""
    if not value or _INVALID_IRI_CHARS.search(value) or ":" not in value:
        raise InvalidValueError(f"Not a valid IRI: {value!r}")
    return value


def to_term(value: EntityValue) -> rdflib.term.Node:
    """Encode an EntityValue as an rdflib term."""
    if value.is_reference:
        return URIRef(check_iri(value.value))
    if value.language:
        return rdflib.Literal(value.value, lang=value.language)
    if value.datatype:
        return rdflib.Literal(value.value, datatype=URIRef(value.datatype))
    return rdflib.Literal(value.value)


def from_term(term: rdflib.term.Node) -> Optional[EntityValue]:
    """Decode an rdflib term into an EntityValue.

    Blank nodes have no stable identity across requests and decode to None.
    """
    if isinstance(term, URIRef):
        return EntityValue(value=str(term), is_reference=True)
    if isinstance(term, rdflib.Literal):
        return EntityValue(
            value=str(term),
            datatype=str(term.datatype) if term.datatype else None,
            language=term.language or None,
        )
    if isinstance(term, BNode):
        return None
    return EntityValue(value=str(term))


def term_from_binding(binding: Mapping[str, str]) -> rdflib.term.Node:
    """Convert one SPARQL JSON results binding into an rdflib term.

    E.g., {"type": "literal", "value": "1", "datatype": "...#integer"}
    """
    kind = binding.get("type")
    value = binding.get("value", "")
    if kind == "uri":
        return URIRef(value)
    if kind == "bnode":
        return BNode(value)
    language = binding.get("xml:lang")
    if language:
        # Some stores also report rdf:langString, which rdflib rejects alongside a tag
        return rdflib.Literal(value, lang=language)
    datatype = binding.get("datatype")
    return rdflib.Literal(value, datatype=URIRef(datatype) if datatype else None)


def coerce_value(raw: RawValue) -> EntityValue:
    if isinstance(raw, EntityValue):
        return raw
    return EntityValue(value=str(raw))


def normalize_values(values: Mapping[str, Union[RawValue, Iterable[RawValue]]]) -> EntityValues:
    """Normalize caller-supplied values to path → list of EntityValue.

    Plain strings become plain literals; empty values are dropped.
    """
    normalized: EntityValues = {}
    for path, raw in values.items():
        items = [raw] if isinstance(raw, (str, EntityValue)) else list(raw)
        kept = [coerce_value(item) for item in items]
        kept = [v for v in kept if v.value]
        if kept:
            normalized[path] = kept
    return normalized


def entity_triples(entity_uri: str, values: EntityValues) -> list[tuple]:
    """Build the triples that store ``values`` on ``entity_uri``."""
    subject = URIRef(check_iri(entity_uri))
    triples = []
    for path, items in values.items():
        predicate = URIRef(check_iri(path))
        for item in items:
            triples.append((subject, predicate, to_term(item)))
    return triples


def type_triple(entity_uri: str, class_uri: str) -> tuple:
    return (URIRef(check_iri(entity_uri)), RDF.type, URIRef(check_iri(class_uri)))


def _random_suffix() -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))


def mint_entity_iri(namespace: str = DEFAULT_NAMESPACE) -> str:
    """Mint a fresh entity identifier under ``namespace``.

    Format: <namespace>inst-<epoch millis>-<random base36 suffix>. The last
    identifiers handed out by this process are remembered, so a suffix drawn
    twice within one millisecond is redrawn.
    """
    with _recent_lock:
        while True:
            iri = f"{namespace}inst-{int(time.time() * 1000)}-{_random_suffix()}"
            if iri not in _recent:
                break
        _recent[iri] = None
        while len(_recent) > _RECENT_LIMIT:
            _recent.popitem(last=False)
        return iri
