"""SPARQL query and update text used by the catalog and the repository.

Every IRI is written through rdflib's N3 serialization so that caller input
cannot break out of the query text.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence

from rdflib import URIRef

from shapeforms.codec import check_iri
from shapeforms.schema.common import PREFIXES

PREFIX_BLOCK = "\n".join(f"PREFIX {name}: <{ns}>" for name, ns in PREFIXES.items()) + "\n"

# rdfs:label wins over skos:prefLabel when both are present
LABEL_PREDICATES = ("rdfs:label", "skos:prefLabel")


def iri(value: str) -> str:
    return URIRef(check_iri(value)).n3()


def _shape_binding(target: str, shape: bool = False) -> str:
    """Graph pattern binding ?shape to the node shape(s) describing ``target``.

    A class is described by shapes declaring it as sh:targetClass, or by a
    node shape whose own IRI is the class IRI and which declares no target.
    With ``shape=True`` ``target`` is itself the node shape (sh:node).
    """
    ref = iri(target)
    if shape:
        return f"VALUES ?shape {{ {ref} }}\n  ?shape a sh:NodeShape ."
    return (
        f"{{ ?shape a sh:NodeShape ; sh:targetClass {ref} . }}\n"
        f"  UNION\n"
        f"  {{ VALUES ?shape {{ {ref} }}\n"
        f"    ?shape a sh:NodeShape .\n"
        f"    FILTER NOT EXISTS {{ ?shape sh:targetClass ?anyTarget }} }}"
    )


def _label_pattern(var: str, out: str) -> str:
    optionals = "\n  ".join(
        f"OPTIONAL {{ ?{var} {pred} ?{out}{i} }}" for i, pred in enumerate(LABEL_PREDICATES)
    )
    choices = ", ".join(f"?{out}{i}" for i in range(len(LABEL_PREDICATES)))
    return f"{optionals}\n  BIND(STR(COALESCE({choices}, STR(?{var}))) AS ?{out})"


def entity_types_query() -> str:
    return """
SELECT DISTINCT ?class ?label WHERE {
  { ?shape a sh:NodeShape ; sh:targetClass ?class . }
  UNION
  { ?class a sh:NodeShape ; sh:property ?anyProp .
    FILTER NOT EXISTS { ?class sh:targetClass ?anyTarget } }
  FILTER(isIRI(?class))
  OPTIONAL { ?class rdfs:label ?label }
}
"""


def subclass_edges_query() -> str:
    """All asserted (or inferred) subclass edges between named classes."""
    return """
SELECT DISTINCT ?child ?parent ?parentLabel WHERE {
  ?child rdfs:subClassOf ?parent .
  FILTER(?parent != ?child)
  FILTER(?parent != owl:Thing)
  FILTER(!isBlank(?parent))
  FILTER(!isBlank(?child))
  OPTIONAL { ?parent rdfs:label ?parentLabel }
}
"""


def shape_properties_query(target: str, shape: bool = False) -> str:
    return f"""
SELECT ?prop ?path ?name ?description ?datatype ?class ?node ?editor ?viewer
       ?minCount ?maxCount ?order ?role ?inList
WHERE {{
  {_shape_binding(target, shape)}
  ?shape sh:property ?prop .
  ?prop sh:path ?path .
  OPTIONAL {{ ?prop sh:name ?name }}
  OPTIONAL {{ ?prop sh:description ?description }}
  OPTIONAL {{ ?prop sh:datatype ?datatype }}
  OPTIONAL {{ ?prop sh:class ?class }}
  OPTIONAL {{ ?prop sh:node ?node }}
  OPTIONAL {{ ?prop shui:editor ?editor }}
  OPTIONAL {{ ?prop shui:viewer ?viewer }}
  OPTIONAL {{ ?prop dash:editor ?editor }}
  OPTIONAL {{ ?prop dash:viewer ?viewer }}
  OPTIONAL {{ ?prop sh:minCount ?minCount }}
  OPTIONAL {{ ?prop sh:maxCount ?maxCount }}
  OPTIONAL {{ ?prop sh:order ?order }}
  OPTIONAL {{ ?prop shui:propertyRole ?role }}
  OPTIONAL {{ ?prop sh:in ?inList }}
}}
"""


def enum_list_query(target: str, path: str, shape: bool = False) -> str:
    """Cells of the sh:in list declared for ``path``; order is rebuilt client-side."""
    return f"""
SELECT ?list ?cell ?first ?rest WHERE {{
  {_shape_binding(target, shape)}
  ?shape sh:property ?prop .
  ?prop sh:path {iri(path)} ;
        sh:in ?list .
  ?list rdf:rest* ?cell .
  ?cell rdf:first ?first ;
        rdf:rest ?rest .
}}
"""


def shape_paths_query(target: str, shape: bool = False) -> str:
    return f"""
SELECT DISTINCT ?path WHERE {{
  {_shape_binding(target, shape)}
  ?shape sh:property ?prop .
  ?prop sh:path ?path .
  FILTER(isIRI(?path))
}}
"""


def entity_values_query(entity: str, target: str, shape: bool = False) -> str:
    return f"""
SELECT DISTINCT ?path ?value WHERE {{
  {_shape_binding(target, shape)}
  ?shape sh:property ?prop .
  ?prop sh:path ?path .
  FILTER(isIRI(?path))
  {iri(entity)} ?path ?value .
}}
"""


def instances_query(class_uri: str, limit: int | None = None) -> str:
    """One row per instance, ordered case-insensitively by label.

    Grouping keeps an instance with several labels to a single row, so a
    LIMIT counts instances rather than label rows.
    """
    tail = f"\nLIMIT {int(limit)}" if limit is not None else ""
    return f"""
SELECT ?uri (MIN(?name) AS ?label) WHERE {{
  ?uri a {iri(class_uri)} .
  {_label_pattern("uri", "name")}
}}
GROUP BY ?uri
ORDER BY LCASE(?label) ?label ?uri{tail}
"""


def delete_paths_update(entity: str, paths: Sequence[str]) -> str:
    """Remove every value of ``entity`` at ``paths``."""
    listed = ", ".join(iri(p) for p in paths)
    subject = iri(entity)
    return f"""
DELETE {{ {subject} ?p ?o }}
WHERE {{
  {subject} ?p ?o .
  FILTER(?p IN ({listed}))
}}
"""


def insert_data_update(triples: Iterable[tuple]) -> str:
    body = "\n  ".join(f"{s.n3()} {p.n3()} {o.n3()} ." for s, p, o in triples)
    return f"INSERT DATA {{\n  {body}\n}}\n"


def delete_entity_update(entity: str) -> str:
    return f"DELETE WHERE {{ {iri(entity)} ?p ?o }}\n"


def join_updates(*updates: str) -> str:
    """Combine update operations into one request, executed in order."""
    return " ;\n".join(u.strip() for u in updates if u and u.strip()) + "\n"
