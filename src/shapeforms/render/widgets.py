"""Widget resolution: map a ShapeProperty to an editor or viewer behavior.

Both resolvers are pure priority chains:

1. an explicit shui:/dash: hint naming a known widget wins;
2. otherwise the first matching constraint decides, in this order:
   enumeration, reference, boolean, date, HTML, language string, URI,
   and finally plain text.

Text area, label, image and URI viewers are only ever chosen by hint.
"""
from __future__ import annotations

import datetime
import html
import re
from collections.abc import Callable
from enum import Enum
from typing import Optional

from rdflib.namespace import RDF, XSD

from shapeforms.codec import check_iri
from shapeforms.errors import InvalidValueError
from shapeforms.schema.common import HINT_NAMESPACES, local_name
from shapeforms.schema.shape import ShapeProperty
from shapeforms.schema.values import EntityValue

XSD_BOOLEAN = str(XSD.boolean)
XSD_DATE = str(XSD.date)
XSD_ANY_URI = str(XSD.anyURI)
RDF_HTML = str(RDF.HTML)
RDF_LANG_STRING = str(RDF.langString)


class EditorKind(Enum):
    TEXT_FIELD = "TextFieldEditor"
    TEXT_AREA = "TextAreaEditor"
    ENUM_SELECT = "EnumSelectEditor"
    BOOLEAN_SELECT = "BooleanSelectEditor"
    DATE_PICKER = "DatePickerEditor"
    INSTANCE_SELECT = "InstancesSelectEditor"
    INSTANCES_MULTI_SELECT = "InstancesMultiSelectEditor"
    RICH_TEXT = "RichTextEditor"
    LANG_STRING = "TextFieldWithLangEditor"
    URI = "URIEditor"
    DETAILS = "DetailsEditor"


class ViewerKind(Enum):
    LITERAL = "LiteralViewer"
    LABEL = "LabelViewer"
    URI = "URIViewer"
    LANG_STRING = "LangStringViewer"
    HTML = "HTMLViewer"
    IMAGE = "ImageViewer"
    HYPERLINK = "HyperlinkViewer"
    ENUM = "EnumViewer"
    BOOLEAN = "BooleanViewer"
    DATE = "DateViewer"
    DETAILS = "DetailsViewer"
    VALUE_TABLE = "ValueTableViewer"


_EDITOR_ALIASES = {
    "AutoCompleteEditor": EditorKind.INSTANCE_SELECT,
}

_EDITOR_NAMES = {k.value: k for k in EditorKind} | _EDITOR_ALIASES
_VIEWER_NAMES = {k.value: k for k in ViewerKind}


def _hint_name(hint: Optional[str]) -> Optional[str]:
    """Local name of a hint IRI in a recognised widget namespace."""
    if not hint:
        return None
    for ns in HINT_NAMESPACES:
        if hint.startswith(ns):
            return hint[len(ns):]
    return None


# ── Constraint predicates ───────────────────────────────────────


def has_enumeration(prop: ShapeProperty) -> bool:
    return bool(prop.enum_values)


def is_reference(prop: ShapeProperty) -> bool:
    return prop.is_reference


def _has_datatype(datatype: str) -> Callable[[ShapeProperty], bool]:
    return lambda prop: prop.datatype == datatype


# ── Resolution chains ───────────────────────────────────────────

_EDITOR_CHAIN: tuple[tuple[Callable[[ShapeProperty], bool], Callable[[ShapeProperty], EditorKind]], ...] = (
    (has_enumeration, lambda p: EditorKind.ENUM_SELECT),
    (is_reference, lambda p: EditorKind.INSTANCES_MULTI_SELECT if p.is_multi else EditorKind.INSTANCE_SELECT),
    (_has_datatype(XSD_BOOLEAN), lambda p: EditorKind.BOOLEAN_SELECT),
    (_has_datatype(XSD_DATE), lambda p: EditorKind.DATE_PICKER),
    (_has_datatype(RDF_HTML), lambda p: EditorKind.RICH_TEXT),
    (_has_datatype(RDF_LANG_STRING), lambda p: EditorKind.LANG_STRING),
    (_has_datatype(XSD_ANY_URI), lambda p: EditorKind.URI),
)

_VIEWER_CHAIN: tuple[tuple[Callable[[ShapeProperty], bool], Callable[[ShapeProperty], ViewerKind]], ...] = (
    (has_enumeration, lambda p: ViewerKind.ENUM),
    (is_reference, lambda p: ViewerKind.VALUE_TABLE if p.is_multi else ViewerKind.DETAILS),
    (_has_datatype(XSD_BOOLEAN), lambda p: ViewerKind.BOOLEAN),
    (_has_datatype(XSD_DATE), lambda p: ViewerKind.DATE),
    (_has_datatype(RDF_HTML), lambda p: ViewerKind.HTML),
    (_has_datatype(RDF_LANG_STRING), lambda p: ViewerKind.LANG_STRING),
    (_has_datatype(XSD_ANY_URI), lambda p: ViewerKind.HYPERLINK),
)


def resolve_editor(prop: ShapeProperty) -> EditorKind:
    """Pick the editor for a property."""
    hinted = _EDITOR_NAMES.get(_hint_name(prop.editor_hint))
    if hinted is not None:
        return hinted
    for matches, choose in _EDITOR_CHAIN:
        if matches(prop):
            return choose(prop)
    return EditorKind.TEXT_FIELD


def resolve_viewer(prop: ShapeProperty) -> ViewerKind:
    """Pick the viewer for a property."""
    hinted = _VIEWER_NAMES.get(_hint_name(prop.viewer_hint))
    if hinted is not None:
        return hinted
    for matches, choose in _VIEWER_CHAIN:
        if matches(prop):
            return choose(prop)
    return ViewerKind.LITERAL


# ── Editor behaviors: raw input → EntityValue ───────────────────

_LANG_TAGGED = re.compile(r"^(.+)@([a-zA-Z]+(?:-[a-zA-Z0-9]+)*)$", re.DOTALL)
_TRUE = {"true", "yes", "1"}
_FALSE = {"false", "no", "0"}


def _literal(prop: ShapeProperty, raw: str) -> EntityValue:
    return EntityValue(value=raw, datatype=prop.datatype)


def _enum_choice(prop: ShapeProperty, raw: str) -> EntityValue:
    for option in prop.enum_values or ():
        if option.value == raw:
            return option
    raise InvalidValueError(f"{raw!r} is not one of the allowed values for {prop.name}")


def _boolean(prop: ShapeProperty, raw: str) -> EntityValue:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return EntityValue(value="true", datatype=XSD_BOOLEAN)
    if lowered in _FALSE:
        return EntityValue(value="false", datatype=XSD_BOOLEAN)
    raise InvalidValueError(f"{raw!r} is not a boolean")


def _date(prop: ShapeProperty, raw: str) -> EntityValue:
    try:
        parsed = datetime.date.fromisoformat(raw.strip())
    except ValueError as e:
        raise InvalidValueError(f"{raw!r} is not a date (YYYY-MM-DD)") from e
    return EntityValue(value=parsed.isoformat(), datatype=XSD_DATE)


def _reference(prop: ShapeProperty, raw: str) -> EntityValue:
    return EntityValue(value=check_iri(raw.strip()), is_reference=True)


def _rich_text(prop: ShapeProperty, raw: str) -> EntityValue:
    return EntityValue(value=raw, datatype=RDF_HTML)


def _lang_string(prop: ShapeProperty, raw: str) -> EntityValue:
    m = _LANG_TAGGED.match(raw)
    if m:
        return EntityValue(value=m.group(1), language=m.group(2).lower())
    return EntityValue(value=raw)


def _uri(prop: ShapeProperty, raw: str) -> EntityValue:
    value = check_iri(raw.strip())
    if prop.datatype == XSD_ANY_URI:
        return EntityValue(value=value, datatype=XSD_ANY_URI)
    return EntityValue(value=value, is_reference=True)


EDITORS: dict[EditorKind, Callable[[ShapeProperty, str], EntityValue]] = {
    EditorKind.TEXT_FIELD: _literal,
    EditorKind.TEXT_AREA: _literal,
    EditorKind.ENUM_SELECT: _enum_choice,
    EditorKind.BOOLEAN_SELECT: _boolean,
    EditorKind.DATE_PICKER: _date,
    EditorKind.INSTANCE_SELECT: _reference,
    EditorKind.INSTANCES_MULTI_SELECT: _reference,
    EditorKind.RICH_TEXT: _rich_text,
    EditorKind.LANG_STRING: _lang_string,
    EditorKind.URI: _uri,
    EditorKind.DETAILS: _reference,
}


def parse_input(prop: ShapeProperty, raw: str) -> EntityValue:
    """Turn user input for ``prop`` into a value ready for writing.

    Raises:
        InvalidValueError: if the input does not fit the property's editor.
    """
    return EDITORS[resolve_editor(prop)](prop, raw)


# ── Viewer behaviors: EntityValue → display text ────────────────

_TAG = re.compile(r"<[^>]+>")


def _show_literal(value: EntityValue) -> str:
    return value.value


def _show_label(value: EntityValue) -> str:
    return local_name(value.value)


def _show_lang_string(value: EntityValue) -> str:
    if value.language:
        return f"{value.value} [{value.language}]"
    m = _LANG_TAGGED.match(value.value)
    if m:
        return f"{m.group(1)} [{m.group(2)}]"
    return value.value


def _show_html(value: EntityValue) -> str:
    return html.unescape(_TAG.sub("", value.value)).strip()


def _show_hyperlink(value: EntityValue) -> str:
    return re.sub(r"^https?://(www\.)?", "", value.value).rstrip("/")


def _show_enum(value: EntityValue) -> str:
    return local_name(value.value) if value.is_reference else value.value


def _show_boolean(value: EntityValue) -> str:
    lowered = value.value.lower()
    if lowered in _TRUE:
        return "Yes"
    if lowered in _FALSE:
        return "No"
    return value.value


VIEWERS: dict[ViewerKind, Callable[[EntityValue], str]] = {
    ViewerKind.LITERAL: _show_literal,
    ViewerKind.LABEL: _show_label,
    ViewerKind.URI: _show_literal,
    ViewerKind.LANG_STRING: _show_lang_string,
    ViewerKind.HTML: _show_html,
    ViewerKind.IMAGE: _show_literal,
    ViewerKind.HYPERLINK: _show_hyperlink,
    ViewerKind.ENUM: _show_enum,
    ViewerKind.BOOLEAN: _show_boolean,
    ViewerKind.DATE: _show_literal,
    ViewerKind.DETAILS: _show_label,
    ViewerKind.VALUE_TABLE: _show_label,
}


def display_value(kind: ViewerKind, value: EntityValue) -> str:
    return VIEWERS[kind](value)
