# src/serialization/xmi.py — v2
"""XMI encoding of documents and of the type system describing them.

Document layout:
    <xmi:XMI xmi:version="2.0">
      <cas:DocumentMetaData documentId="..."/>
      <cas:Sofa sofaString="..."/>
      <cas:Metadata key="..." value="..."/>        (0..n)
      <cas:Annotation xmi:id="1" type="Token" begin="0" end="3">
        <cas:Feature name="pos" value="NN"/>       (0..n)
      </cas:Annotation>
    </xmi:XMI>

Type system layout (typesystem.xml):
    <typeSystemDescription>
      <types>
        <typeDescription>
          <name>Token</name>
          <features><featureDescription><name>pos</name></featureDescription></features>
        </typeDescription>
      </types>
    </typeSystemDescription>

A string holding characters XML 1.0 cannot represent is stored base64
encoded: as attribute <name>Base64 instead of <name>, or as
<name encoding="base64"> in the type system.
"""

from __future__ import annotations

import base64
import re

from lxml import etree

from cascache.core.models import Annotation, Document

XMI_NS = "http://www.omg.org/XMI"
CAS_NS = "http:///cascache/cas.ecore"
TYPE_SYSTEM_NS = "http://uima.apache.org/resourceSpecifier"

_NSMAP = {"xmi": XMI_NS, "cas": CAS_NS}
_XMI = f"{{{XMI_NS}}}"
_CAS = f"{{{CAS_NS}}}"
_TS = f"{{{TYPE_SYSTEM_NS}}}"

# Characters outside the XML 1.0 Char production, surrogates included.
_NON_XML_CHARS = re.compile(
    "[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)
_BASE64_SUFFIX = "Base64"

TypeSystem = dict[str, set[str]]


class XmiFormatError(ValueError):
    """Raised when an XMI or type system payload cannot be decoded."""


def _parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True)


def _parse(data: bytes, what: str) -> etree._Element:
    try:
        return etree.fromstring(data, parser=_parser())
    except etree.XMLSyntaxError as e:
        raise XmiFormatError(f"Malformed {what}: {e}") from e


def _int_attr(element: etree._Element, name: str) -> int:
    raw = element.get(name)
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise XmiFormatError(
            f"Attribute {name!r} of <{etree.QName(element).localname}> "
            f"is not an integer: {raw!r}"
        ) from e


def _set_string(element: etree._Element, name: str, value: str) -> None:
    """Set a string attribute, base64-encoding values XML cannot carry.

    Such values go to a companion attribute named <name>Base64 holding the
    UTF-8 bytes of the value.
    """
    if _NON_XML_CHARS.search(value) is None:
        element.set(name, value)
    else:
        encoded = base64.b64encode(value.encode("utf-8", "surrogatepass"))
        element.set(name + _BASE64_SUFFIX, encoded.decode("ascii"))


def _get_string(element: etree._Element, name: str, default: str = "") -> str:
    encoded = element.get(name + _BASE64_SUFFIX)
    if encoded is None:
        return element.get(name, default)
    try:
        return base64.b64decode(encoded, validate=True).decode("utf-8", "surrogatepass")
    except ValueError as e:
        raise XmiFormatError(
            f"Attribute {name + _BASE64_SUFFIX!r} of "
            f"<{etree.QName(element).localname}> is not valid base64 UTF-8"
        ) from e


def _string_element(parent: etree._Element, tag: str, **attributes: str) -> etree._Element:
    element = etree.SubElement(parent, tag)
    for name, value in attributes.items():
        _set_string(element, name, value)
    return element


def document_to_xmi(document: Document) -> bytes:
    """Encode a document as XMI bytes.

    Any string, including control characters XML 1.0 cannot represent,
    survives the round trip through document_from_xmi.
    """
    root = etree.Element(f"{_XMI}XMI", nsmap=_NSMAP)
    root.set(f"{_XMI}version", "2.0")

    _string_element(root, f"{_CAS}DocumentMetaData", documentId=document.id)
    _string_element(root, f"{_CAS}Sofa", sofaString=document.text)

    for key, value in sorted(document.metadata.items()):
        _string_element(root, f"{_CAS}Metadata", key=key, value=value)

    for index, annotation in enumerate(document.annotations, start=1):
        node = _string_element(root, f"{_CAS}Annotation", type=annotation.type)
        node.set("begin", str(annotation.begin))
        node.set("end", str(annotation.end))
        node.set(f"{_XMI}id", str(index))
        for name, value in sorted(annotation.features.items()):
            _string_element(node, f"{_CAS}Feature", name=name, value=value)

    return etree.tostring(
        root, xml_declaration=True, encoding="UTF-8", pretty_print=True
    )


def document_from_xmi(
    data: bytes, type_system: TypeSystem | None = None
) -> Document:
    """Decode XMI bytes into a document.

    Args:
        data: XMI payload.
        type_system: When given, every annotation type and feature must be
            declared in it.

    Raises:
        XmiFormatError: Malformed payload or undeclared annotation type.
    """
    root = _parse(data, "XMI document")
    if root.tag != f"{_XMI}XMI":
        raise XmiFormatError(f"Unexpected root element: {root.tag}")

    meta = root.find(f"{_CAS}DocumentMetaData")
    document_id = _get_string(meta, "documentId") if meta is not None else ""
    if not document_id:
        raise XmiFormatError("XMI document has no documentId")

    sofa = root.find(f"{_CAS}Sofa")
    text = _get_string(sofa, "sofaString") if sofa is not None else ""

    metadata = {
        _get_string(node, "key"): _get_string(node, "value")
        for node in root.iterfind(f"{_CAS}Metadata")
    }

    annotations: list[Annotation] = []
    for node in root.iterfind(f"{_CAS}Annotation"):
        annotation_type = _get_string(node, "type")
        features = {
            _get_string(feature, "name"): _get_string(feature, "value")
            for feature in node.iterfind(f"{_CAS}Feature")
        }
        if type_system is not None:
            _check_declared(type_system, annotation_type, features)
        annotations.append(
            Annotation(
                type=annotation_type,
                begin=_int_attr(node, "begin"),
                end=_int_attr(node, "end"),
                features=features,
            )
        )

    return Document(
        id=document_id,
        text=text,
        annotations=annotations,
        metadata=metadata,
    )


def _check_declared(
    type_system: TypeSystem, annotation_type: str, features: dict[str, str]
) -> None:
    if annotation_type not in type_system:
        raise XmiFormatError(
            f"Annotation type {annotation_type!r} is not declared in the type system"
        )
    undeclared = set(features) - type_system[annotation_type]
    if undeclared:
        raise XmiFormatError(
            f"Features {sorted(undeclared)} of type {annotation_type!r} "
            "are not declared in the type system"
        )


def _name_element(parent: etree._Element, value: str) -> None:
    element = etree.SubElement(parent, f"{_TS}name")
    if _NON_XML_CHARS.search(value) is None:
        element.text = value
    else:
        element.set("encoding", "base64")
        element.text = base64.b64encode(value.encode("utf-8", "surrogatepass")).decode("ascii")


def _name_text(element: etree._Element | None) -> str | None:
    if element is None:
        return None
    text = element.text or ""
    if element.get("encoding") != "base64":
        return text
    try:
        return base64.b64decode(text, validate=True).decode("utf-8", "surrogatepass")
    except ValueError as e:
        raise XmiFormatError("Type system name is not valid base64 UTF-8") from e


def type_system_to_xml(type_system: TypeSystem) -> bytes:
    """Encode a type system (type name -> feature names) as XML bytes."""
    root = etree.Element(f"{_TS}typeSystemDescription", nsmap={None: TYPE_SYSTEM_NS})
    types = etree.SubElement(root, f"{_TS}types")
    for type_name in sorted(type_system):
        description = etree.SubElement(types, f"{_TS}typeDescription")
        _name_element(description, type_name)
        features = etree.SubElement(description, f"{_TS}features")
        for feature_name in sorted(type_system[type_name]):
            feature = etree.SubElement(features, f"{_TS}featureDescription")
            _name_element(feature, feature_name)
    return etree.tostring(
        root, xml_declaration=True, encoding="UTF-8", pretty_print=True
    )


def type_system_from_xml(data: bytes) -> TypeSystem:
    """Decode type system XML bytes."""
    root = _parse(data, "type system")
    if root.tag != f"{_TS}typeSystemDescription":
        raise XmiFormatError(f"Unexpected root element: {root.tag}")

    type_system: TypeSystem = {}
    for description in root.iterfind(f"{_TS}types/{_TS}typeDescription"):
        name = _name_text(description.find(f"{_TS}name"))
        if not name:
            raise XmiFormatError("Type description without a name")
        type_system[name] = {
            _name_text(feature_name)
            for feature_name in description.iterfind(
                f"{_TS}features/{_TS}featureDescription/{_TS}name"
            )
        }
    return type_system
