"""Catalog loading: geosite.dat (protobuf) and JSON rule catalogs.

The binary catalog is a serialized ``GeoSiteList`` message from the v2fly
router schema. Its schema is registered at runtime so no generated
``_pb2`` module is needed; unknown fields in newer catalogs are skipped
by the protobuf parser.
"""

import functools
import json
import logging
from pathlib import Path
from typing import Any

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError

from .errors import CatalogError, ErrorCode
from .models import Catalog, Category, MatchType, Rule

logger = logging.getLogger("geotag.catalog")

PROTO_PACKAGE = "v2ray.core.app.router.routercommon"

_Field = descriptor_pb2.FieldDescriptorProto


def _add_field(message, name: str, number: int, field_type: int, type_name: str = "", **kwargs):
    label = kwargs.pop("label", _Field.LABEL_OPTIONAL)
    field = message.field.add(name=name, number=number, type=field_type, label=label, **kwargs)
    if type_name:
        field.type_name = f".{PROTO_PACKAGE}.{type_name}"
    return field


def _build_schema() -> descriptor_pb2.FileDescriptorProto:
    """The subset of routercommon.proto needed to read geosite lists."""
    proto = descriptor_pb2.FileDescriptorProto(
        name="geotag/routercommon.proto", package=PROTO_PACKAGE, syntax="proto3"
    )

    domain = proto.message_type.add(name="Domain")
    domain_type = domain.enum_type.add(name="Type")
    for name, number in (("Plain", 0), ("Regex", 1), ("RootDomain", 2), ("Full", 3)):
        domain_type.value.add(name=name, number=number)

    attribute = domain.nested_type.add(name="Attribute")
    attribute.oneof_decl.add(name="typed_value")
    _add_field(attribute, "key", 1, _Field.TYPE_STRING)
    _add_field(attribute, "bool_value", 2, _Field.TYPE_BOOL, oneof_index=0)
    _add_field(attribute, "int_value", 3, _Field.TYPE_INT64, oneof_index=0)

    _add_field(domain, "type", 1, _Field.TYPE_ENUM, "Domain.Type")
    _add_field(domain, "value", 2, _Field.TYPE_STRING)
    _add_field(
        domain, "attribute", 3, _Field.TYPE_MESSAGE, "Domain.Attribute", label=_Field.LABEL_REPEATED
    )

    geosite = proto.message_type.add(name="GeoSite")
    _add_field(geosite, "country_code", 1, _Field.TYPE_STRING)
    _add_field(geosite, "domain", 2, _Field.TYPE_MESSAGE, "Domain", label=_Field.LABEL_REPEATED)
    _add_field(geosite, "resource_hash", 3, _Field.TYPE_BYTES)
    _add_field(geosite, "code", 4, _Field.TYPE_STRING)

    geosite_list = proto.message_type.add(name="GeoSiteList")
    _add_field(
        geosite_list, "entry", 1, _Field.TYPE_MESSAGE, "GeoSite", label=_Field.LABEL_REPEATED
    )
    return proto


@functools.lru_cache(maxsize=1)
def geosite_list_class():
    """Message class for ``GeoSiteList``, built once per process."""
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(_build_schema().SerializeToString())
    descriptor = pool.FindMessageTypeByName(f"{PROTO_PACKAGE}.GeoSiteList")
    return message_factory.GetMessageClass(descriptor)


def decode_geosite(data: bytes) -> Catalog:
    """Decode a serialized GeoSiteList into a Catalog.

    Raises:
        CatalogError: If the bytes are not a valid GeoSiteList.
    """
    message = geosite_list_class()()
    try:
        message.ParseFromString(data)
    except DecodeError as e:
        raise CatalogError(
            ErrorCode.CATALOG_DECODE_ERROR, "cannot decode geosite list", cause=e
        ) from e

    categories = []
    for site in message.entry:
        rules = tuple(
            Rule(
                match_type=MatchType.from_code(int(domain.type)),
                value=domain.value,
                attributes=tuple(attr.key for attr in domain.attribute),
            )
            for domain in site.domain
        )
        categories.append(Category(tag=site.country_code, rules=rules))
    return Catalog(tuple(categories))


def _json_rule(raw: Any, tag: str) -> Rule:
    if not isinstance(raw, dict) or "value" not in raw:
        raise ValueError(f"rule in {tag!r} must be an object with a 'value'")

    rule_type = raw.get("type", "domain")
    if isinstance(rule_type, bool) or not isinstance(rule_type, (int, str)):
        raise ValueError(f"rule type in {tag!r} must be a name or integer code")
    if isinstance(rule_type, int):
        match_type = MatchType.from_code(rule_type)
    else:
        match_type = MatchType.from_name(rule_type)

    raw_attrs = raw.get("attributes", [])
    if not isinstance(raw_attrs, list):
        raise ValueError(f"attributes in {tag!r} must be a list")

    attributes = []
    for attr in raw_attrs:
        key = attr.get("key") if isinstance(attr, dict) else attr
        if not isinstance(key, str):
            raise ValueError(f"attribute keys in {tag!r} must be strings")
        attributes.append(key)

    return Rule(match_type=match_type, value=str(raw["value"]), attributes=tuple(attributes))


def parse_json_catalog(data: Any) -> Catalog:
    """Build a Catalog from decoded JSON.

    Accepted shape, either bare or wrapped as ``{"categories": [...]}``::

        [{"tag": "ads", "rules": [{"type": "domain", "value": "ads.example.com",
                                   "attributes": ["cn"]}]}]

    Raises:
        CatalogError: If the structure does not match.
    """
    if isinstance(data, dict):
        data = data.get("categories")
    if not isinstance(data, list):
        raise CatalogError(ErrorCode.CATALOG_INVALID, "catalog must be a list of categories")

    categories = []
    try:
        for entry in data:
            tag = entry["tag"]
            rules = tuple(_json_rule(r, tag) for r in entry.get("rules", []))
            categories.append(Category(tag=str(tag), rules=rules))
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise CatalogError(ErrorCode.CATALOG_INVALID, f"malformed catalog: {e}", cause=e) from e
    return Catalog(tuple(categories))


def load_catalog(path: str | Path) -> Catalog:
    """
    Load a rule catalog from disk.

    ``.json`` files are read as JSON catalogs; anything else is decoded as
    a binary geosite list.

    Raises:
        CatalogError: If the file is missing, unreadable or malformed.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except FileNotFoundError as e:
        raise CatalogError(
            ErrorCode.CATALOG_NOT_FOUND, f"catalog not found: {path}", cause=e
        ) from e
    except OSError as e:
        raise CatalogError(
            ErrorCode.CATALOG_NOT_FOUND, f"cannot read catalog: {path}", cause=e
        ) from e

    if path.suffix.lower() == ".json":
        try:
            decoded = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CatalogError(
                ErrorCode.CATALOG_DECODE_ERROR, f"catalog is not valid JSON: {path}", cause=e
            ) from e
        catalog = parse_json_catalog(decoded)
    else:
        catalog = decode_geosite(data)

    if not len(catalog):
        logger.warning("Catalog %s has no categories", path, extra={"path": str(path)})
    logger.info(
        "Loaded catalog %s: %d categories, %d rules",
        path,
        len(catalog),
        catalog.rule_count,
        extra={"path": str(path), "categories": len(catalog), "rules": catalog.rule_count},
    )
    return catalog
