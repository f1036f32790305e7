"""Per-resource configuration and the defaults every resource starts from."""

from __future__ import annotations

import copy
import dataclasses
import datetime
import json
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from upjet.externalname import NAME_AS_IDENTIFIER, ExternalName
from upjet.schema import SchemaResource

EXTERNAL_RESOURCE_TAG_KEY_KIND = "crossplane-kind"
EXTERNAL_RESOURCE_TAG_KEY_NAME = "crossplane-name"
EXTERNAL_RESOURCE_TAG_KEY_PROVIDER = "crossplane-providerconfig"

MANAGEMENT_ACTION_OBSERVE = "Observe"

DEFAULT_VERSION = "v1alpha1"

_ACRONYMS = {
    "acl": "ACL",
    "api": "API",
    "arn": "ARN",
    "cidr": "CIDR",
    "cpu": "CPU",
    "db": "DB",
    "dns": "DNS",
    "http": "HTTP",
    "https": "HTTPS",
    "id": "ID",
    "ip": "IP",
    "ipv4": "IPV4",
    "ipv6": "IPV6",
    "json": "JSON",
    "kms": "KMS",
    "sql": "SQL",
    "ssh": "SSH",
    "ssl": "SSL",
    "tls": "TLS",
    "ttl": "TTL",
    "uri": "URI",
    "url": "URL",
    "uuid": "UUID",
    "vpc": "VPC",
    "vpn": "VPN",
    "xml": "XML",
}

AdditionalConnectionDetailsFn = Callable[[Mapping], Optional[Dict[str, bytes]]]


def nop_additional_connection_details(attr: Mapping) -> Optional[Dict[str, bytes]]:
    """Check the attributes and add no connection details."""
    if not isinstance(attr, Mapping):
        raise TypeError(f"attributes must be a mapping, not {type(attr).__name__}")
    return None


@dataclass
class Reference:
    """How a cross-resource reference resolver is generated for a field."""

    type: str = ""
    terraform_name: str = ""
    extractor: str = ""
    ref_field_name: str = ""
    selector_field_name: str = ""


@dataclass
class Sensitive:
    """Handling of sensitive fields and extra connection details."""

    additional_connection_details_fn: AdditionalConnectionDetailsFn = (
        nop_additional_connection_details
    )
    field_paths: Dict[str, str] = field(default_factory=dict)

    def add_field_path(self, tf: str, xp: str) -> None:
        """Record that the Terraform path ``tf`` maps to the CRD path ``xp``."""
        self.field_paths[tf] = xp


@dataclass
class LateInitializer:
    """Controls which fields are skipped during late-initialization."""

    ignored_fields: List[str] = field(default_factory=list)
    ignored_canonical_field_paths: List[str] = field(default_factory=list)

    def add_ignored_canonical_field(self, field: str) -> None:
        """Add a canonical field path to skip during late-initialization."""
        self.ignored_canonical_field_paths.append(field)


@dataclass
class OperationTimeouts:
    """Timeouts of the resource operations; zero means the provider default."""

    read: datetime.timedelta = datetime.timedelta(0)
    create: datetime.timedelta = datetime.timedelta(0)
    update: datetime.timedelta = datetime.timedelta(0)
    delete: datetime.timedelta = datetime.timedelta(0)


def _copy_external_name(external_name: ExternalName) -> ExternalName:
    return dataclasses.replace(
        external_name,
        omitted_fields=list(external_name.omitted_fields),
        identifier_fields=list(external_name.identifier_fields),
    )


@dataclass
class Resource:
    """Configuration of one resource for every step of code generation."""

    name: str = ""
    terraform_resource: Optional[SchemaResource] = None
    short_group: str = ""
    version: str = ""
    kind: str = ""
    use_async: bool = False
    initializer_fns: List[Callable[[Any], Any]] = field(default_factory=list)
    operation_timeouts: OperationTimeouts = field(default_factory=OperationTimeouts)
    external_name: ExternalName = field(default_factory=ExternalName)
    references: Dict[str, Reference] = field(default_factory=dict)
    sensitive: Sensitive = field(default_factory=Sensitive)
    late_initializer: LateInitializer = field(default_factory=LateInitializer)
    meta_resource: Any = None
    path: str = ""


ResourceOption = Callable[[Resource], None]


def _camel_from_snake(snake: str) -> str:
    return "".join(
        _ACRONYMS.get(word.lower(), word[:1].upper() + word[1:])
        for word in snake.split("_")
        if word
    )


def default_resource(
    name: str,
    terraform_schema: Optional[SchemaResource],
    terraform_registry: Any,
    *opts: ResourceOption,
) -> Resource:
    """Build the default configuration of the resource ``name``.

    The group is the second word of the name and the kind the rest in camel
    case; for two-word names the group is the first word instead.
    """
    words = name.split("_")
    if len(words) < 2:
        raise ValueError(f"resource name {name!r} must have at least two parts")
    if len(words) < 3:
        group = words[0]
        kind = _camel_from_snake(words[1])
    else:
        group = words[1]
        kind = _camel_from_snake("_".join(words[2:]))

    resource = Resource(
        name=name,
        terraform_resource=terraform_schema,
        meta_resource=terraform_registry,
        short_group=group,
        kind=kind,
        version=DEFAULT_VERSION,
        external_name=_copy_external_name(NAME_AS_IDENTIFIER),
        references={},
        sensitive=Sensitive(),
        use_async=True,
    )
    for option in opts:
        option(resource)
    return resource


def _set_value(target: MutableMapping, path: str, value: Any) -> None:
    segments = path.split(".")
    if not all(segments):
        raise ValueError(f"invalid field path {path!r}")
    current = target
    for depth, segment in enumerate(segments[:-1]):
        child = current.get(segment)
        if child is None:
            child = {}
            current[segment] = child
        elif not isinstance(child, MutableMapping):
            where = ".".join(segments[: depth + 1])
            raise ValueError(f"{where}: not an object")
        current = child
    current[segments[-1]] = value


def set_external_tags(
    external_tags: Mapping[str, str], paved: MutableMapping, field_name: str
) -> str:
    """Write the external tags under ``spec.forProvider.<field_name>``.

    ``paved`` is changed in place; its JSON encoding is returned.
    """
    tags = {
        key: external_tags.get(key, "")
        for key in (
            EXTERNAL_RESOURCE_TAG_KEY_KIND,
            EXTERNAL_RESOURCE_TAG_KEY_NAME,
            EXTERNAL_RESOURCE_TAG_KEY_PROVIDER,
        )
    }
    _set_value(paved, f"spec.forProvider.{field_name}", tags)
    return json.dumps(paved, sort_keys=True, separators=(",", ":"))


def _group_kind(managed: Mapping) -> str:
    api_version = managed.get("apiVersion") or ""
    group = api_version.rsplit("/", 1)[0] if "/" in api_version else ""
    kind = managed.get("kind") or ""
    return f"{kind}.{group}" if group else kind


def _external_tags(managed: Mapping) -> Dict[str, str]:
    metadata = managed.get("metadata") or {}
    spec = managed.get("spec") or {}
    tags = {
        EXTERNAL_RESOURCE_TAG_KEY_KIND: _group_kind(managed).lower(),
        EXTERNAL_RESOURCE_TAG_KEY_NAME: metadata.get("name") or "",
    }
    provider_ref = spec.get("providerConfigRef") or {}
    if provider_ref.get("name"):
        tags[EXTERNAL_RESOURCE_TAG_KEY_PROVIDER] = provider_ref["name"]
    return tags


class Tagger:
    """Initializer that writes the external tags into a managed resource."""

    def __init__(self, kube: Any, field_name: str) -> None:
        self.kube = kube
        self.field_name = field_name

    def initialize(self, managed: MutableMapping) -> None:
        """Set the tags on ``managed`` and send it to the client's ``update``.

        Resources that are only observed are left untouched.
        """
        spec = managed.get("spec") or {}
        policies = set(spec.get("managementPolicies") or [])
        if policies == {MANAGEMENT_ACTION_OBSERVE}:
            return
        paved = copy.deepcopy(dict(managed))
        encoded = set_external_tags(_external_tags(managed), paved, self.field_name)
        updated = json.loads(encoded)
        managed.clear()
        managed.update(updated)
        self.kube.update(managed)


def tag_initializer(kube: Any) -> Tagger:
    """Return a Tagger writing to the ``tags`` field."""
    return Tagger(kube, "tags")