"""Provider-wide configuration: which resources are generated and how."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from upjet.resource import Resource, ResourceOption, default_resource
from upjet.schema import SchemaResource

PACKAGE_NAME_CONFIG = "config"
PACKAGE_NAME_MONOLITH = "monolith"

Configurator = Union[Callable[[Resource], None], Any]


class ReferenceInjectionError(Exception):
    """Raised when a reference injector fails while building a provider."""


@dataclass
class BasePackages:
    """Hand-written API and controller packages to register with the provider."""

    api_version: List[str] = field(default_factory=list)
    controller: List[str] = field(default_factory=list)
    controller_map: Dict[str, str] = field(default_factory=dict)


def default_base_packages() -> BasePackages:
    """Return a fresh copy of the default ProviderConfig packages."""
    return BasePackages(
        api_version=["apis/v1alpha1", "apis/v1beta1"],
        controller=["internal/controller/providerconfig"],
        controller_map={"internal/controller/providerconfig": PACKAGE_NAME_CONFIG},
    )


def _run_configurator(configurator: Configurator, resource: Resource) -> None:
    configure = getattr(configurator, "configure", None)
    if callable(configure):
        configure(resource)
    else:
        configurator(resource)


class ResourceConfiguratorChain(list):
    """An ordered list of configurators applied one after another."""

    def configure(self, resource: Resource) -> None:
        """Run every configurator of the chain on ``resource`` in order."""
        for configurator in self:
            _run_configurator(configurator, resource)


@dataclass
class Provider:
    """Configuration of a provider and of all the resources it generates."""

    terraform_resource_prefix: str = ""
    root_group: str = ""
    short_name: str = ""
    module_path: str = ""
    features_package: str = ""
    base_packages: BasePackages = field(default_factory=default_base_packages)
    default_resource_options: List[ResourceOption] = field(default_factory=list)
    skip_list: List[str] = field(default_factory=list)
    main_template: str = ""
    skipped_resource_names: List[str] = field(default_factory=list)
    include_list: List[str] = field(default_factory=lambda: [".+"])
    resources: Dict[str, Resource] = field(default_factory=dict)
    reference_injectors: List[Any] = field(default_factory=list)
    resource_configurators: Dict[str, ResourceConfiguratorChain] = field(
        default_factory=dict
    )

    def add_resource_configurator(
        self, resource: str, configurator: Configurator
    ) -> None:
        """Append a configurator to the chain of ``resource``."""
        self.resource_configurators.setdefault(
            resource, ResourceConfiguratorChain()
        ).append(configurator)

    def set_resource_configurator(
        self, resource: str, configurator: Configurator
    ) -> None:
        """Replace every configurator of ``resource`` with ``configurator``."""
        self.resource_configurators[resource] = ResourceConfiguratorChain(
            [configurator]
        )

    def configure_resources(self) -> None:
        """Run the configurators of every resource that is generated."""
        for name, chain in self.resource_configurators.items():
            resource = self.resources.get(name)
            if resource is not None:
                chain.configure(resource)


_OPTIONS = frozenset(
    {
        "root_group",
        "short_name",
        "include_list",
        "skip_list",
        "base_packages",
        "default_resource_options",
        "reference_injectors",
        "features_package",
        "main_template",
    }
)


def _matches(name: str, patterns: List[str]) -> bool:
    for pattern in patterns:
        try:
            found = re.search(pattern, name)
        except re.error as exc:
            raise ValueError(f"cannot match regular expression: {exc}") from exc
        if found:
            return True
    return False


def _inject(injector: Any, resources: Dict[str, Resource]) -> None:
    inject = getattr(injector, "inject_references", None)
    if callable(inject):
        inject(resources)
    else:
        injector(resources)


def new_provider(
    resource_schemas: Mapping[str, SchemaResource],
    prefix: str,
    module_path: str,
    metadata: Optional[Mapping[str, Any]],
    **kwargs: Any,
) -> Provider:
    """Build a provider from its resource schemas and registry metadata.

    Keyword options: root_group, short_name, include_list, skip_list,
    base_packages, default_resource_options, reference_injectors,
    features_package and main_template.
    """
    unknown = sorted(set(kwargs) - _OPTIONS)
    if unknown:
        raise TypeError(f"unknown provider options: {', '.join(unknown)}")

    provider = Provider(
        module_path=module_path,
        terraform_resource_prefix=f"{prefix}_",
        root_group=f"{prefix}.upbound.io",
        short_name=prefix,
    )
    for key, value in kwargs.items():
        setattr(provider, key, list(value) if isinstance(value, tuple) else value)

    metadata = metadata or {}
    provider.skipped_resource_names = []
    for name, schema in resource_schemas.items():
        empty = schema is None or not schema.schema
        if empty:
            print(f"Skipping resource {name} because it has no schema")
        if (
            empty
            or _matches(name, provider.skip_list)
            or not _matches(name, provider.include_list)
        ):
            provider.skipped_resource_names.append(name)
            continue
        provider.resources[name] = default_resource(
            name, schema, metadata.get(name), *provider.default_resource_options
        )

    for index, injector in enumerate(provider.reference_injectors):
        try:
            _inject(injector, provider.resources)
        except Exception as exc:
            raise ReferenceInjectionError(
                "cannot inject references using the configured "
                f"ReferenceInjector at index {index}: {exc}"
            ) from exc
    return provider