import datetime

import pytest

from upjet.externalname import NAME_AS_IDENTIFIER, parameter_as_identifier
from upjet.resource import (
    EXTERNAL_RESOURCE_TAG_KEY_KIND,
    EXTERNAL_RESOURCE_TAG_KEY_NAME,
    EXTERNAL_RESOURCE_TAG_KEY_PROVIDER,
    LateInitializer,
    OperationTimeouts,
    Reference,
    Resource,
    Sensitive,
    Tagger,
    default_resource,
    nop_additional_connection_details,
    set_external_tags,
    tag_initializer,
)

KIND = "ACoolService"
NAME = "example-service"
PROVIDER = "ACoolProvider"


class FakeClient:
    def __init__(self, error=None):
        self.error = error
        self.updated = []

    def update(self, obj):
        self.updated.append(obj)
        if self.error is not None:
            raise self.error


def _managed(policies=None):
    spec = {"providerConfigRef": {"name": "default"}}
    if policies is not None:
        spec["managementPolicies"] = policies
    return {
        "apiVersion": "ec2.aws.upbound.io/v1beta1",
        "kind": "Instance",
        "metadata": {"name": NAME},
        "spec": spec,
    }


@pytest.mark.parametrize(
    "name, group, kind",
    [
        ("aws_ec2_instance", "ec2", "Instance"),
        ("aws_instance", "aws", "Instance"),
        ("aws_db_sql_server", "db", "SQLServer"),
        ("aws_db_server_id", "db", "ServerID"),
        ("aws_db_sql_server_id", "db", "SQLServerID"),
    ],
)
def test_default_resource(name, group, kind):
    r = default_resource(name, None, None)
    expected = Resource(
        name=name,
        short_group=group,
        kind=kind,
        version="v1alpha1",
        external_name=NAME_AS_IDENTIFIER,
        references={},
        sensitive=Sensitive(),
        use_async=True,
    )
    assert r == expected


def test_default_resource_applies_options_in_order():
    def first(r):
        r.version = "v1beta1"

    def second(r):
        r.kind = r.kind + r.version

    r = default_resource("aws_ec2_instance", None, "meta", first, second)
    assert r.kind == "Instancev1beta1"
    assert r.meta_resource == "meta"


def test_default_resource_does_not_share_state():
    a = default_resource("aws_ec2_instance", None, None)
    b = default_resource("aws_ec2_vpc", None, None)
    a.sensitive.add_field_path("password", "spec.forProvider.passwordSecretRef")
    a.external_name.omitted_fields.append("extra")
    assert b.sensitive.field_paths == {}
    assert "extra" not in NAME_AS_IDENTIFIER.omitted_fields


def test_default_resource_option_replaces_external_name():
    def use_param(r):
        r.external_name = parameter_as_identifier("cluster_identifier")

    r = default_resource("aws_rds_cluster", None, None, use_param)
    assert r.external_name.identifier_fields == ["cluster_identifier"]


def test_default_resource_rejects_single_word():
    with pytest.raises(ValueError):
        default_resource("aws", None, None)


def test_sensitive_add_field_path():
    s = Sensitive()
    s.add_field_path("a.b", "spec.forProvider.aB")
    s.add_field_path("a.b", "spec.forProvider.aBRef")
    assert s.field_paths == {"a.b": "spec.forProvider.aBRef"}


def test_late_initializer_add_ignored_canonical_field():
    li = LateInitializer(ignored_fields=["block_device_mappings.ebs"])
    li.add_ignored_canonical_field("BlockDeviceMappings.Ebs")
    li.add_ignored_canonical_field("Tags")
    assert li.ignored_canonical_field_paths == ["BlockDeviceMappings.Ebs", "Tags"]


def test_nop_additional_connection_details():
    assert nop_additional_connection_details({"a": "b"}) is None


def test_operation_timeouts_default_zero():
    t = OperationTimeouts(create=datetime.timedelta(minutes=5))
    assert t.read == datetime.timedelta(0)
    assert t.create == datetime.timedelta(minutes=5)


def test_reference_defaults():
    ref = Reference(type="Vpc")
    assert (ref.type, ref.terraform_name, ref.extractor) == ("Vpc", "", "")


def test_set_external_tags():
    paved = {}
    got = set_external_tags(
        {
            EXTERNAL_RESOURCE_TAG_KEY_KIND: KIND,
            EXTERNAL_RESOURCE_TAG_KEY_NAME: NAME,
            EXTERNAL_RESOURCE_TAG_KEY_PROVIDER: PROVIDER,
        },
        paved,
        "tags",
    )
    expected = (
        '{"spec":{"forProvider":{"tags":{'
        f'"{EXTERNAL_RESOURCE_TAG_KEY_KIND}":"{KIND}",'
        f'"{EXTERNAL_RESOURCE_TAG_KEY_NAME}":"{NAME}",'
        f'"{EXTERNAL_RESOURCE_TAG_KEY_PROVIDER}":"{PROVIDER}"'
        "}}}}"
    )
    assert got == expected
    assert paved["spec"]["forProvider"]["tags"][EXTERNAL_RESOURCE_TAG_KEY_NAME] == NAME


def test_set_external_tags_fills_missing_keys():
    paved = {}
    set_external_tags({EXTERNAL_RESOURCE_TAG_KEY_NAME: NAME}, paved, "labels")
    assert paved["spec"]["forProvider"]["labels"] == {
        EXTERNAL_RESOURCE_TAG_KEY_KIND: "",
        EXTERNAL_RESOURCE_TAG_KEY_NAME: NAME,
        EXTERNAL_RESOURCE_TAG_KEY_PROVIDER: "",
    }


def test_set_external_tags_non_object_path():
    with pytest.raises(ValueError):
        set_external_tags({}, {"spec": "oops"}, "tags")


def test_tagger_initialize_successful():
    kube = FakeClient()
    mg = _managed()
    Tagger(kube, "tags").initialize(mg)
    assert kube.updated == [mg]
    assert mg["spec"]["forProvider"]["tags"] == {
        EXTERNAL_RESOURCE_TAG_KEY_KIND: "instance.ec2.aws.upbound.io",
        EXTERNAL_RESOURCE_TAG_KEY_NAME: NAME,
        EXTERNAL_RESOURCE_TAG_KEY_PROVIDER: "default",
    }
    assert mg["metadata"]["name"] == NAME


def test_tagger_initialize_failure():
    boom = RuntimeError("boom")
    kube = FakeClient(error=boom)
    with pytest.raises(RuntimeError, match="boom"):
        Tagger(kube, "tags").initialize(_managed())


def test_tagger_skips_observe_only():
    kube = FakeClient()
    mg = _managed(["Observe"])
    Tagger(kube, "tags").initialize(mg)
    assert kube.updated == []
    assert "forProvider" not in mg["spec"]


def test_tag_initializer_uses_tags_field():
    kube = FakeClient()
    tagger = tag_initializer(kube)
    assert tagger.field_name == "tags"
    assert tagger.kube is kube