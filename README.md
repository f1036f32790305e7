# upjet

Configuration building blocks for generating managed-resource providers from
Terraform provider schemas. Every Terraform resource is described as a
configurable `Resource`. The package has tools to shape a resource's schema,
its external name handling and its cross-resource references.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `upjet.description`: `filter_description(description, keyword)` drops every
  sentence that mentions `keyword`. If every sentence mentions it, the whole
  description is lower-cased and the keyword is replaced with
  "Upbound official provider".
- `upjet.schema`: a small schema tree made of `Schema`, `SchemaResource` and
  `ValueType`, with helpers that edit it in place:
  - `get_schema(resource, fieldpath)` looks up a dotted path and returns
    `None` when the path is not there.
  - `move_to_status(resource, *paths)` marks fields and everything under them
    as computed only.
  - `mark_as_required(resource, *paths)` clears the optional and computed
    flags.
  - `manipulate_every_field(resource, op)` applies `op` to every field.
- `upjet.externalname`: `ExternalName` holds three callables:
  `set_identifier_argument_fn`, `get_external_name_fn` and `get_id_fn`. It
  also holds `omitted_fields`, `identifier_fields` and
  `disable_name_initializer`.
  - Ready-made strategies: `NAME_AS_IDENTIFIER`, `IDENTIFIER_FROM_PROVIDER`,
    `parameter_as_identifier(param)` and
    `templated_string_as_identifier(name_field_path, tmpl)`.
  - `get_external_name_from_templated(tmpl, val)` turns an ID back into the
    external name.
  - Failures raise `ExternalNameError` or `TemplateError`.
- `upjet.resource`: `Resource` and its parts: `Reference`, `Sensitive`,
  `LateInitializer` and `OperationTimeouts`.
  - `default_resource(name, schema, registry, *options)` takes the group and
    kind from the resource name, for example `aws_db_sql_server` gives group
    `db` and kind `SQLServer`.
  - `Tagger` writes the external tags into a managed resource given as a
    plain mapping and passes it to the client's `update`.
  - `set_external_tags` writes the tags under `spec.forProvider.<field>` and
    returns the JSON.
- `upjet.provider`: `new_provider(resource_schemas, prefix, module_path,
  metadata, **options)` builds a `Provider`.
  - It applies the `include_list` and `skip_list` regular expressions and
    runs the reference injectors.
  - It records the names it skipped in `skipped_resource_names`.
  - Per-resource configurators are added with `add_resource_configurator` or
    `set_resource_configurator` and applied with `configure_resources`.
- `upjet.handler`: `EventHandler` requeues reconcile requests by name. Each
  request goes through a named `RateLimiter`, which combines per-item
  exponential back-off with a token bucket. The handler takes an optional
  failure limit and hands items to any queue object with
  `add_after(item, delay)`.

## Example

```python
from upjet.externalname import templated_string_as_identifier
from upjet.resource import default_resource

resource = default_resource("aws_db_sql_server", None, None)
print(resource.short_group, resource.kind)   # db SQLServer

naming = templated_string_as_identifier(
    "name", "/servers/{{ .parameters.region }}/{{ .external_name }}"
)
print(naming.get_id_fn("mydb", {"region": "eu"}, {}))            # /servers/eu/mydb
print(naming.get_external_name_fn({"id": "/servers/eu/mydb"}))   # mydb
```

Templates support `.external_name`, `.parameters.*` and `.setup.*` lookups. A
value can be piped through `ToLower` or `ToUpper`.

## What this package does not do

The package holds configuration and helpers only. It has no command-line
tool and does not generate code or CRDs. It does not read Terraform's JSON
schema output: `new_provider` expects `SchemaResource` objects. It does not
scrape registry documentation and does not run Terraform. It does not talk to
a Kubernetes API server; the `Tagger` client and the `EventHandler` queue are
objects you supply.