"""External name handling: mapping between resource names and state IDs."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple, Union

ERR_ID_NOT_FOUND_IN_TFSTATE = "id does not exist in tfstate"

_EXTERNAL_NAME_RE = re.compile(r"\{\{ *\.external_name\b *\}\}")
_PARAMETER_RE = re.compile(r"\{\{\s*\.parameters\.([^\s}]+)\s*\}\}")
_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")
_TRIM_CHARS = " \t\r\n"


class ExternalNameError(Exception):
    """Raised when an external name or ID cannot be worked out."""


class TemplateError(Exception):
    """Raised when an ID template cannot be parsed or executed."""


SetIdentifierArgumentFn = Callable[[MutableMapping, str], None]
GetExternalNameFn = Callable[[Mapping], str]
GetIDFn = Callable[[str, Optional[Mapping], Optional[Mapping]], str]


def _require_name(external_name: Any) -> str:
    if not isinstance(external_name, str):
        raise TypeError(
            f"external name must be a string, not {type(external_name).__name__}"
        )
    return external_name


def nop_set_identifier_argument(base: MutableMapping, external_name: str) -> None:
    """Check the arguments and leave them untouched.

    Used where the provider picks the identifier, so the external name has
    no effect on the arguments.
    """
    if not isinstance(base, MutableMapping):
        raise TypeError(f"arguments must be a mapping, not {type(base).__name__}")
    _require_name(external_name)


def external_name_as_id(
    external_name: str, parameters: Optional[Mapping], setup: Optional[Mapping]
) -> str:
    """Use the external name itself as the state ID."""
    return _require_name(external_name)


def id_as_external_name(tfstate: Mapping) -> str:
    """Use the non-empty ``id`` of the state as the external name."""
    value = tfstate.get("id")
    if isinstance(value, str) and value:
        return value
    raise ExternalNameError("cannot find id in tfstate")


@dataclass
class ExternalName:
    """Everything needed to translate between external names and state IDs."""

    set_identifier_argument_fn: SetIdentifierArgumentFn = nop_set_identifier_argument
    get_external_name_fn: GetExternalNameFn = id_as_external_name
    get_id_fn: GetIDFn = external_name_as_id
    omitted_fields: List[str] = field(default_factory=list)
    disable_name_initializer: bool = False
    identifier_fields: List[str] = field(default_factory=list)


def _set_name(base: MutableMapping, external_name: str) -> None:
    base["name"] = external_name


NAME_AS_IDENTIFIER = ExternalName(
    set_identifier_argument_fn=_set_name,
    get_external_name_fn=id_as_external_name,
    get_id_fn=external_name_as_id,
    omitted_fields=["name", "name_prefix"],
)

IDENTIFIER_FROM_PROVIDER = ExternalName(
    set_identifier_argument_fn=nop_set_identifier_argument,
    get_external_name_fn=id_as_external_name,
    get_id_fn=external_name_as_id,
    disable_name_initializer=True,
)


def parameter_as_identifier(param: str) -> ExternalName:
    """Use the argument ``param`` as the identifier of the resource."""

    def set_param(base: MutableMapping, external_name: str) -> None:
        base[param] = external_name

    return dataclasses.replace(
        NAME_AS_IDENTIFIER,
        set_identifier_argument_fn=set_param,
        omitted_fields=[param, param + "_prefix"],
        identifier_fields=[param],
    )


# --- templates -------------------------------------------------------------

_FUNCS: dict = {"ToLower": str.lower, "ToUpper": str.upper}
_MISSING = object()

FieldChain = Tuple[str, ...]


@dataclass(frozen=True)
class _Command:
    func: Optional[str]
    args: Tuple[FieldChain, ...]

    def __str__(self) -> str:
        parts = [_chain_str(a) for a in self.args]
        if self.func is not None:
            parts.insert(0, self.func)
        return " ".join(parts)


@dataclass(frozen=True)
class _Action:
    commands: Tuple[_Command, ...]

    def __str__(self) -> str:
        return "{{" + " | ".join(str(c) for c in self.commands) + "}}"


def _chain_str(chain: FieldChain) -> str:
    return "".join("." + name for name in chain) if chain else "."


def _parse_chain(token: str) -> FieldChain:
    if token == ".":
        return ()
    names = token[1:].split(".")
    if not all(_IDENTIFIER_RE.match(name) for name in names):
        raise TemplateError(f"bad field path {token!r}")
    return tuple(names)


def _parse_command(text: str, stage: int) -> _Command:
    tokens = text.split()
    if not tokens:
        raise TemplateError("missing value for command")
    first, rest = tokens[0], tokens[1:]
    if first.startswith("."):
        if rest:
            raise TemplateError(f"can't give argument to non-function {first}")
        if stage > 0:
            raise TemplateError(
                f"non executable command in pipeline stage {stage + 1}"
            )
        return _Command(None, (_parse_chain(first),))
    if first not in _FUNCS:
        raise TemplateError(f'function "{first}" not defined')
    for token in rest:
        if not token.startswith("."):
            raise TemplateError(f"unsupported argument {token!r}")
    return _Command(first, tuple(_parse_chain(t) for t in rest))


def _parse_action(body: str) -> _Action:
    return _Action(
        tuple(_parse_command(part, i) for i, part in enumerate(body.split("|")))
    )


class _Template:
    """A small template language: ``{{ .field.path | ToLower }}`` actions in text."""

    def __init__(self, text: str) -> None:
        self.nodes: List[Union[str, _Action]] = []
        pos = 0
        while True:
            start = text.find("{{", pos)
            if start < 0:
                if pos < len(text):
                    self.nodes.append(text[pos:])
                return
            literal = text[pos:start]
            inner_start = start + 2
            if (
                text.startswith("-", inner_start)
                and inner_start + 1 < len(text)
                and text[inner_start + 1] in _TRIM_CHARS
            ):
                literal = literal.rstrip(_TRIM_CHARS)
                inner_start += 1
            end = text.find("}}", inner_start)
            if end < 0:
                raise TemplateError("unclosed action")
            inner_end = end
            trim_right = (
                inner_end - 2 >= inner_start
                and text[inner_end - 1] == "-"
                and text[inner_end - 2] in _TRIM_CHARS
            )
            if trim_right:
                inner_end -= 1
            if literal:
                self.nodes.append(literal)
            body = text[inner_start:inner_end].strip()
            if not (body.startswith("/*") and body.endswith("*/")):
                self.nodes.append(_parse_action(body))
            pos = end + 2
            if trim_right:
                while pos < len(text) and text[pos] in _TRIM_CHARS:
                    pos += 1

    @property
    def actions(self) -> List[_Action]:
        return [n for n in self.nodes if isinstance(n, _Action)]

    def render(self, data: Any) -> str:
        return "".join(
            node if isinstance(node, str) else _format(_evaluate(node, data))
            for node in self.nodes
        )


def _resolve(chain: FieldChain, data: Any) -> Any:
    current = data
    for name in chain:
        if current is _MISSING or current is None:
            raise TemplateError(f"nil pointer evaluating .{name}")
        if not isinstance(current, Mapping):
            raise TemplateError(
                f"can't evaluate field {name} in type {type(current).__name__}"
            )
        current = current.get(name, _MISSING)
    return current


def _evaluate(action: _Action, data: Any) -> Any:
    value: Any = _MISSING
    for stage, command in enumerate(action.commands):
        if command.func is None:
            value = _resolve(command.args[0], data)
            continue
        args = [_resolve(chain, data) for chain in command.args]
        if stage > 0:
            args.append(value)
        if len(args) != 1:
            raise TemplateError(
                f"wrong number of args for {command.func}: want 1 got {len(args)}"
            )
        if not isinstance(args[0], str):
            raise TemplateError(f"invalid argument for {command.func}: expected string")
        value = _FUNCS[command.func](args[0])
    return value


def _format(value: Any) -> str:
    if value is _MISSING:
        return "<no value>"
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _set_field_path(base: MutableMapping, path: str, value: str) -> None:
    segments = path.split(".")
    if not all(segments):
        raise ExternalNameError(f"cannot set {value} to fieldpath {path}")
    current = base
    for segment in segments[:-1]:
        child = current.get(segment)
        if child is None:
            child = {}
            current[segment] = child
        elif not isinstance(child, MutableMapping):
            raise ExternalNameError(f"cannot set {value} to fieldpath {path}")
        current = child
    current[segments[-1]] = value


def templated_string_as_identifier(name_field_path: str, tmpl: str) -> ExternalName:
    """Build an ExternalName whose state ID is rendered from ``tmpl``.

    The template sees ``parameters``, ``setup`` and ``external_name``; the
    functions ``ToLower`` and ``ToUpper`` are available in pipelines.
    """
    try:
        template = _Template(tmpl)
    except TemplateError as exc:
        raise TemplateError(f"cannot parse template: {exc}") from exc

    identifier_fields = [
        match.group(1)
        for action in template.actions
        if (match := _PARAMETER_RE.search(str(action)))
    ]

    def set_identifier(base: MutableMapping, external_name: str) -> None:
        if not name_field_path:
            return
        _set_field_path(base, name_field_path, external_name)

    def get_id(
        external_name: str, parameters: Optional[Mapping], setup: Optional[Mapping]
    ) -> str:
        context = {
            "external_name": external_name,
            "parameters": parameters if parameters is not None else {},
            "setup": setup if setup is not None else {},
        }
        try:
            return template.render(context)
        except TemplateError as exc:
            raise TemplateError(f"cannot execute template: {exc}") from exc

    def get_external_name(tfstate: Mapping) -> str:
        if "id" not in tfstate:
            raise ExternalNameError(ERR_ID_NOT_FOUND_IN_TFSTATE)
        value = tfstate["id"]
        if not isinstance(value, str):
            raise ExternalNameError("id in tfstate is not a string")
        return get_external_name_from_templated(tmpl, value)

    return ExternalName(
        set_identifier_argument_fn=set_identifier,
        get_external_name_fn=get_external_name,
        get_id_fn=get_id,
        omitted_fields=[name_field_path, name_field_path + "_prefix"],
        identifier_fields=identifier_fields,
    )


def get_external_name_from_templated(tmpl: str, val: str) -> str:
    """Recover the external name from an ID produced by ``tmpl``."""
    match = _EXTERNAL_NAME_RE.search(tmpl)
    if match is None:
        return val
    left_index, right_index = match.span()
    left_sep = tmpl[left_index - 1] if left_index > 0 else ""
    right_sep = tmpl[right_index] if right_index < len(tmpl) else ""

    if not left_sep and not right_sep:
        return val
    if not left_sep:
        return val.split(right_sep)[0]
    if right_sep:
        count = tmpl[: left_index + 1].count(left_sep)
        remainder = val.split(left_sep, count)[-1]
        return remainder.split(right_sep)[0]
    return val.split(left_sep)[-1]