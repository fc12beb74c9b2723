"""Turn parsed Terraform documents into breakdown records."""
from typing import Callable, Dict, Optional

from .errors import ExpressionEvaluationError, SchemaMatchError
from .models import Breakdown, Module, Provider, Resource, Variable
from .parser import Block, BlockHeader, DocumentBody, Expression
from .values import format_value, unwrap_expression


def extract_attributes(body: DocumentBody) -> Dict[str, str]:
    """Format every literal attribute of a block body.

    Attributes that reference anything, or that format to an empty string,
    are left out.
    """
    try:
        body_attrs = body.just_attributes()
    except SchemaMatchError:
        return {}
    return format_attributes(body_attrs)


def format_attributes(body_attrs: Dict[str, Expression]) -> Dict[str, str]:
    attrs = {}
    for name in sorted(body_attrs):
        try:
            value = body_attrs[name].evaluate()
        except ExpressionEvaluationError:
            continue
        formatted = format_value(value)
        if formatted != '':
            attrs[name] = formatted
    return attrs


def type_constraint(expr: Expression) -> Optional[str]:
    """Return the text of a variable's type constraint (`string`, `list(number)`, ...)."""
    inner = unwrap_expression(expr.raw)
    if inner is not None:
        return inner or None
    try:
        return format_value(expr.evaluate()) or None
    except ExpressionEvaluationError:
        return None


def _add_resource(block: Block, file_path: str, breakdown: Breakdown):
    breakdown.resources.append(Resource(
        type=block.labels[0],
        name=block.labels[1],
        file=file_path,
        attributes=extract_attributes(block.body),
    ))


def _add_module(block: Block, file_path: str, breakdown: Breakdown):
    attrs = extract_attributes(block.body)
    breakdown.modules.append(Module(
        name=block.labels[0],
        file=file_path,
        source=attrs.get('source', ''),
        attributes=attrs,
    ))


def _add_provider(block: Block, file_path: str, breakdown: Breakdown):
    name = block.labels[0]
    attrs = extract_attributes(block.body)
    alias = attrs.get('alias')
    if breakdown.has_provider(name, file_path, alias):
        return
    breakdown.providers.append(Provider(name=name, file=file_path, alias=alias, attributes=attrs))


def _add_variable(block: Block, file_path: str, breakdown: Breakdown):
    try:
        raw_attrs = block.body.just_attributes()
    except SchemaMatchError:
        raw_attrs = {}
    attrs = format_attributes(raw_attrs)
    variable = Variable(
        name=block.labels[0],
        file=file_path,
        description=attrs.get('description'),
        default=attrs.get('default'),
    )
    if 'type' in raw_attrs:
        variable.type = type_constraint(raw_attrs['type'])
    breakdown.variables.append(variable)


def merge_required_providers(body: DocumentBody, file_path: str, breakdown: Breakdown):
    """Record each `required_providers` entry of a `terraform` block as a provider.

    Only the provider names matter. A name already configured in the same
    file, with or without an alias, is not added again.
    """
    try:
        blocks = body.partial_content([BlockHeader('required_providers')])
    except SchemaMatchError:
        return

    for block in blocks:
        for name in extract_attributes(block.body):
            if not breakdown.has_provider(name, file_path, match_alias=False):
                breakdown.providers.append(Provider(name=name, file=file_path))


def _merge_terraform(block: Block, file_path: str, breakdown: Breakdown):
    merge_required_providers(block.body, file_path, breakdown)


# Recognized top-level blocks; `output` and `data` are matched but not recorded.
BLOCK_TABLE = (
    (BlockHeader('resource', 2), _add_resource),
    (BlockHeader('module', 1), _add_module),
    (BlockHeader('provider', 1), _add_provider),
    (BlockHeader('terraform'), _merge_terraform),
    (BlockHeader('variable', 1), _add_variable),
    (BlockHeader('output'), None),
    (BlockHeader('data', 2), None),
)

SCHEMA = [header for header, _ in BLOCK_TABLE]
_BUILDERS: Dict[str, Optional[Callable[[Block, str, Breakdown], None]]] = {
    header.type: builder for header, builder in BLOCK_TABLE
}


def classify(body: DocumentBody, file_path: str, breakdown: Breakdown):
    """Add the records found in one document to `breakdown`, in source order."""
    try:
        blocks = body.partial_content(SCHEMA)
    except SchemaMatchError:
        return

    for block in blocks:
        builder = _BUILDERS.get(block.type)
        if builder is not None:
            builder(block, file_path, breakdown)
