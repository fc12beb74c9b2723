"""Variable-value files (.tfvars and .tfvars.json)."""
import os
from typing import Optional

from .errors import (
    DocumentParseError, ExpressionEvaluationError, SchemaMatchError,
    ValueFileAttributeError, ValueFileParseError,
)
from .models import Breakdown, TfVars
from .parser import TerraformParser
from .values import format_value

# Key used when a file name has nothing left once its extensions are removed
FALLBACK_KEY = 'terraform'
TFVARS_SUFFIX = '.tfvars'
TFVARS_JSON_SUFFIX = '.tfvars.json'


def file_extension(name: str) -> str:
    """Text from the last dot on; a dotfile such as `.tfvars` is all extension."""
    index = name.rfind('.')
    return name[index:] if index >= 0 else ''


def is_value_file(path: str) -> bool:
    """True for names ending in `.tfvars` or `.tfvars.json`."""
    name = os.path.basename(path)
    return file_extension(name) == TFVARS_SUFFIX or name.endswith(TFVARS_JSON_SUFFIX)


def value_file_key(path: str) -> str:
    """Derive the breakdown key for a value file: `prod.tfvars.json` -> `prod`."""
    name = os.path.basename(path)
    key = name[:len(name) - len(file_extension(name))]
    if key.endswith(TFVARS_SUFFIX):
        key = key[:-len(TFVARS_SUFFIX)]
    return key or FALLBACK_KEY


def parse_value_file(file_path: str, breakdown: Breakdown, parser: Optional[TerraformParser] = None):
    """Read a value file into `breakdown.tfvars`, replacing any entry with the same key.

    Raises ValueFileParseError or ValueFileAttributeError; nothing is stored
    in that case. Attributes that are not literals are skipped.
    """
    parser = parser or TerraformParser()
    try:
        if str(file_path).endswith('.json'):
            body = parser.parse_json_file(file_path)
        else:
            body = parser.parse_file(file_path)
    except DocumentParseError as e:
        raise ValueFileParseError(f'parse error: {e}') from e

    try:
        attrs = body.just_attributes(allow_blocks=False)
    except SchemaMatchError as e:
        raise ValueFileAttributeError(f'attribute extraction error: {e}') from e

    values = {}
    for name, expr in attrs.items():
        try:
            values[name] = format_value(expr.evaluate())
        except ExpressionEvaluationError:
            continue

    breakdown.tfvars[value_file_key(file_path)] = TfVars(file=str(file_path), values=values)
