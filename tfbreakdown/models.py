"""Data models for a Terraform configuration breakdown."""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _sorted(mapping: Dict[str, str]) -> Dict[str, str]:
    return {key: mapping[key] for key in sorted(mapping)}


@dataclass
class Resource:
    """A `resource` block."""
    type: str
    name: str
    file: str
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'type': self.type, 'name': self.name, 'file': self.file}
        if self.attributes:
            data['attributes'] = _sorted(self.attributes)
        return data


@dataclass
class Module:
    """A `module` call; `source` is copied out of the attributes."""
    name: str
    file: str
    source: str = ''
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'name': self.name, 'source': self.source, 'file': self.file}
        if self.attributes:
            data['attributes'] = _sorted(self.attributes)
        return data


@dataclass
class Provider:
    """A provider configuration, explicit or implied by `required_providers`."""
    name: str
    file: str
    alias: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'name': self.name}
        if self.alias:
            data['alias'] = self.alias
        data['file'] = self.file
        if self.attributes:
            data['attributes'] = _sorted(self.attributes)
        return data


@dataclass
class Variable:
    """A `variable` declaration."""
    name: str
    file: str
    type: Optional[str] = None
    description: Optional[str] = None
    default: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'name': self.name}
        for key in ('type', 'description', 'default'):
            value = getattr(self, key)
            if value:
                data[key] = value
        data['file'] = self.file
        return data


@dataclass
class TfVars:
    """Values read from a .tfvars or .tfvars.json file."""
    file: str
    values: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {'file': self.file, 'values': _sorted(self.values)}


@dataclass
class Breakdown:
    """Everything extracted from one directory scan."""
    resources: List[Resource] = field(default_factory=list)
    modules: List[Module] = field(default_factory=list)
    providers: List[Provider] = field(default_factory=list)
    variables: List[Variable] = field(default_factory=list)
    tfvars: Dict[str, TfVars] = field(default_factory=dict)

    def has_provider(self, name: str, file: str, alias: Optional[str] = None,
                     match_alias: bool = True) -> bool:
        """Check whether `file` already declares provider `name`.

        With `match_alias` false any configuration of `name` counts, aliased or not.
        """
        return any(p.name == name and p.file == file
                   and (not match_alias or (p.alias or None) == (alias or None))
                   for p in self.providers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'resources': [r.to_dict() for r in self.resources],
            'modules': [m.to_dict() for m in self.modules],
            'providers': [p.to_dict() for p in self.providers],
            'variables': [v.to_dict() for v in self.variables],
            'tfvars': {key: self.tfvars[key].to_dict() for key in sorted(self.tfvars)},
        }

    def to_json(self, pretty: bool = True) -> str:
        if pretty:
            return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
        return json.dumps(self.to_dict(), separators=(',', ':'), ensure_ascii=False)
