"""Terraform configuration breakdown package."""
from .models import Breakdown, Module, Provider, Resource, TfVars, Variable
from .analyzer import TerraformAnalyzer, build_breakdown
from .errors import BreakdownError, TraversalError

__version__ = '0.1.0'
__all__ = ['Breakdown', 'Module', 'Provider', 'Resource', 'TfVars', 'Variable',
           'TerraformAnalyzer', 'build_breakdown', 'BreakdownError', 'TraversalError']
