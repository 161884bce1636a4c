"""
Validator compilation.

Turns parser models into Python validation code and loads it.
"""

from sigmodel.compiler.codegen import ValidatorCompiler, ValueLocation
from sigmodel.compiler.runtime import CompiledValidators, load_validators

__all__ = [
    "ValidatorCompiler",
    "ValueLocation",
    "CompiledValidators",
    "load_validators",
]
