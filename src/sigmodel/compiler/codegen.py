"""
Validator Compiler.

Generates a standalone Python module that checks untrusted values against
parser models. Every named model in the dependency map becomes one
function, generated once and called by name from every place that
references it, so recursive models produce recursive functions.

Generated functions append ``(path, expected)`` tuples to an ``errors``
list instead of raising: shape mismatches are ordinary outcomes.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from sigmodel.config.models import CompilerConfig
from sigmodel.errors import CompilationError, UnknownModelVariant
from sigmodel.models import (
    ArrayParserModel,
    BooleanLiteralParserModel,
    BooleanParserModel,
    GenericParserModel,
    MemberParserModel,
    NumberLiteralParserModel,
    NumberParserModel,
    ObjectParserModel,
    ParserModel,
    ReferenceParserModel,
    StringLiteralParserModel,
    StringParserModel,
    TypeParameterParserModel,
    UnionParserModel,
    describe_model,
)

logger = logging.getLogger(__name__)

INDENT = "    "

# Module-level names of generated modules
VALIDATORS_TABLE = "VALIDATORS"
ENTRIES_TABLE = "ENTRIES"


@dataclass(frozen=True)
class ValueLocation:
    """Where a value sits in generated code.

    Attributes:
        expr: Python expression evaluating to the value
        path: Python expression evaluating to its path string
    """

    expr: str
    path: str

    def member(self, name: str, variable: str) -> "ValueLocation":
        """Location of a member value bound to ``variable``."""
        return ValueLocation(variable, f"{self.path} + {('.' + name)!r}")

    def element(self, variable: str, index: str) -> "ValueLocation":
        """Location of an array element bound to ``variable``."""
        return ValueLocation(variable, f'{self.path} + "[" + str({index}) + "]"')


def indent(lines: list[str], levels: int = 1) -> list[str]:
    """Indent generated lines."""
    prefix = INDENT * levels
    return [f"{prefix}{line}" if line else line for line in lines]


def _sanitize(key: str) -> str:
    name = re.sub(r"\W+", "_", key).strip("_")
    return name or "anonymous"


class ValidatorCompiler:
    """Compiles parser models into Python validation code.

    Usage:
        compiler = ValidatorCompiler(model_map.deps)
        source = compiler.compile_module(root=model_map.root)
        validators = load_validators(source)
    """

    def __init__(
        self,
        deps: dict[str, ParserModel],
        config: Optional[CompilerConfig] = None,
    ) -> None:
        """Initialize the compiler.

        Args:
            deps: Named models, keyed by identity key
            config: Compiler configuration
        """
        self._deps = dict(deps)
        self._config = config or CompilerConfig()
        self._function_names = self._assign_function_names()
        self._counter = 0

    @property
    def function_names(self) -> dict[str, str]:
        """Generated function name per dependency key."""
        return dict(self._function_names)

    def function_name(self, key: str) -> str:
        """Name of the function validating a dependency.

        Raises:
            CompilationError: If the key is not in the dependency map
        """
        try:
            return self._function_names[key]
        except KeyError:
            raise CompilationError(f"Reference to unknown model: {key}", context={"key": key})

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def compile(
        self,
        model: ParserModel,
        location: ValueLocation,
        errors: str = "errors",
        expected: Optional[str] = None,
    ) -> list[str]:
        """Emit statements validating the value at a location.

        Args:
            model: Model the value must satisfy
            location: Value and path expressions
            errors: Name of the list receiving violations
            expected: Description to report instead of the model's own

        Returns:
            Unindented lines of Python statements

        Raises:
            UnknownModelVariant: If no rule handles the model
        """
        if expected is None and not isinstance(model, (ReferenceParserModel, GenericParserModel)):
            expected = describe_model(model)

        def fail() -> str:
            return f"{errors}.append(({location.path}, {expected!r}))"

        v = location.expr
        if isinstance(model, StringParserModel):
            return [f"if not isinstance({v}, str):", INDENT + fail()]
        if isinstance(model, NumberParserModel):
            return [f"if isinstance({v}, bool) or not isinstance({v}, (int, float)):", INDENT + fail()]
        if isinstance(model, BooleanParserModel):
            return [f"if not isinstance({v}, bool):", INDENT + fail()]
        if isinstance(model, StringLiteralParserModel):
            return [f"if {v} != {model.literal!r}:", INDENT + fail()]
        if isinstance(model, NumberLiteralParserModel):
            return [
                f"if isinstance({v}, bool) or not isinstance({v}, (int, float)) or {v} != {model.literal!r}:",
                INDENT + fail(),
            ]
        if isinstance(model, BooleanLiteralParserModel):
            return [f"if {v} is not {model.literal!r}:", INDENT + fail()]
        if isinstance(model, ArrayParserModel):
            return self._array(model, location, errors, fail())
        if isinstance(model, ObjectParserModel):
            return self._object(model, location, errors, fail())
        if isinstance(model, UnionParserModel):
            return self._union(model, location, errors, fail())
        if isinstance(model, (ReferenceParserModel, GenericParserModel)):
            return [f"{self.function_name(model.type_name)}({v}, {location.path}, {errors})"]
        if isinstance(model, MemberParserModel):
            raise UnknownModelVariant(model.type, "member outside an object")
        if isinstance(model, TypeParameterParserModel):
            raise UnknownModelVariant(model.type, f"uninstantiated type parameter {model.name}")
        raise UnknownModelVariant(getattr(model, "type", model))

    def _array(self, model: ArrayParserModel, location: ValueLocation, errors: str, fail: str) -> list[str]:
        n = self._next()
        item, index = f"_v{n}", f"_i{n}"
        lines = [f"if not isinstance({location.expr}, list):", INDENT + fail, "else:"]
        lines.append(f"{INDENT}for {index}, {item} in enumerate({location.expr}):")
        lines.extend(indent(self.compile(model.element, location.element(item, index), errors), 2))
        return lines

    def _object(self, model: ObjectParserModel, location: ValueLocation, errors: str, fail: str) -> list[str]:
        lines = [f"if not isinstance({location.expr}, dict):", INDENT + fail]
        if not model.members:
            return lines

        lines.append("else:")
        for member in model.members:
            item = f"_v{self._next()}"
            member_location = location.member(member.name, item)
            lines.append(f"{INDENT}if {member.name!r} in {location.expr}:")
            lines.append(f"{INDENT * 2}{item} = {location.expr}[{member.name!r}]")
            lines.extend(indent(self.compile(member.parser, member_location, errors), 2))
            if not member.optional:
                lines.append(f"{INDENT}else:")
                lines.append(
                    f"{INDENT * 2}{errors}.append(({member_location.path}, "
                    f"{describe_model(member.parser)!r}))"
                )
        return lines

    def _union(self, model: UnionParserModel, location: ValueLocation, errors: str, fail: str) -> list[str]:
        alternatives = model.one_of
        if all(isinstance(a, StringLiteralParserModel) for a in alternatives):
            values = tuple(a.literal for a in alternatives)
            return [
                f"if not (isinstance({location.expr}, str) and {location.expr} in {values!r}):",
                INDENT + fail,
            ]

        # Alternatives are tried in order; the first that reports nothing wins
        n = self._next()
        accepted, scratch = f"_ok{n}", f"_errors{n}"
        lines = [f"{scratch} = []"]
        lines.extend(self.compile(alternatives[0], location, scratch))
        lines.append(f"{accepted} = not {scratch}")
        for alternative in alternatives[1:]:
            lines.append(f"if not {accepted}:")
            lines.append(f"{INDENT}{scratch} = []")
            lines.extend(indent(self.compile(alternative, location, scratch)))
            lines.append(f"{INDENT}{accepted} = not {scratch}")
        lines.append(f"if not {accepted}:")
        lines.append(INDENT + fail)
        return lines

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    # -------------------------------------------------------------------------
    # Functions and modules
    # -------------------------------------------------------------------------

    def compile_function(self, key: str) -> list[str]:
        """Emit the function validating one dependency entry."""
        model = self._deps[key]
        body = model.parser if isinstance(model, GenericParserModel) else model
        self._counter = 0

        lines = [f"def {self.function_name(key)}(value, path, errors):"]
        lines.append(f"{INDENT}{self._docstring(key)}")
        lines.extend(indent(self.compile(body, ValueLocation("value", "path"), expected=key)))
        return lines

    def compile_entry(self, name: str, model: ParserModel) -> list[str]:
        """Emit an entry validator returning its list of violations."""
        self._counter = 0
        lines = [f"def {name}(value, path={self._config.root_path!r}):"]
        lines.append(f"{INDENT}errors = []")
        lines.extend(indent(self.compile(model, ValueLocation("value", "path"))))
        lines.append(f"{INDENT}return errors")
        return lines

    def compile_module(
        self,
        root: Optional[ParserModel] = None,
        entries: Optional[dict[str, ParserModel]] = None,
    ) -> str:
        """Emit a standalone validator module.

        Args:
            root: Model validated by the ``entry_name`` entry validator
            entries: Further entry validators by function name

        Returns:
            Python source text
        """
        all_entries: dict[str, ParserModel] = {}
        if root is not None:
            all_entries[self._config.entry_name] = root
        all_entries.update(entries or {})

        for name in all_entries:
            if not name.isidentifier():
                raise CompilationError(f"Entry validator name is not an identifier: {name!r}")

        output_lines: list[str] = []
        for line in self._config.header.splitlines():
            output_lines.append(f"# {line}".rstrip())
        output_lines.append("")

        for key in self._deps:
            output_lines.append("")
            output_lines.extend(self.compile_function(key))
            output_lines.append("")

        for name, model in all_entries.items():
            output_lines.append("")
            output_lines.extend(self.compile_entry(name, model))
            output_lines.append("")

        output_lines.append("")
        output_lines.append(f"{VALIDATORS_TABLE} = {{")
        for key, function_name in self._function_names.items():
            output_lines.append(f"{INDENT}{key!r}: {function_name},")
        output_lines.append("}")
        output_lines.append("")
        output_lines.append(f"{ENTRIES_TABLE} = {{")
        for name in all_entries:
            output_lines.append(f"{INDENT}{name!r}: {name},")
        output_lines.append("}")

        logger.debug(f"Compiled {len(self._deps)} validators and {len(all_entries)} entries")
        return "\n".join(output_lines).rstrip() + "\n"

    @staticmethod
    def _docstring(key: str) -> str:
        text = key.replace("\\", "\\\\").replace('"', '\\"')
        return f'"""Validate {text}."""'

    def _assign_function_names(self) -> dict[str, str]:
        """Pick a unique, deterministic function name per dependency key."""
        taken = {
            self._config.entry_name,
            self._config.parameters_entry,
            self._config.returns_entry,
            VALIDATORS_TABLE,
            ENTRIES_TABLE,
        }
        names: dict[str, str] = {}
        for key in self._deps:
            base = f"{self._config.function_prefix}{_sanitize(key)}"
            name, suffix = base, 2
            while name in taken:
                name = f"{base}_{suffix}"
                suffix += 1
            taken.add(name)
            names[key] = name
        return names
