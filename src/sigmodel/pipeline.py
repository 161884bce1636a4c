"""
Extraction pass orchestration.

One pass takes one function declaration through extraction, validator
compilation and loading. A pass either produces every artifact or raises;
output files are only written from a completed pass.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from sigmodel.compiler import CompiledValidators, ValidatorCompiler, load_validators
from sigmodel.config.models import OutputConfig, SigmodelConfig
from sigmodel.extraction import generate_function_models
from sigmodel.models import FunctionParserModels, ValidationResult
from sigmodel.oracle.base import TypeResolutionOracle

logger = logging.getLogger(__name__)


@dataclass
class PassArtifacts:
    """Everything one successful pass produced.

    Attributes:
        models: Parameter and return models with their shared deps
        validator_source: Generated validator module
        validators: The loaded validator module
        parameters_entry: Entry validator name for the parameters
        returns_entry: Entry validator name for the return value
    """

    models: FunctionParserModels
    validator_source: str
    validators: CompiledValidators
    parameters_entry: str = "validate_parameters"
    returns_entry: str = "validate_returns"

    @property
    def name(self) -> str:
        """Name of the function the artifacts describe."""
        return self.models.name

    def validate_parameters(self, arguments: dict[str, Any]) -> ValidationResult:
        """Validate call arguments keyed by parameter name."""
        return self.validators.validate(arguments, self.parameters_entry)

    def validate_returns(self, value: Any) -> ValidationResult:
        """Validate a return value."""
        return self.validators.validate(value, self.returns_entry)


class ExtractionPass:
    """Runs extraction passes with one oracle and configuration.

    Each call to ``run`` uses a fresh registry, so passes never share state.

    Usage:
        extraction_pass = ExtractionPass(IRTypeOracle(unit), config)
        artifacts = extraction_pass.run("getUser")
        write_artifacts(artifacts, config.output)
    """

    def __init__(
        self,
        oracle: TypeResolutionOracle,
        config: Optional[SigmodelConfig] = None,
    ) -> None:
        """Initialize the pass runner.

        Args:
            oracle: Oracle answering structural questions
            config: Configuration (defaults when omitted)
        """
        self._oracle = oracle
        self._config = config or SigmodelConfig()

    @property
    def config(self) -> SigmodelConfig:
        """Configuration of the passes."""
        return self._config

    def run(self, declaration: Any) -> PassArtifacts:
        """Run one pass over a function declaration.

        Args:
            declaration: Function declaration understood by the oracle

        Returns:
            Artifacts of the completed pass

        Raises:
            SigmodelError: If any phase fails; nothing is returned then
        """
        compiler_config = self._config.compiler

        models = generate_function_models(declaration, self._oracle, self._config.extraction)
        compiler = ValidatorCompiler(models.deps, compiler_config)
        source = compiler.compile_module(
            entries={
                compiler_config.parameters_entry: models.parameters,
                compiler_config.returns_entry: models.returns,
            }
        )
        validators = load_validators(source, name=f"{models.name}_validators")

        logger.info(f"Pass complete for {models.name}: {len(models.deps)} named models")
        return PassArtifacts(
            models=models,
            validator_source=source,
            validators=validators,
            parameters_entry=compiler_config.parameters_entry,
            returns_entry=compiler_config.returns_entry,
        )


def write_artifacts(artifacts: PassArtifacts, output: Optional[OutputConfig] = None) -> list[Path]:
    """Write the model document and validator module of a pass.

    Args:
        artifacts: Artifacts of a completed pass
        output: Output configuration

    Returns:
        Paths written

    Raises:
        FileNotFoundError: If the output directory is missing and may not
            be created
    """
    output = output or OutputConfig()
    base_dir = Path(output.base_dir)
    if not base_dir.exists():
        if not output.create_dirs:
            raise FileNotFoundError(f"Output directory not found: {base_dir}")
        base_dir.mkdir(parents=True, exist_ok=True)

    model_path = output.get_path(artifacts.name, "model_suffix")
    validators_path = output.get_path(artifacts.name, "validators_suffix")

    contents = {
        model_path: artifacts.models.to_json() + "\n",
        validators_path: artifacts.validator_source,
    }
    tmp_paths = {path: path.with_suffix(path.suffix + ".tmp") for path in contents}

    # Both files are staged before either replaces a previous artifact
    try:
        for path, content in contents.items():
            tmp_paths[path].write_text(content, encoding="utf-8")
        for path, tmp_path in tmp_paths.items():
            os.replace(tmp_path, path)
    except OSError as e:
        for tmp_path in tmp_paths.values():
            tmp_path.unlink(missing_ok=True)
        logger.error(f"Failed to write artifacts for {artifacts.name}: {e}")
        raise

    logger.info(f"Wrote {model_path} and {validators_path}")
    return [model_path, validators_path]
