"""Evaluator configuration models."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EvaluatorConfig(BaseModel):
    """Settings for one variable evaluation run.

    Attributes:
        max_sweeps: Ceiling on convergence sweeps when evaluating a standalone
            globals block. A well-formed block needs at most one sweep per
            binding, so the ceiling only trips on pathological input.
        transitive_reduction: Reduce the dependency graph after validation.
            Reachability is preserved, so results are identical either way.
        max_include_depth: Maximum number of files in one include chain.
        default_filename: File name looked up when a directory is given
            instead of a file.

    Example:
        >>> config = EvaluatorConfig(max_sweeps=50)
        >>> config.transitive_reduction
        True

    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_sweeps: int = Field(
        default=1000,
        ge=1,
        description="Maximum convergence sweeps for a standalone globals block",
    )
    transitive_reduction: bool = Field(
        default=True,
        description="Remove redundant edges from the dependency graph after validation",
    )
    max_include_depth: int = Field(
        default=64,
        ge=1,
        description="Maximum number of files in an include chain",
    )
    default_filename: str = Field(
        default="terragrunt.hcl",
        description="Configuration file name used when a directory is given",
    )

    @field_validator("default_filename")
    @classmethod
    def validate_default_filename(cls, v: str) -> str:
        """Reject empty names and names containing a path separator."""
        v = v.strip()
        if not v:
            raise ValueError("default_filename must not be empty")
        if "/" in v or "\\" in v:
            raise ValueError("default_filename must be a bare file name, not a path")
        return v


DEFAULT_EVALUATOR_CONFIG = EvaluatorConfig()
