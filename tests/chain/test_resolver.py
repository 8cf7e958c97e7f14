"""Tests for include chain resolution."""

from collections.abc import Callable
from pathlib import Path

import pytest

from confchain.chain import (
    IncludeConfig,
    decode_include,
    resolve_chain,
    resolve_chain_from_string,
    resolve_include_path,
)
from confchain.core.config import load_config
from confchain.core.exceptions import (
    DuplicateBlockError,
    IncludeCycleError,
    IncludeDepthExceededError,
    IncludedConfigMissingPathError,
    IncludeError,
    ParserError,
    VariableEvaluationError,
)
from confchain.syntax import parse_source

WriteFile = Callable[[str, str], Path]


class TestDecodeInclude:
    """Tests for decode_include()."""

    def test_no_include(self) -> None:
        """Files without an include block are roots."""
        assert decode_include(parse_source("locals {\n a = 1\n}\n")) is None

    def test_path(self) -> None:
        """The path is evaluated and stored as written."""
        include = decode_include(parse_source('include {\n path = "../terragrunt.hcl"\n}\n'))
        assert include is not None
        assert include.path == "../terragrunt.hcl"

    def test_path_expression_with_function(self) -> None:
        """Functions may be used in the path."""
        include = decode_include(parse_source('include {\n path = format("%s/%s", "..", "root.hcl")\n}\n'))
        assert include is not None
        assert include.path == "../root.hcl"

    def test_missing_path(self) -> None:
        """An include block without path fails."""
        with pytest.raises(IncludedConfigMissingPathError):
            decode_include(parse_source("include {\n}\n", "child.hcl"))

    def test_empty_path(self) -> None:
        """An empty path fails the same way."""
        with pytest.raises(IncludedConfigMissingPathError) as exc_info:
            decode_include(parse_source('include {\n path = ""\n}\n', "child.hcl"))
        assert exc_info.value.config_path == "child.hcl"

    def test_non_string_path(self) -> None:
        """The path must be a string."""
        with pytest.raises(IncludeError, match="must be a string"):
            decode_include(parse_source("include {\n path = 3\n}\n"))

    def test_variables_not_available(self) -> None:
        """The path cannot reference locals or globals."""
        with pytest.raises(VariableEvaluationError):
            decode_include(parse_source("include {\n path = local.p\n}\n"))

    def test_two_include_blocks(self) -> None:
        """Only one include block is allowed."""
        config = parse_source('include {\n path = "a"\n}\ninclude {\n path = "b"\n}\n')
        with pytest.raises(DuplicateBlockError) as exc_info:
            decode_include(config)
        assert exc_info.value.block_type == "include"


class TestResolveIncludePath:
    """Tests for resolve_include_path()."""

    def test_relative_to_including_file(self) -> None:
        """Relative paths are joined to the including file's directory."""
        resolved = resolve_include_path(IncludeConfig("../terragrunt.hcl"), Path("/live/app/terragrunt.hcl"))
        assert resolved == Path("/live/terragrunt.hcl")

    def test_absolute_passes_through(self) -> None:
        """Absolute paths are used as-is."""
        resolved = resolve_include_path(IncludeConfig("/etc/root.hcl"), Path("/live/app/terragrunt.hcl"))
        assert resolved == Path("/etc/root.hcl")


class TestResolveChain:
    """Tests for resolve_chain()."""

    def test_single_file(self, write_file: WriteFile) -> None:
        """A file without include is a chain of one."""
        path = write_file("terragrunt.hcl", "locals {\n a = 1\n}\n")

        chain = resolve_chain(path)

        assert len(chain) == 1
        assert chain.child is chain.root
        values = chain.child.include_values()
        assert values["level"] == 0
        assert values["parent"] == ""
        assert values["parents"] == []
        assert values["root"] == str(path)

    def test_three_levels(self, write_file: WriteFile) -> None:
        """Links and include fields describe the chain."""
        root = write_file("terragrunt.hcl", "")
        middle = write_file("env/terragrunt.hcl", 'include {\n path = "../terragrunt.hcl"\n}\n')
        leaf = write_file("env/app/terragrunt.hcl", 'include {\n path = "../terragrunt.hcl"\n}\n')

        chain = resolve_chain(leaf)

        assert [node.filename for node in chain] == [str(leaf), str(middle), str(root)]
        leaf_values = chain.child.include_values()
        assert leaf_values["level"] == 2
        assert leaf_values["parent"] == str(middle)
        assert leaf_values["parents"] == [str(root), str(middle)]
        assert leaf_values["child"] == ""
        assert leaf_values["root"] == str(root)
        assert leaf_values["path"] == "../terragrunt.hcl"
        assert leaf_values["directory"] == str(leaf.parent)

        root_values = chain.root.include_values()
        assert root_values["level"] == 0
        assert root_values["children"] == [str(middle), str(leaf)]
        assert root_values["child"] == str(middle)
        assert root_values["path"] == ""

    def test_remainder(self, write_file: WriteFile) -> None:
        """Remainder excludes include, locals and globals."""
        write_file("terragrunt.hcl", "")
        leaf = write_file(
            "app/terragrunt.hcl",
            'include {\n path = "../terragrunt.hcl"\n}\nterraform {\n source = "x"\n}\nlocals {\n a = 1\n}\n',
        )
        chain = resolve_chain(leaf)
        assert [block.type for block in chain.child.remainder()] == ["terraform"]

    def test_missing_parent(self, write_file: WriteFile) -> None:
        """A missing included file is a parser error."""
        leaf = write_file("app/terragrunt.hcl", 'include {\n path = "../missing.hcl"\n}\n')
        with pytest.raises(ParserError, match="not found"):
            resolve_chain(leaf)

    def test_self_include(self, write_file: WriteFile) -> None:
        """A file including itself is a cycle."""
        path = write_file("terragrunt.hcl", 'include {\n path = "terragrunt.hcl"\n}\n')
        with pytest.raises(IncludeCycleError):
            resolve_chain(path)

    def test_two_file_cycle(self, write_file: WriteFile) -> None:
        """Mutual includes are a cycle naming both files."""
        a = write_file("a/terragrunt.hcl", 'include {\n path = "../b/terragrunt.hcl"\n}\n')
        b = write_file("b/terragrunt.hcl", 'include {\n path = "../a/terragrunt.hcl"\n}\n')

        with pytest.raises(IncludeCycleError) as exc_info:
            resolve_chain(a)

        assert exc_info.value.cycle == [str(a), str(b), str(a)]

    def test_depth_limit(self, write_file: WriteFile) -> None:
        """Chains longer than the maximum depth fail."""
        write_file("terragrunt.hcl", "")
        write_file("a/terragrunt.hcl", 'include {\n path = "../terragrunt.hcl"\n}\n')
        leaf = write_file("a/b/terragrunt.hcl", 'include {\n path = "../terragrunt.hcl"\n}\n')

        with pytest.raises(IncludeDepthExceededError) as exc_info:
            resolve_chain(leaf, max_depth=2)
        assert exc_info.value.max_depth == 2

        assert len(resolve_chain(leaf, max_depth=3)) == 3

    def test_configured_depth(self, write_file: WriteFile) -> None:
        """The configured depth applies by default."""
        write_file("terragrunt.hcl", "")
        leaf = write_file("a/terragrunt.hcl", 'include {\n path = "../terragrunt.hcl"\n}\n')
        load_config({"max_include_depth": 1})
        with pytest.raises(IncludeDepthExceededError):
            resolve_chain(leaf)


class TestResolveChainFromString:
    """Tests for resolve_chain_from_string()."""

    def test_parent_read_from_disk(self, write_file: WriteFile, tmp_path: Path) -> None:
        """Includes are resolved relative to the given file name."""
        root = write_file("terragrunt.hcl", "globals {\n a = 1\n}\n")
        chain = resolve_chain_from_string(
            'include {\n path = "../terragrunt.hcl"\n}\n',
            str(tmp_path / "app" / "terragrunt.hcl"),
        )
        assert chain.root.filename == str(root)
        assert chain.child.config_file.source.startswith("include")
