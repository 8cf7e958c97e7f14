"""Tests for configuration file parsing."""

from pathlib import Path

import pytest

from confchain.core.exceptions import ParserError
from confchain.syntax import EvaluationContext, parse_expression, parse_file, parse_source
from confchain.syntax.expressions import LiteralExpr, ScopeTraversalExpr, TemplateExpr


class TestStructure:
    """Tests for attributes, blocks and comments."""

    def test_attributes_and_blocks(self) -> None:
        """Top-level attributes and labelled blocks are parsed in order."""
        config = parse_source(
            """
            name = "app"

            locals {
              env = "prod"
            }

            remote_state "s3" backend {
              bucket = "b"
            }
            """,
            "terragrunt.hcl",
        )

        assert list(config.body.attributes) == ["name"]
        assert [block.type for block in config.body.blocks] == ["locals", "remote_state"]
        remote = config.blocks_of_type("remote_state")[0]
        assert remote.labels == ["s3", "backend"]
        assert list(remote.body.attributes) == ["bucket"]
        assert config.filename == "terragrunt.hcl"

    def test_attribute_range(self) -> None:
        """Attributes record file, line and column."""
        config = parse_source('\n  region = "us-east-1"\n', "a.hcl")
        source = config.body.attributes["region"].range
        assert source is not None
        assert (source.filename, source.line, source.column) == ("a.hcl", 2, 3)

    def test_comments_ignored(self) -> None:
        """Line and block comments are skipped."""
        config = parse_source(
            """
            # hash comment
            a = 1 // slash comment
            /* block
               comment */
            b = 2
            """
        )
        assert list(config.body.attributes) == ["a", "b"]

    def test_empty_source(self) -> None:
        """An empty file has an empty body."""
        config = parse_source("")
        assert config.body.attributes == {}
        assert config.body.blocks == []

    def test_attribute_redefined(self) -> None:
        """Defining an attribute twice in one body fails."""
        with pytest.raises(ParserError, match="Attribute redefined"):
            parse_source("a = 1\na = 2\n", "dup.hcl")

    def test_syntax_error_location(self) -> None:
        """Syntax errors carry the file name and line."""
        with pytest.raises(ParserError) as exc_info:
            parse_source("a = 1\nb = = 2\n", "broken.hcl")

        assert exc_info.value.filename == "broken.hcl"
        assert exc_info.value.line == 2
        assert "broken.hcl" in str(exc_info.value)


class TestStrings:
    """Tests for string literals and templates."""

    def test_plain_string_is_literal(self) -> None:
        """A string without interpolation becomes a literal."""
        expr = parse_expression('"us-east-1"')
        assert isinstance(expr, LiteralExpr)
        assert expr.value == "us-east-1"

    def test_escapes(self) -> None:
        """Escape sequences are decoded."""
        expr = parse_expression(r'"a\nb\t\"c\" é"')
        assert expr.evaluate(EvaluationContext()) == 'a\nb\t"c" é'

    def test_invalid_escape(self) -> None:
        """Unknown escape sequences are rejected."""
        with pytest.raises(ParserError, match="Invalid escape"):
            parse_expression(r'"\q"')

    def test_escaped_interpolation(self) -> None:
        """`$${` produces a literal `${`."""
        expr = parse_expression('"$${literal}"')
        assert isinstance(expr, LiteralExpr)
        assert expr.value == "${literal}"

    def test_template_references(self) -> None:
        """Interpolations expose their references."""
        expr = parse_expression('"com.amazonaws.${global.region}.s3"')
        assert isinstance(expr, TemplateExpr)
        assert [str(ref) for ref in expr.variables()] == ["global.region"]

    def test_empty_interpolation(self) -> None:
        """`${}` is a syntax error."""
        with pytest.raises(ParserError, match="Syntax error"):
            parse_expression('"a${ }b"')

    def test_function_call_inside_template(self) -> None:
        """Quoted arguments inside an interpolation are allowed."""
        expr = parse_expression('"${upper("abc")}-x"')
        assert expr.evaluate(EvaluationContext()) == "ABC-x"

    def test_object_literal_inside_interpolation(self) -> None:
        """An interpolation ends at its matching brace, not the first one."""
        config = parse_source('globals {\n  a = "${lookup({k = "v"}, "k")}"\n}\n', "t.hcl")

        expr = config.blocks_of_type("globals")[0].body.attributes["a"].expression
        assert expr.evaluate(EvaluationContext()) == "v"

    def test_nested_template(self) -> None:
        """A quoted template may appear inside an interpolation."""
        config = parse_source('globals {\n  a = "${"${global.r}-x"}"\n}\n', "t.hcl")

        expr = config.blocks_of_type("globals")[0].body.attributes["a"].expression
        assert [str(ref) for ref in expr.variables()] == ["global.r"]
        ctx = EvaluationContext.build(global_={"r": "eu"})
        assert expr.evaluate(ctx) == "eu-x"

    def test_braces_in_literal_text(self) -> None:
        """Braces outside an interpolation are plain text."""
        expr = parse_expression('"{a} ${"}"} // not a comment"')
        assert expr.evaluate(EvaluationContext()) == "{a} } // not a comment"

    def test_interpolated_block_label(self) -> None:
        """Block labels must be plain strings."""
        with pytest.raises(ParserError, match="Invalid block label"):
            parse_source('remote_state "${x}" {\n}\n', "t.hcl")


class TestExpressions:
    """Tests for expression structure."""

    def test_keywords(self) -> None:
        """true, false and null are literals."""
        ctx = EvaluationContext()
        assert parse_expression("true").evaluate(ctx) is True
        assert parse_expression("false").evaluate(ctx) is False
        assert parse_expression("null").evaluate(ctx) is None

    def test_numbers(self) -> None:
        """Integers stay ints, decimals become floats."""
        ctx = EvaluationContext()
        assert parse_expression("42").evaluate(ctx) == 42
        assert parse_expression("1.5").evaluate(ctx) == 1.5
        assert parse_expression("-3").evaluate(ctx) == -3

    def test_precedence(self) -> None:
        """Multiplication binds tighter than addition."""
        ctx = EvaluationContext()
        assert parse_expression("1 + 2 * 3").evaluate(ctx) == 7
        assert parse_expression("(1 + 2) * 3").evaluate(ctx) == 9
        assert parse_expression("1 < 2 && 2 < 3").evaluate(ctx) is True

    def test_static_traversal(self) -> None:
        """Attribute and literal index steps extend one traversal."""
        expr = parse_expression('global.zones[0].name["x"]')
        assert isinstance(expr, ScopeTraversalExpr)
        traversal = expr.traversal
        assert traversal.root == "global"
        assert traversal.steps == ("zones", 0, "name", "x")
        assert traversal.name == "zones"
        assert str(traversal) == "global.zones[0].name.x"

    def test_dynamic_index_keeps_both_references(self) -> None:
        """A computed index references both collection and key."""
        expr = parse_expression("global.zones[local.i]")
        assert [str(ref) for ref in expr.variables()] == ["global.zones", "local.i"]

    def test_collections(self) -> None:
        """Tuples and objects evaluate to lists and dicts."""
        ctx = EvaluationContext()
        assert parse_expression('[1, "two", [3]]').evaluate(ctx) == [1, "two", [3]]
        assert parse_expression('{ a = 1, "b" = 2, c: 3 }').evaluate(ctx) == {"a": 1, "b": 2, "c": 3}
        assert parse_expression("[]").evaluate(ctx) == []
        assert parse_expression("{}").evaluate(ctx) == {}

    def test_conditional(self) -> None:
        """Ternary picks a branch."""
        assert parse_expression('1 == 1 ? "yes" : "no"').evaluate(EvaluationContext()) == "yes"


class TestParseFile:
    """Tests for parse_file()."""

    def test_reads_file(self, tmp_path: Path) -> None:
        """The filename is the path as given."""
        path = tmp_path / "terragrunt.hcl"
        path.write_text('a = "b"\n', encoding="utf-8")

        config = parse_file(path)

        assert config.filename == str(path)
        assert config.source == 'a = "b"\n'

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises ParserError."""
        with pytest.raises(ParserError, match="not found"):
            parse_file(tmp_path / "missing.hcl")
