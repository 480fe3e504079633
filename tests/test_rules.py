"""Tests for docdoctor.check.rules — brief/param/return coverage."""

import pytest

from docdoctor.check.rules import (
    check,
    extract_parameters,
    has_brief,
    has_param,
    has_return,
)
from docdoctor.core.models import FunctionRecord, ProblemType


FULL_DOC = """/**
 * @brief Adds two integers.
 * @param a first
 * @param b second
 * @return the sum
 */"""


def _make_record(signature="int add(int a, int b)", comment="", **overrides) -> FunctionRecord:
    defaults = dict(
        file_path="/proj/src/add.c",
        function_name="add",
        function_signature=signature,
        comment=comment,
        function_body="{\n    return a + b;\n}",
        line=1,
        column=1,
    )
    defaults.update(overrides)
    return FunctionRecord(**defaults)


def _types(problems):
    return [p.problem_type for p in problems]


# ── End to end ───────────────────────────────────────────────────────────────


class TestCheck:
    def test_undocumented_add(self):
        problems = check(_make_record())
        assert _types(problems) == [
            ProblemType.BRIEF_MISSING,
            ProblemType.PARAM_MISSING,
            ProblemType.PARAM_MISSING,
            ProblemType.RETURN_MISSING,
        ]
        assert '"a"' in problems[1].description
        assert '"b"' in problems[2].description
        for p in problems:
            assert p.function_name == "add"
            assert p.line == 1
            assert p.function_signature == "int add(int a, int b)"
            assert p.file_path == "/proj/src/add.c"

    def test_fully_documented_add(self):
        assert check(_make_record(comment=FULL_DOC)) == []

    def test_only_one_param_documented(self):
        problems = check(_make_record(comment="/** @param a note */"))
        params = [p for p in problems if p.problem_type == ProblemType.PARAM_MISSING]
        assert len(params) == 1
        assert '"b"' in params[0].description
        assert "@param b" in params[0].description

    def test_order_brief_params_return(self):
        problems = check(_make_record(
            signature="int f(int x, int y, int z)",
            comment="",
        ))
        assert _types(problems)[0] == ProblemType.BRIEF_MISSING
        assert _types(problems)[-1] == ProblemType.RETURN_MISSING
        names = [p.description.split('"')[1] for p in problems[1:-1]]
        assert names == ["x", "y", "z"]

    def test_snippet_is_bounded(self):
        body = "{" + "x" * 500 + "}"
        problems = check(_make_record(function_body=body))
        assert all(len(p.snippet) == 200 for p in problems)
        assert problems[0].snippet == body[:200]

    def test_custom_snippet_length(self):
        problems = check(_make_record(), snippet_chars=5)
        assert problems[0].snippet == "{\n   "


class TestVoidReturn:
    @pytest.mark.parametrize("comment", ["", "/** @brief x */", FULL_DOC])
    def test_void_never_return_missing(self, comment):
        problems = check(_make_record(signature="void f(int a, int b)", comment=comment))
        assert ProblemType.RETURN_MISSING not in _types(problems)

    def test_static_void_still_checked(self):
        # only a literal "void " prefix counts
        problems = check(_make_record(signature="static void f(void)", comment="/** @brief x */"))
        assert _types(problems) == [ProblemType.RETURN_MISSING]


class TestEmptyComment:
    @pytest.mark.parametrize("signature", [
        "int add(int a, int b)",
        "void f(void)",
        "static const char* name(void)",
        "double scale(double v, double k)",
    ])
    def test_empty_comment_is_brief_missing(self, signature):
        problems = check(_make_record(signature=signature, comment=""))
        assert problems[0].problem_type == ProblemType.BRIEF_MISSING


# ── Predicates ───────────────────────────────────────────────────────────────


class TestBrief:
    def test_brief_tag(self):
        assert has_brief("/** @brief Does things */")

    def test_free_text(self):
        assert has_brief("/* Does things */")

    def test_empty(self):
        assert not has_brief("")

    @pytest.mark.parametrize("comment", ["/** */", "/**\n *\n *\n */", "/* */", "/***/"])
    def test_only_delimiters(self, comment):
        assert not has_brief(comment)


class TestParam:
    def test_param_with_text(self):
        assert has_param("/** @param count number of items */", "count")

    def test_case_insensitive(self):
        assert has_param("/** @PARAM Count items */", "count")

    def test_param_without_text(self):
        assert not has_param("/** @param count", "count")
        assert not has_param("", "count")

    def test_other_param_does_not_count(self):
        assert not has_param("/** @param counter items */", "count")

    def test_name_is_matched_literally(self):
        assert has_param("/** @param argv[] arguments */", "argv[]")
        assert not has_param("/** @param argvX arguments */", "argv.")


class TestReturn:
    def test_return_with_text(self):
        assert has_return("/** @return the sum */")

    def test_missing(self):
        assert not has_return("/** @brief x */")

    def test_returns_spelling_not_accepted(self):
        assert not has_return("/** @returns the sum */")


class TestExtractParameters:
    @pytest.mark.parametrize("signature,expected", [
        ("int add(int a, int b)", ["a", "b"]),
        ("void f(void)", []),
        ("void f()", []),
        ("void f(   )", []),
        ("char* copy(char *dst, const char *src)", ["dst", "src"]),
        ("void swap(int &x, int& y)", ["x", "y"]),
        ("int main(int argc, char **argv)", ["argc", "argv"]),
        ("int main(int argc, char* argv[])", ["argc", "argv[]"]),
        ("void g(unsigned long long n)", ["n"]),
    ])
    def test_extract(self, signature, expected):
        assert extract_parameters(signature) == expected
