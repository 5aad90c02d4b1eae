# SPDX-License-Identifier: MIT
"""Tests for the dangerous-function detector."""

from __future__ import annotations

import pytest

from diffwarden.detectors.base import Severity, Violation
from diffwarden.detectors.config import DetectorConfig
from diffwarden.detectors.dangerous_functions import (
    DANGEROUS_FUNCTION_RULES,
    DangerousFunctionDetector,
)
from diffwarden.detectors.diff import DiffLine, DiffResult, parse_diff
from diffwarden.detectors.filters import Language


def _make_diff(path: str, added_line: str) -> str:
    return f"diff --git a/{path} b/{path}\n--- a/{path}\n+++ b/{path}\n@@ -1,1 +1,2 @@\n existing\n+{added_line}\n"


def _detect(path: str, line: str) -> list[Violation]:
    return DangerousFunctionDetector().detect(parse_diff(_make_diff(path, line)))


def _rule_ids(violations: list[Violation]) -> list[str]:
    return [v.rule_id for v in violations]


class TestDetectorContract:
    def test_identity(self) -> None:
        detector = DangerousFunctionDetector()
        assert detector.name == "dangerous_functions"
        assert detector.version == "1.0.0"
        assert detector.config_key == "dangerous_functions"

    def test_disabled_by_config(self) -> None:
        config = DetectorConfig(detectors={"dangerous_functions": False})
        assert not DangerousFunctionDetector(config).is_enabled()

    def test_disabled_by_master_switch(self) -> None:
        assert not DangerousFunctionDetector(DetectorConfig(enabled=False)).is_enabled()

    def test_rule_languages(self) -> None:
        by_id = {r.id: r for r in DANGEROUS_FUNCTION_RULES}
        assert by_id["SEC010"].language == Language.JAVASCRIPT
        assert all(by_id[i].language == Language.PHP for i in ("SEC004", "SEC005", "SEC006", "SEC008", "SEC009"))

    def test_sql_is_medium_rest_high(self) -> None:
        for rule in DANGEROUS_FUNCTION_RULES:
            expected = Severity.MEDIUM if rule.id == "SEC008" else Severity.HIGH
            assert rule.severity == expected, rule.id


class TestShellExecution:
    def test_exec_in_php(self) -> None:
        results = _detect("app/Foo.php", "$output = exec($command);")
        assert len(results) == 1
        v = results[0]
        assert v.rule_id == "SEC004"
        assert v.severity == Severity.HIGH
        assert v.file == "app/Foo.php"
        assert v.line == 2
        assert v.snippet == "$output = exec($command);"
        assert not v.contains_secret
        assert v.rule_category == "Shell command execution"

    @pytest.mark.parametrize("func", ["shell_exec", "system", "passthru", "popen", "proc_open"])
    def test_function_name_in_message(self, func: str) -> None:
        results = _detect("app/Jobs/Run.php", f"$r = {func}($cmd);")
        assert _rule_ids(results) == ["SEC004"]
        assert f"{func}()" in results[0].message

    def test_backtick_with_variable(self) -> None:
        results = _detect("app/Deploy.php", "$out = `git log $branch`;")
        assert _rule_ids(results) == ["SEC004"]
        assert "backtick" in results[0].message

    def test_backtick_without_variable_ignored(self) -> None:
        assert _detect("app/Deploy.php", "$out = `uptime`;") == []

    def test_safe_process_wrapper(self) -> None:
        assert _detect("app/Foo.php", "Process::run($command);") == []

    def test_safe_process_wrapper_suppresses_match(self) -> None:
        assert _detect("app/Foo.php", "$result = Process::run(fn () => system($cmd));") == []

    def test_method_call_not_flagged(self) -> None:
        assert _detect("app/Foo.php", "$this->exec($command);") == []
        assert _detect("app/Foo.php", "Runner::system($command);") == []

    def test_declaration_not_flagged(self) -> None:
        assert _detect("app/Foo.php", "public function exec($command)") == []

    def test_substring_of_longer_name_not_flagged(self) -> None:
        assert _detect("app/Foo.php", "$r = my_exec($cmd);") == []


class TestCodeEvaluation:
    def test_eval(self) -> None:
        results = _detect("app/Foo.php", "eval($code);")
        assert _rule_ids(results) == ["SEC005"]
        assert "eval()" in results[0].message

    def test_create_function(self) -> None:
        assert _rule_ids(_detect("app/Foo.php", "$f = create_function('$a', $body);")) == ["SEC005"]

    def test_preg_replace_e_modifier(self) -> None:
        results = _detect("app/Foo.php", "$s = preg_replace('/(.*)/e', 'strtoupper(\"$1\")', $input);")
        assert _rule_ids(results) == ["SEC005"]
        assert "preg_replace_callback" in results[0].message

    def test_preg_replace_without_e_ignored(self) -> None:
        assert _detect("app/Foo.php", "$s = preg_replace('/\\s+/u', ' ', $input);") == []

    def test_assert_with_variable(self) -> None:
        assert _rule_ids(_detect("app/Foo.php", "assert($expression);")) == ["SEC005"]

    def test_assert_with_literal_ignored(self) -> None:
        assert _detect("app/Foo.php", "assert(true);") == []


class TestDeserialization:
    def test_unserialize_of_request_data(self) -> None:
        results = _detect("app/Cart.php", "$cart = unserialize($_COOKIE['cart']);")
        assert _rule_ids(results) == ["SEC006"]

    def test_unserialize_of_decoded_payload(self) -> None:
        assert _rule_ids(_detect("app/Cart.php", "$o = unserialize(base64_decode($payload));")) == ["SEC006"]

    def test_unserialize_of_local_value_ignored(self) -> None:
        assert _detect("app/Cache.php", "$o = unserialize($cached);") == []


class TestSqlInjection:
    def test_interpolated_raw_query(self) -> None:
        results = _detect("app/Repo.php", 'DB::select("SELECT * FROM users WHERE id = $id");')
        assert _rule_ids(results) == ["SEC008"]
        assert results[0].severity == Severity.MEDIUM
        assert "DB::select()" in results[0].message

    def test_concatenated_where_raw(self) -> None:
        results = _detect("app/Repo.php", "$q->whereRaw('price > ' . $price);")
        assert _rule_ids(results) == ["SEC008"]
        assert "whereRaw()" in results[0].message

    def test_mysqli_query(self) -> None:
        line = 'mysqli_query($conn, "SELECT * FROM t WHERE id = $id");'
        assert _rule_ids(_detect("legacy/db.php", line)) == ["SEC008"]

    def test_bindings_suppress(self) -> None:
        line = 'DB::select("SELECT * FROM $table WHERE id = ?", [$id]);'
        assert _detect("app/Repo.php", line) == []

    def test_placeholder_query_ignored(self) -> None:
        assert _detect("app/Repo.php", 'DB::select("SELECT * FROM users WHERE id = ?", [$id]);') == []


class TestFileInclusion:
    def test_include_variable(self) -> None:
        results = _detect("public/index.php", "include $page;")
        assert _rule_ids(results) == ["SEC009"]
        assert "include" in results[0].message

    def test_require_once_call_syntax(self) -> None:
        assert _rule_ids(_detect("public/index.php", "require_once($path);")) == ["SEC009"]

    def test_static_include_ignored(self) -> None:
        assert _detect("public/index.php", "require_once __DIR__ . '/bootstrap.php';") == []


class TestJavaScriptSinks:
    def test_eval(self) -> None:
        results = _detect("resources/js/app.js", "const r = eval(userInput);")
        assert _rule_ids(results) == ["SEC010"]

    def test_function_constructor(self) -> None:
        assert _rule_ids(_detect("resources/js/app.ts", "const fn = new Function('a', body);")) == ["SEC010"]

    def test_inner_html_concatenation(self) -> None:
        results = _detect("resources/js/list.js", "el.innerHTML = '<li>' + name + '</li>';")
        assert _rule_ids(results) == ["SEC010"]
        assert "innerHTML" in results[0].message

    def test_inner_html_append(self) -> None:
        assert _rule_ids(_detect("resources/js/list.js", "el.innerHTML += row;")) == ["SEC010"]

    def test_inner_html_clear_ignored(self) -> None:
        assert _detect("resources/js/list.js", "el.innerHTML = '';") == []

    def test_document_write(self) -> None:
        results = _detect("resources/js/legacy.js", "document.write(html);")
        assert _rule_ids(results) == ["SEC010"]
        assert "document.write()" in results[0].message

    def test_vue_component(self) -> None:
        assert _rule_ids(_detect("resources/js/Widget.vue", "eval(expr);")) == ["SEC010"]

    def test_method_eval_ignored(self) -> None:
        assert _detect("resources/js/app.js", "sandbox.eval(expr);") == []


class TestLanguageGating:
    def test_php_rule_not_applied_to_js(self) -> None:
        assert _detect("resources/js/app.js", "exec($command);") == []

    def test_js_rule_not_applied_to_php(self) -> None:
        assert _rule_ids(_detect("app/Foo.php", "eval($code);")) == ["SEC005"]

    def test_blade_template_is_php(self) -> None:
        assert _rule_ids(_detect("resources/views/run.blade.php", "<?php system($cmd); ?>")) == ["SEC004"]

    def test_unknown_language_ignored(self) -> None:
        assert _detect("scripts/deploy.py", "eval(code)") == []


class TestSuppression:
    def test_skip_path(self) -> None:
        assert _detect("app/Foo.test.php", "eval($code);") == []

    def test_vendor_path(self) -> None:
        assert _detect("vendor/acme/lib/Run.php", "exec($cmd);") == []

    def test_comment_line(self) -> None:
        assert _detect("app/Foo.php", "// exec($command);") == []
        assert _detect("app/Foo.php", "   * eval($code);") == []

    def test_disabled_marker(self) -> None:
        assert _detect("app/Foo.php", "$disabled = ['exec', 'system']; system($cmd);") == []

    def test_trailing_comment(self) -> None:
        assert _detect("app/Foo.php", "$out = exec($cmd); // runs the nightly job") == []

    def test_url_is_not_trailing_comment(self) -> None:
        results = _detect("app/Foo.php", '$u = "https://host"; $out = exec($cmd);')
        assert _rule_ids(results) == ["SEC004"]


class TestMultipleFindings:
    def test_rules_in_id_order(self) -> None:
        results = _detect("app/Backdoor.php", "eval(base64_decode($p)); exec($cmd);")
        assert _rule_ids(results) == ["SEC004", "SEC005"]

    def test_one_violation_per_rule_per_line(self) -> None:
        results = _detect("app/Foo.php", "exec($a); system($b);")
        assert _rule_ids(results) == ["SEC004"]

    def test_multiple_lines(self) -> None:
        diff = DiffResult.from_added_lines(
            [
                DiffLine(file="app/A.php", number=3, content="exec($a);"),
                DiffLine(file="app/A.php", number=4, content="echo 'ok';"),
                DiffLine(file="app/B.php", number=9, content="eval($b);"),
            ]
        )
        results = DangerousFunctionDetector().detect(diff)
        assert [(v.file, v.line, v.rule_id) for v in results] == [
            ("app/A.php", 3, "SEC004"),
            ("app/B.php", 9, "SEC005"),
        ]


class TestMalformedInput:
    def test_malformed_line_skipped(self) -> None:
        diff = DiffResult.from_added_lines(
            [
                DiffLine(file="app/A.php", number=1, content=None),  # type: ignore[arg-type]
                DiffLine(file="app/A.php", number=2, content="exec($cmd);"),
            ]
        )
        results = DangerousFunctionDetector().detect(diff)
        assert [v.line for v in results] == [2]

    def test_long_line_snippet_clipped(self) -> None:
        results = _detect("app/Foo.php", "exec($cmd);" + " " * 10 + "x" * 1000)
        assert len(results[0].snippet) == 300
        assert results[0].snippet.endswith("...")
