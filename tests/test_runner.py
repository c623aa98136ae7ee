"""
Tests for check-script execution.
"""

import pytest

from ups.constants import MAX_SCRIPT_OUTPUT_BYTES
from ups.exceptions import ScriptError
from ups.runner import ScriptRunner


class TestScriptRunner:
    """Test ScriptRunner.run."""

    def test_returns_stdout(self, version_script):
        script = version_script('check.sh', '1.4.2')
        assert ScriptRunner().run(script) == '1.4.2'

    def test_output_is_stripped(self, make_script):
        script = make_script('check.sh', "printf '\\n  v2.0 \\n\\n'")
        assert ScriptRunner().run(script) == 'v2.0'

    def test_empty_output_is_none_placeholder(self, make_script):
        script = make_script('check.sh', 'true')
        assert ScriptRunner().run(script) == 'NONE'

    def test_whitespace_output_is_none_placeholder(self, make_script):
        script = make_script('check.sh', "printf '   \\n'")
        assert ScriptRunner().run(script) == 'NONE'

    def test_failure_reports_stderr(self, make_script):
        script = make_script('check.sh', 'echo "upstream unreachable" >&2\nexit 3')

        with pytest.raises(ScriptError) as exc_info:
            ScriptRunner().run(script, package='curl')

        error = exc_info.value
        assert error.exit_code == 3
        assert error.stderr == 'upstream unreachable'
        assert error.package == 'curl'
        assert 'Failed:\nupstream unreachable' in str(error)

    def test_failure_without_stderr(self, make_script):
        script = make_script('check.sh', 'exit 1')

        with pytest.raises(ScriptError, match='exit code 1'):
            ScriptRunner().run(script)

    def test_timeout(self, make_script):
        script = make_script('check.sh', 'exec sleep 5')

        with pytest.raises(ScriptError, match='timed out'):
            ScriptRunner(timeout=1).run(script)

    def test_missing_script(self, tmp_path):
        with pytest.raises(ScriptError, match='not found'):
            ScriptRunner().run(tmp_path / 'gone.sh')

    def test_not_executable(self, make_script):
        script = make_script('check.sh', 'echo 1', executable=False)

        with pytest.raises(ScriptError, match='not executable'):
            ScriptRunner().run(script)

    def test_no_shell_interpretation_of_path(self, make_script):
        script = make_script('check; echo injected.sh', 'echo 7')
        assert ScriptRunner().run(script) == '7'

    def test_custom_environment(self, make_script):
        script = make_script('check.sh', 'echo "$UPS_TEST_VALUE"')
        runner = ScriptRunner(env={'UPS_TEST_VALUE': '3.1', 'PATH': '/usr/bin:/bin'})
        assert runner.run(script) == '3.1'

    def test_stdin_is_closed(self, make_script):
        script = make_script('check.sh', 'read line || echo eof')
        assert ScriptRunner(timeout=5).run(script) == 'eof'

    def test_invalid_utf8(self, make_script):
        script = make_script('check.sh', "printf '\\377\\376'")

        with pytest.raises(ScriptError, match='UTF-8'):
            ScriptRunner().run(script)

    def test_output_too_large(self, make_script):
        size = MAX_SCRIPT_OUTPUT_BYTES + 1
        script = make_script('check.sh', f"head -c {size} /dev/zero | tr '\\000' 'a'")

        with pytest.raises(ScriptError, match='too large'):
            ScriptRunner().run(script, package='big')
