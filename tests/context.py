from pytest import raises

from assetrun import Context, MockContext, Result
from assetrun.exceptions import UnexpectedExit
from assetrun.notify import ConsoleSink, NullSink

from _util import make_settings


class Context_:
    def exposes_settings_and_frozen_config(self, tmp_path):
        settings = make_settings(tmp_path)
        c = Context(settings)
        assert c.settings is settings
        assert c.config["build_root"] == "build"
        with raises(TypeError):
            c.config["build_root"] = "out"

    def executor_starts_empty(self, tmp_path):
        assert Context(make_settings(tmp_path)).executor is None

    def notifier_defaults_to_configured_sinks(self, tmp_path):
        settings = make_settings(
            tmp_path, {"notify": {"sinks": ["console", "none"]}}
        )
        sinks = Context(settings).notifier.sinks
        assert [type(x) for x in sinks] == [ConsoleSink, NullSink]

    def unknown_sink_name_raises_ValueError(self, tmp_path):
        settings = make_settings(tmp_path, {"notify": {"sinks": ["pager"]}})
        with raises(ValueError):
            Context(settings)

    def run_uses_a_real_runner(self, tmp_path):
        result = Context(make_settings(tmp_path)).run("echo yo", hide=True)
        assert result.stdout == "yo\n"


class MockContext_:
    def single_result_is_returned_once(self, tmp_path):
        c = MockContext(make_settings(tmp_path), run=Result(stdout="out"))
        result = c.run("whatever")
        assert result.stdout == "out"
        assert result.command == "whatever"
        with raises(NotImplementedError):
            c.run("whatever")

    def iterable_results_are_returned_in_order(self, tmp_path):
        results = [Result(stdout="one"), Result(stdout="two")]
        c = MockContext(make_settings(tmp_path), run=results)
        assert c.run("a").stdout == "one"
        assert c.run("b").stdout == "two"

    def dict_maps_commands_to_results(self, tmp_path):
        c = MockContext(
            make_settings(tmp_path),
            run={
                "ls": Result(stdout="files"),
                "pwd": [Result(stdout="/"), Result(stdout="/x")],
            },
        )
        assert c.run("pwd").stdout == "/"
        assert c.run("ls").stdout == "files"
        assert c.run("pwd").stdout == "/x"

    def records_calls(self, tmp_path):
        c = MockContext(make_settings(tmp_path), run=Result(stdout="x"))
        c.run("cmd", hide=True)
        assert c.calls == [("cmd", {"hide": True})]

    def failed_results_raise_unless_warn(self, tmp_path):
        c = MockContext(
            make_settings(tmp_path), run=[Result(exited=1), Result(exited=1)]
        )
        with raises(UnexpectedExit):
            c.run("bad")
        assert c.run("bad", warn=True).failed

    def rejects_non_result_values(self, tmp_path):
        with raises(TypeError):
            MockContext(make_settings(tmp_path), run=5)
