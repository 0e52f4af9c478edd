import os

import pytest
import yaml
from mock import Mock, patch
from pytest import raises

from assetrun import Config, Context, Executor, Program
from assetrun.assets import namespace
from assetrun.config import copy_dict, merge_dicts

from _util import OFFLINE, expect, run, tree, write_tree

pytestmark = pytest.mark.usefixtures("reset_environ")

SOURCES = {
    "src/scss/main.scss": "a { color: red; }\n",
    "src/js/app.js": "var  a = 1;\n",
}


def _offline_project(root, extra=None):
    """
    Write sources plus an ``assetrun.yaml`` using only in-process stages.
    """
    write_tree(root, SOURCES)
    data = merge_dicts(copy_dict(OFFLINE), extra or {})
    (root / "assetrun.yaml").write_text(yaml.safe_dump(data))


class Program_:
    class init:
        "__init__"

        def may_specify_version(self):
            assert Program(version="1.2.3").version == "1.2.3"

        def default_version_is_unknown(self):
            assert Program().version == "unknown"

        def namespace_defaults_to_asset_tasks(self):
            assert Program().namespace is namespace

        def may_specify_namespace(self):
            factory = Mock()
            assert Program(namespace=factory).namespace is factory

        def may_specify_name_and_binary(self):
            p = Program(name="Pipes", binary="pipes")
            assert p.name == "Pipes"
            assert p.binary == "pipes"

        def classes_default_sensibly(self):
            p = Program()
            assert p.executor_class is Executor
            assert p.config_class is Config
            assert p.context_class is Context

    class normalize_argv:
        @patch("assetrun.program.sys")
        def defaults_to_sys_argv(self, mock_sys):
            argv = ["assetrun", "--version"]
            mock_sys.argv = argv
            p = Program()
            p.print_version = Mock()
            p.run(exit=False)
            p.print_version.assert_called_once_with()

        def splits_a_string(self):
            p = Program()
            p.normalize_argv("foo bar")
            assert p.argv == ["foo", "bar"]

        def uses_a_list_unaltered(self):
            p = Program()
            p.normalize_argv(["foo", "bar baz"])
            assert p.argv == ["foo", "bar baz"]

    class name:
        def defaults_to_capitalized_binary(self):
            p = Program()
            p.normalize_argv(["/usr/local/bin/assetrun"])
            assert p.binary == "assetrun"
            assert p.name == "Assetrun"

    class core_args:
        def version(self):
            expect("--version", out="Assetrun 1.2.3\n")

        def short_version(self):
            expect("-V", out="Assetrun 1.2.3\n")

        @patch("assetrun.program.enable_logging")
        def debug_enables_logging(self, enable_logging, project):
            run("--debug --list")
            enable_logging.assert_called_once_with()

        def echo_turns_on_command_echo(self, project):
            p = Program(binary="assetrun", version="1.2.3")
            run("--echo --list", program=p)
            assert p.settings.options["run"]["echo"] is True

        def notify_picks_sinks(self, project):
            p = Program(binary="assetrun", version="1.2.3")
            run("--notify desktop,none --list", program=p)
            assert p.settings.sinks == ("desktop", "none")

    class list_:
        def shows_every_task_marking_the_default(self, project):
            out, err = expect("--list")
            lines = out.splitlines()
            assert lines[0] == "Available tasks ('*' is the default):"
            # Wrapped help text is indented past the name column.
            names = [x.split()[0] for x in lines[2:] if x[2:3].strip()]
            assert names == [
                "build*",
                "buildCss",
                "buildImg",
                "buildJs",
                "clean",
                "watch",
                "watchCss",
                "watchImg",
                "watchJs",
            ]
            assert "Remove the whole build directory." in out

        def short_flag(self, project):
            out, err = expect("-l")
            assert "buildCss" in out

    class help_:
        def shows_usage_flags_and_tasks(self, project):
            out, err = expect("--help")
            assert out.startswith("Usage: assetrun [--core-opts] [task ...]\n")
            assert "-r STRING, --root=STRING" in out
            assert "-V, --version" in out
            assert "Available tasks ('*' is the default):" in out

    class parse_errors:
        def unknown_task(self, project):
            expect("deploy", err="No idea what 'deploy' is!\n")

        def flag_missing_value(self, project):
            err = "Flag <Argument: root (r)> needed value and was not given one!\n"  # noqa
            expect("--root", err=err)

    class config_errors:
        def missing_runtime_file(self, project):
            expect(
                "--config nope.yaml",
                err="Can't find runtime config file 'nope.yaml'!\n",
            )

        def runtime_file_is_loaded(self, project):
            write_tree(project, {"alt.yaml": "notify:\n  sinks: [pager]\n"})
            out, err = run("--config alt.yaml --list")
            assert err == ""
            out, err = run("--config alt.yaml build")
            assert err.startswith("Configuration error: Unknown notification")

        def bad_project_file(self, project):
            write_tree(project, {"assetrun.yaml": "watch: 5\n"})
            out, err = run("--list")
            assert err.startswith("Configuration error: Can't cleanly merge")

        def unknown_stage(self, project):
            _offline_project(
                project, {"assets": {"script": {"stages": ["uglify"]}}}
            )
            out, err = run("--list")
            assert err.startswith("Configuration error: Asset kind 'script'")

        def uncastable_env_var(self, project, monkeypatch):
            monkeypatch.setenv("ASSETRUN_WATCH_DELAY", "later")
            out, err = run("--list")
            assert err.startswith("Configuration error: Can't adapt")

    class building:
        def default_task_builds_everything(self, project):
            _offline_project(project)
            out, err = expect("")
            assert "Starting 'build'..." in out
            assert "Finished 'build' after" in out
            assert "Starting 'clearAssets'..." in out
            assert "CSS compiled and minimized main.css" in out
            assert sorted(tree(project / "build")) == [
                "css/main.css",
                "js/app.js",
            ]

        def named_tasks_run_in_order(self, project):
            _offline_project(project)
            out, err = expect("buildJs clean")
            assert out.index("Starting 'buildJs'") < out.index(
                "Starting 'clean'"
            )
            assert not (project / "build").exists()

        def root_flag_selects_project(self, tmp_path, project):
            site = tmp_path / "site"
            site.mkdir()
            _offline_project(site)
            expect("--root site buildCss")
            assert (site / "build/css/main.css").exists()
            assert not (project / "build").exists()

        def env_vars_override_project_file(self, project, monkeypatch):
            _offline_project(project)
            monkeypatch.setenv("ASSETRUN_ASSETS_SCRIPT_OUTPUT", "public/js")
            expect("buildJs")
            assert (project / "public/js/app.js").exists()

        def notify_none_silences_file_messages(self, project):
            _offline_project(project)
            out, err = expect("--notify none buildCss")
            assert "compiled" not in out

        def failures_are_summarized_and_exit_1(self, project, capsys):
            _offline_project(project)
            write_tree(project, {"src/scss/bad.scss": "a { b: $nope; }"})
            with raises(SystemExit) as info:
                Program(binary="assetrun").run(["assetrun", "buildCss"])
            assert info.value.code == 1
            err = capsys.readouterr().err
            assert "sass failed for {}".format(
                os.path.join(str(project.resolve()), "src", "scss", "bad.scss")
            ) in err
            assert err.rstrip().endswith("style build failed (1 file):")
            assert (project / "build/css/main.css").exists()

        def failing_kinds_in_parallel_are_each_summarized(self, project):
            _offline_project(project)
            write_tree(
                project,
                {
                    "src/scss/bad.scss": "a { b: $nope; }",
                    "src/js/bad.js": b"\xff\xfe",
                },
            )
            out, err = run("build")
            assert "script build failed (1 file):" in err
            assert "style build failed (1 file):" in err
            assert "Traceback" not in err
