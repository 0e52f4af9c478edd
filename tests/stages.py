from pathlib import Path

from pytest import raises

from assetrun import MockContext, Result
from assetrun.exceptions import TransformError
from assetrun.stages import (
    STAGES,
    Asset,
    AutoprefixStage,
    BabelStage,
    CssMinifyStage,
    JsMinifyStage,
    SassStage,
    build_stages,
)

from _util import make_context, make_settings, write_tree


def _asset(root, relative, text):
    path = write_tree(root, {relative: text}) / relative
    return Asset(
        source=path, relative=Path(relative).name, contents=text.encode()
    )


class Asset_:
    def text_decodes_utf8(self, tmp_path):
        a = Asset(tmp_path / "x.css", "x.css", "é".encode("utf-8"))
        assert a.text == "é"

    def replace_accepts_text(self, tmp_path):
        a = Asset(tmp_path / "x.css", "x.css", b"old")
        b = a.replace(text="new", relative="y.css")
        assert b.contents == b"new"
        assert b.relative == "y.css"
        assert a.contents == b"old"


class Stage_:
    def undecodable_input_becomes_TransformError(self, tmp_path):
        a = Asset(tmp_path / "x.css", "x.css", b"\xff\xfe\xfa")
        c, _ = make_context(tmp_path)
        with raises(TransformError) as info:
            CssMinifyStage()(a, c)
        assert info.value.stage == "cssmin"
        assert info.value.path == str(tmp_path / "x.css")


class SassStage_:
    def _stage(self, root):
        settings = make_settings(root)
        kind = settings.kind("style")
        return SassStage.from_options(
            settings.stage_options("sass"), kind, settings
        )

    def compiles_to_css_with_css_suffix(self, tmp_path):
        c, _ = make_context(tmp_path)
        source = _asset(
            tmp_path, "src/scss/main.scss", "$c: red;\na { color: $c; }\n"
        )
        result = self._stage(tmp_path)(source, c)
        assert result.relative == "main.css"
        assert "color: red" in result.text
        assert "$c" not in result.text

    def keeps_subdirectories(self, tmp_path):
        c, _ = make_context(tmp_path)
        path = tmp_path / "src/scss/pages/home.scss"
        write_tree(tmp_path, {"src/scss/pages/home.scss": "a { b: c; }"})
        source = Asset(path, "pages/home.scss", b"a { b: c; }")
        result = self._stage(tmp_path)(source, c)
        assert result.relative == "pages/home.css"

    def imports_partials_beside_the_file(self, tmp_path):
        c, _ = make_context(tmp_path)
        write_tree(tmp_path, {"src/scss/_vars.scss": "$c: blue;\n"})
        source = _asset(
            tmp_path,
            "src/scss/main.scss",
            '@import "vars";\na { color: $c; }\n',
        )
        assert "color: blue" in self._stage(tmp_path)(source, c).text

    def compile_errors_become_TransformError(self, tmp_path):
        c, _ = make_context(tmp_path)
        source = _asset(
            tmp_path, "src/scss/bad.scss", "a { color: $nope; }\n"
        )
        with raises(TransformError) as info:
            self._stage(tmp_path)(source, c)
        assert info.value.stage == "sass"
        assert info.value.path.endswith("bad.scss")

    def partials_are_not_wanted(self, tmp_path):
        stage = self._stage(tmp_path)
        partial = Asset(tmp_path / "_vars.scss", "_vars.scss", b"")
        main = Asset(tmp_path / "main.scss", "main.scss", b"")
        assert not stage.wants(partial)
        assert stage.wants(main)

    def include_paths_start_at_kind_base(self, tmp_path):
        settings = make_settings(
            tmp_path, {"sass": {"include_paths": ["vendor/scss"]}}
        )
        stage = SassStage.from_options(
            settings.stage_options("sass"), settings.kind("style"), settings
        )
        root = tmp_path.resolve()
        assert stage.options["include_paths"] == [
            str(root / "src/scss"),
            str(root / "vendor/scss"),
        ]


class CommandStages:
    class autoprefix:
        def _stage(self, root, **overrides):
            settings = make_settings(root, overrides)
            return AutoprefixStage.from_options(
                settings.stage_options("autoprefix"),
                settings.kind("style"),
                settings,
            )

        def pipes_text_through_command(self, tmp_path):
            settings = make_settings(tmp_path)
            c = MockContext(settings, run=Result(stdout="prefixed"))
            source = Asset(tmp_path / "a.scss", "a.css", b"a{}")
            result = self._stage(tmp_path)(source, c)
            assert result.text == "prefixed"
            command, kwargs = c.calls[0]
            assert command.startswith("npx --no-install postcss")
            assert kwargs["stdin"] == "a{}"
            assert kwargs["warn"] is True
            assert kwargs["env"] == {"BROWSERSLIST": "> 5%"}

        def browsers_are_configurable(self, tmp_path):
            stage = self._stage(
                tmp_path,
                autoprefix={"browsers": ["last 2 versions", "not dead"]},
            )
            assert stage.env() == {
                "BROWSERSLIST": "last 2 versions, not dead"
            }

        def failure_becomes_TransformError_with_stderr(self, tmp_path):
            settings = make_settings(tmp_path)
            c = MockContext(
                settings, run=Result(stderr="CssSyntaxError\n", exited=1)
            )
            source = Asset(tmp_path / "a.scss", "a.css", b"a{")
            with raises(TransformError) as info:
                self._stage(tmp_path)(source, c)
            assert info.value.stage == "autoprefix"
            assert info.value.message == "CssSyntaxError"

    class babel:
        def command_gets_source_filename(self, tmp_path):
            settings = make_settings(tmp_path)
            c = MockContext(settings, run=Result(stdout="var a = 1;"))
            stage = BabelStage.from_options(
                settings.stage_options("babel"),
                settings.kind("script"),
                settings,
            )
            source = Asset(tmp_path / "src/js/app.js", "app.js", b"let a=1")
            assert stage(source, c).text == "var a = 1;"
            assert c.calls[0][0].endswith("--filename app.js")

        def silent_failure_reports_exit_status(self, tmp_path):
            settings = make_settings(tmp_path)
            c = MockContext(settings, run=Result(exited=127))
            stage = BabelStage(command="babel")
            source = Asset(tmp_path / "app.js", "app.js", b"")
            with raises(TransformError, match="exited with status 127"):
                stage(source, c)


class Minifiers:
    def css(self, tmp_path):
        c, _ = make_context(tmp_path)
        source = Asset(
            tmp_path / "a.css", "a.css", b"a {\n  color: red;\n}\n"
        )
        minified = CssMinifyStage()(source, c).text
        assert minified.startswith("a{color:red")
        assert " " not in minified

    def js(self, tmp_path):
        c, _ = make_context(tmp_path)
        source = Asset(
            tmp_path / "a.js", "a.js", b"var  a = 1 ;\n// note\nvar b = 2;\n"
        )
        minified = JsMinifyStage()(source, c).text
        assert "note" not in minified
        assert "var a=1;" in minified


class build_stages_:
    def instantiates_in_configured_order(self, tmp_path):
        settings = make_settings(tmp_path, offline=False)
        stages = build_stages(settings.kind("style"), settings)
        assert [x.name for x in stages] == ["sass", "autoprefix", "cssmin"]

    def unknown_stage_raises_ValueError(self, tmp_path):
        settings = make_settings(
            tmp_path, {"assets": {"style": {"stages": ["sass", "uglify"]}}}
        )
        with raises(ValueError, match="uglify"):
            build_stages(settings.kind("style"), settings)

    def registry_knows_every_stage(self):
        assert sorted(STAGES) == [
            "autoprefix",
            "babel",
            "cssmin",
            "jsmin",
            "sass",
        ]
