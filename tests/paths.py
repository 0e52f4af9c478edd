from pathlib import Path

from pytest import raises

from assetrun.paths import AssetKind, Settings, freeze, split_glob, translate

from _util import make_settings, write_tree


def _style(**kwargs):
    data = dict(
        name="style",
        label="Css",
        source="src/scss/**/*.scss",
        output="build/css",
    )
    data.update(kwargs)
    return AssetKind(**data)


class split_glob_:
    def separates_literal_base_from_pattern(self):
        assert split_glob("src/scss/**/*.scss") == ("src/scss", "**/*.scss")

    def wildcard_in_first_part_means_empty_base(self):
        assert split_glob("*.js") == (".", "*.js")

    def character_classes_count_as_wildcards(self):
        assert split_glob("src/[ab]/x.js") == ("src", "[ab]/x.js")

    def literal_path_uses_its_parent(self):
        assert split_glob("src/js/app.js") == ("src/js", "app.js")


class translate_:
    def double_star_slash_matches_zero_or_more_dirs(self):
        regex = translate("**/*.scss")
        assert regex.match("main.scss")
        assert regex.match("a/b/main.scss")
        assert not regex.match("main.css")

    def single_star_stays_within_a_directory(self):
        regex = translate("*.js")
        assert regex.match("app.js")
        assert not regex.match("lib/app.js")

    def question_mark_matches_one_char(self):
        regex = translate("a?.js")
        assert regex.match("ab.js")
        assert not regex.match("abc.js")
        assert not regex.match("a/.js")

    def character_classes(self):
        assert translate("[ab].js").match("a.js")
        assert not translate("[!ab].js").match("a.js")
        assert translate("[!ab].js").match("c.js")

    def unterminated_bracket_is_literal(self):
        assert translate("[ab.js").match("[ab.js")

    def dots_are_literal(self):
        assert not translate("*.js").match("appxjs")


class AssetKind_:
    class base_and_pattern:
        def come_from_source_glob(self):
            kind = _style()
            assert kind.base == "src/scss"
            assert kind.pattern == "**/*.scss"

    class matches:
        def accepts_files_below_base(self, tmp_path):
            kind = _style()
            assert kind.matches("src/scss/main.scss", tmp_path)
            assert kind.matches(tmp_path / "src/scss/a/b.scss", tmp_path)

        def rejects_other_suffixes_and_locations(self, tmp_path):
            kind = _style()
            assert not kind.matches("src/scss/main.css", tmp_path)
            assert not kind.matches("src/js/main.scss", tmp_path)
            assert not kind.matches("/elsewhere/main.scss", tmp_path)

        def rejects_hidden_files_and_dirs(self, tmp_path):
            kind = _style()
            assert not kind.matches("src/scss/.main.scss", tmp_path)
            assert not kind.matches("src/scss/.cache/main.scss", tmp_path)

    class files:
        def lists_matching_files_sorted(self, tmp_path):
            write_tree(
                tmp_path,
                {
                    "src/scss/b.scss": "",
                    "src/scss/a.scss": "",
                    "src/scss/sub/c.scss": "",
                    "src/scss/notes.txt": "",
                },
            )
            found = _style().files(tmp_path)
            assert [x.relative_to(tmp_path).as_posix() for x in found] == [
                "src/scss/a.scss",
                "src/scss/b.scss",
                "src/scss/sub/c.scss",
            ]

        def skips_hidden_entries(self, tmp_path):
            write_tree(
                tmp_path,
                {
                    "src/scss/.swap.scss": "",
                    "src/scss/.git/x.scss": "",
                    "src/scss/ok.scss": "",
                },
            )
            found = _style().files(tmp_path)
            assert found == [tmp_path / "src/scss/ok.scss"]

        def follows_symlinked_files(self, tmp_path):
            write_tree(tmp_path, {"elsewhere/a.scss": ""})
            (tmp_path / "src/scss").mkdir(parents=True)
            link = tmp_path / "src/scss/a.scss"
            link.symlink_to(tmp_path / "elsewhere/a.scss")
            assert _style().files(tmp_path) == [link]

        def missing_base_yields_nothing(self, tmp_path):
            assert _style().files(tmp_path) == []

    class relative:
        def is_posix_and_relative_to_base(self, tmp_path):
            kind = _style()
            rel = kind.relative(tmp_path / "src/scss/a/b.scss", tmp_path)
            assert rel == "a/b.scss"

        def outside_base_is_none(self, tmp_path):
            assert _style().relative("src/js/app.js", tmp_path) is None

    class from_dict:
        def fills_in_defaults(self):
            kind = AssetKind.from_dict(
                "fonts", {"source": "src/fonts/*.woff", "output": "build/f"}
            )
            assert kind.label == "Fonts"
            assert kind.stages == ()
            assert kind.message == "{path}"
            assert kind.event == "CHANGED FONTS"


class freeze_:
    def dicts_and_lists_become_read_only(self):
        frozen = freeze({"a": [1, {"b": 2}]})
        assert frozen["a"] == (1, frozen["a"][1])
        with raises(TypeError):
            frozen["a"] = 1
        with raises(TypeError):
            frozen["a"][1]["b"] = 3


class Settings_:
    def default_kinds_in_config_order(self, tmp_path):
        settings = make_settings(tmp_path)
        assert [x.name for x in settings.kinds] == ["style", "script", "image"]
        assert [x.label for x in settings.kinds] == ["Css", "Js", "Img"]

    def is_immutable(self, tmp_path):
        settings = make_settings(tmp_path)
        with raises(AttributeError):
            settings.build_root = "elsewhere"

    def sinks_may_be_a_comma_separated_string(self, tmp_path):
        settings = Settings.from_dict(
            {"notify": {"sinks": "console, desktop"}}, root=tmp_path
        )
        assert settings.sinks == ("console", "desktop")

    class kind:
        def by_name_or_label(self, tmp_path):
            settings = make_settings(tmp_path)
            assert settings.kind("script") is settings.kind("Js")

        def unknown_raises_KeyError(self, tmp_path):
            with raises(KeyError):
                make_settings(tmp_path).kind("fonts")

    class resolve:
        def returns_absolute_path_inside_root(self, tmp_path):
            settings = make_settings(tmp_path)
            path = settings.resolve("build/css")
            assert path == tmp_path.resolve() / "build" / "css"

        def refuses_the_root_itself(self, tmp_path):
            settings = make_settings(tmp_path)
            with raises(ValueError):
                settings.resolve(".")

        def refuses_paths_outside_root(self, tmp_path):
            settings = make_settings(tmp_path)
            with raises(ValueError):
                settings.resolve("../elsewhere")
            with raises(ValueError):
                settings.resolve("/tmp")

        def output_and_build_dirs(self, tmp_path):
            settings = make_settings(tmp_path)
            root = Path(tmp_path).resolve()
            assert settings.build_dir() == root / "build"
            style = settings.kind("style")
            assert settings.output_dir(style) == root / "build" / "css"

    class stage_options:
        def returns_config_subtree_or_empty(self, tmp_path):
            settings = make_settings(tmp_path)
            assert settings.stage_options("sass")["output_style"] == "expanded"
            assert dict(settings.stage_options("cssmin")) == {}
