from io import StringIO

from assetrun import termcolor


class FakeTTY(StringIO):
    def isatty(self):
        return True


def test_tty_output(monkeypatch):
    monkeypatch.setattr(termcolor, "DISABLE_COLORS", False)
    output = termcolor.white("hello", stream=FakeTTY())
    assert output == "\x1b[0;37mhello\x1b[0m"


def test_bold_tty_output(monkeypatch):
    monkeypatch.setattr(termcolor, "DISABLE_COLORS", False)
    output = termcolor.red("oops", bold=True, stream=FakeTTY())
    assert output == "\x1b[1;31moops\x1b[0m"


def test_no_tty_output():
    output = termcolor.white("hello", stream=StringIO())
    assert output == "hello"


def test_disabled_colors_on_tty():
    assert termcolor.green("hello", stream=FakeTTY()) == "hello"
