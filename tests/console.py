import re
from io import StringIO

from assetrun.console import log, log_event, report_error, timestamp

STAMP = r"\[\d\d:\d\d:\d\d\]"


class console:
    def timestamp_is_wall_clock_time(self):
        assert re.match(r"^\d\d:\d\d:\d\d$", timestamp())

    def log_event_prints_type_and_text(self):
        stream = StringIO()
        log_event("CHANGED CSS", "File src/scss/a.scss was changed", stream)
        assert re.match(
            STAMP + r" CHANGED CSS: File src/scss/a.scss was changed\n$",
            stream.getvalue(),
        )

    def log_prints_plain_line(self):
        stream = StringIO()
        log("Starting 'build'...", stream)
        pattern = STAMP + r" Starting 'build'\.\.\.\n$"
        assert re.match(pattern, stream.getvalue())

    def report_error_defaults_to_stderr(self, capsys):
        report_error("sass failed for a.scss: nope")
        captured = capsys.readouterr()
        assert captured.err == "sass failed for a.scss: nope\n"
        assert captured.out == ""
