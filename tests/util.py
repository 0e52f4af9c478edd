import threading

from assetrun.exceptions import ExceptionWrapper
from assetrun.util import (
    ExceptionHandlingThread,
    helpline,
    isatty,
    sort_names,
)


class util:
    class helpline:
        def is_None_if_no_docstring(self):
            def foo(c):
                pass

            assert helpline(foo) is None

        def is_entire_thing_if_docstring_one_liner(self):
            def foo(c):
                "foo!"
                pass

            assert helpline(foo) == "foo!"

        def is_first_line_in_multiline_docstrings(self):
            def foo(c):
                """
                foo?

                foo!
                """
                pass

            assert helpline(foo) == "foo?"

        def is_None_if_docstring_matches_object_type(self):
            # I.e. we don't want a docstring that is coming from the class
            # instead of the instance.
            class Foo:
                "I am Foo"
                pass

            assert helpline(Foo()) is None

    class sort_names:
        def case_insensitive_then_case_sensitive(self):
            names = ["watchJs", "Build", "build", "buildCss", "clean"]
            assert sort_names(names) == [
                "Build",
                "build",
                "buildCss",
                "clean",
                "watchJs",
            ]

    class isatty:
        def uses_stream_method(self):
            class Stream:
                def isatty(self):
                    return True

            assert isatty(Stream())

        def falls_back_to_False(self):
            assert isatty(object()) is False


class ExceptionHandlingThread_:
    def stores_target_result(self):
        thread = ExceptionHandlingThread(target=lambda: 5)
        thread.start()
        thread.join()
        assert thread.result == 5
        assert thread.exception() is None
        assert not thread.is_dead

    def stores_exceptions_for_later(self):
        def explode(x):
            raise ValueError(x)

        thread = ExceptionHandlingThread(target=explode, args=("boom",))
        thread.start()
        thread.join()
        wrapper = thread.exception()
        assert isinstance(wrapper, ExceptionWrapper)
        assert wrapper.type is ValueError
        assert str(wrapper.value) == "boom"
        assert wrapper.kwargs["args"] == ("boom",)
        assert thread.is_dead

    def is_a_daemon(self):
        thread = ExceptionHandlingThread(target=threading.Event().wait)
        assert thread.daemon

    def repr(self):
        thread = ExceptionHandlingThread(target=None, name="compileCss")
        assert repr(thread) == "<ExceptionHandlingThread: compileCss>"
