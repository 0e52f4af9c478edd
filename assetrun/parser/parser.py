import copy
from typing import Any, Iterable, List, Optional

from lexicon import Lexicon

from ..exceptions import ParseError
from ..util import debug
from .context import ParserContext

__all__ = ["Parser", "ParseMachine", "ParseResult"]


def is_flag(value: str) -> bool:
    return value.startswith("-")


def is_long_flag(value: str) -> bool:
    return value.startswith("--")


class ParseResult(List[ParserContext]):
    """
    List-like object with some extra parse-related attributes.

    Specifically, a ``.remainder`` attribute, which is the string found after a
    ``--`` in any parsed argv list; and an ``.unparsed`` attribute, a list of
    tokens that were unable to be parsed.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.remainder = ""
        self.unparsed: List[str] = []


class Parser:
    """
    Create parser conscious of ``contexts`` and optional ``initial`` context.

    ``contexts`` should be an iterable of ``Context`` instances which will be
    searched when new context names are encountered during a parse. These
    Contexts determine what flags may follow them, as well as whether given
    flags take values.

    ``initial`` is optional and will be used to determine validity of "core"
    options/flags at the start of the parse run, if any are encountered.

    ``ignore_unknown`` determines what to do when contexts are found which do
    not map to any members of ``contexts``. By default it is ``False``, meaning
    any unknown contexts result in a parse error exception. If ``True``,
    encountering an unknown context halts parsing and populates the return
    value's ``.unparsed`` attribute with the remaining parse tokens.
    """

    def __init__(
        self,
        contexts: Iterable[ParserContext] = (),
        initial: Optional[ParserContext] = None,
        ignore_unknown: bool = False,
    ) -> None:
        self.initial = initial
        self.contexts = Lexicon()
        self.ignore_unknown = ignore_unknown
        for context in contexts:
            debug("Adding {}".format(context))
            if not context.name:
                raise ValueError("Non-initial contexts must have names.")
            exists = "A context named/aliased {!r} is already in this parser!"
            if context.name in self.contexts:
                raise ValueError(exists.format(context.name))
            self.contexts[context.name] = context
            for alias in context.aliases:
                if alias in self.contexts:
                    raise ValueError(exists.format(alias))
                self.contexts.alias(alias, to=context.name)

    def parse_argv(self, argv: List[str]) -> ParseResult:
        """
        Parse an argv-style token list ``argv``.

        Returns a list (actually a subclass, `.ParseResult`) of
        `.ParserContext` objects matching the order they were found in the
        ``argv`` and containing `.Argument` objects with updated values based
        on any flags given.

        Assumes any program name has already been stripped out. Good::

            Parser(...).parse_argv(['--core-opt', 'task'])

        Bad::

            Parser(...).parse_argv(['assetrun', '--core-opt', ...])
        """
        machine = ParseMachine(
            initial=self.initial,
            contexts=self.contexts,
            ignore_unknown=self.ignore_unknown,
        )
        debug("Starting argv: {!r}".format(argv))
        try:
            ddash = argv.index("--")
        except ValueError:
            ddash = len(argv)  # No remainder == body gets all
        body = argv[:ddash]
        remainder = argv[ddash:][1:]  # [1:] to strip off remainder itself
        if remainder:
            debug(
                "Remainder: argv[{!r}:][1:] => {!r}".format(ddash, remainder)
            )
        for index, token in enumerate(body):
            # Handle non-space-delimited forms, if not currently expecting a
            # flag value and still in valid parsing territory (i.e. not in
            # "unknown" state which implies store-only)
            if (
                not machine.waiting_for_flag_value
                and is_flag(token)
                and not machine.result.unparsed
            ):
                orig = token
                # Equals-sign-delimited flags, eg --foo=bar or -f=bar
                if "=" in token:
                    token, _, value = token.partition("=")
                    msg = "Splitting x=y expr {!r} into tokens {!r} and {!r}"
                    debug(msg.format(orig, token, value))
                    body.insert(index + 1, value)
                # Contiguous boolean short flags, e.g. -de
                elif not is_long_flag(token) and len(token) > 2:
                    rest, token = token[2:], token[:2]
                    err = "Splitting {!r} into token {!r} and rest {!r}"
                    debug(err.format(orig, token, rest))
                    # Handle boolean flag block vs short-flag + value.
                    have_flag = (
                        machine.context is not None
                        and token in machine.context.flags
                        and machine.state != "unknown"
                    )
                    if have_flag and machine.context.flags[token].takes_value:
                        msg = "{!r} is a flag for current context & it takes a value, giving it {!r}"  # noqa
                        debug(msg.format(token, rest))
                        body.insert(index + 1, rest)
                    else:
                        rest_flags = ["-{}".format(x) for x in rest]
                        msg = "Splitting multi-flag glob {!r} into {!r} and {!r}"  # noqa
                        debug(msg.format(orig, token, rest_flags))
                        for item in reversed(rest_flags):
                            body.insert(index + 1, item)
            machine.handle(token)
        machine.finish()
        result = machine.result
        result.remainder = " ".join(remainder)
        return result


class ParseMachine:
    """
    Token-at-a-time parse state: ``context`` (reading flags and task names),
    ``unknown`` (storing tokens verbatim) or ``end``.
    """

    def __init__(
        self,
        initial: Optional[ParserContext],
        contexts: Lexicon,
        ignore_unknown: bool,
    ) -> None:
        self.ignore_unknown = ignore_unknown
        self.state = "context"
        self.context = copy.deepcopy(initial)
        debug("Initialized with context: {!r}".format(self.context))
        self.flag: Any = None
        self.result = ParseResult()
        self.contexts = copy.deepcopy(contexts)
        debug("Available contexts: {!r}".format(self.contexts))

    def change_state(self, to: str) -> None:
        debug("ParseMachine: {!r} => {!r}".format(self.state, to))
        self.state = to
        # Every state change finishes off the current flag & context.
        self.complete_flag()
        self.complete_context()

    @property
    def waiting_for_flag_value(self) -> bool:
        return bool(
            self.flag
            and self.flag.takes_value
            and self.flag.raw_value is None
        )

    def handle(self, token: str) -> None:
        debug("Handling token: {!r}".format(token))
        # Handle unknown state at the top: we don't care about even
        # possibly-valid input if we've encountered unknown input.
        if self.state == "unknown":
            debug("Top-of-handle() see_unknown({!r})".format(token))
            self.store_only(token)
            return
        # Flag
        if self.context and token in self.context.flags:
            debug("Saw flag {!r}".format(token))
            self.switch_to_flag(token)
        # Value for current flag
        elif self.waiting_for_flag_value:
            self.see_value(token)
        # New context
        elif token in self.contexts:
            self.see_context(token)
        # Unknown
        else:
            if not self.ignore_unknown:
                debug("Can't find context named {!r}, erroring".format(token))
                self.error("No idea what {!r} is!".format(token))
            else:
                debug("Bottom-of-handle() see_unknown({!r})".format(token))
                self.see_unknown(token)

    def finish(self) -> None:
        self.change_state("end")

    def see_context(self, name: str) -> None:
        self.change_state("context")
        self.switch_to_context(name)

    def see_unknown(self, token: str) -> None:
        self.change_state("unknown")
        self.store_only(token)

    def store_only(self, token: str) -> None:
        debug("Storing unknown token {!r}".format(token))
        self.result.unparsed.append(token)

    def complete_context(self) -> None:
        debug(
            "Wrapping up context {!r}".format(
                self.context.name if self.context else self.context
            )
        )
        if self.context and self.context not in self.result:
            self.result.append(self.context)

    def switch_to_context(self, name: str) -> None:
        self.context = copy.deepcopy(self.contexts[name])
        self.flag = None
        debug("Moving to context {!r}".format(name))
        debug("Context args: {!r}".format(self.context.args))
        debug("Context flags: {!r}".format(self.context.flags))

    def complete_flag(self) -> None:
        # Barf if we needed a value and didn't get one
        if self.waiting_for_flag_value:
            err = "Flag {!r} needed value and was not given one!"
            self.error(err.format(self.flag))

    def switch_to_flag(self, flag: str) -> None:
        # Barf if the previous flag is still waiting for its value
        self.complete_flag()
        self.flag = self.context.flags[flag]
        debug("Moving to flag {!r}".format(self.flag))
        # Handle boolean flags (which can immediately be updated)
        if not self.flag.takes_value:
            debug("Marking seen flag {!r} as True".format(self.flag))
            self.flag.value = True

    def see_value(self, value: str) -> None:
        debug("Setting flag {!r} to value {!r}".format(self.flag, value))
        try:
            self.flag.value = value
        except ValueError:
            err = "Flag {!r} got a value it can't use: {!r}"
            self.error(err.format(self.flag, value))

    def error(self, msg: str) -> None:
        raise ParseError(msg, self.context)
