from typing import Any, Dict, Iterable, List, Optional, Tuple

from lexicon import Lexicon

from .argument import Argument


def to_flag(name: str) -> str:
    name = name.replace("_", "-")
    if len(name) == 1:
        return "-" + name
    return "--" + name


def sort_candidate(arg: Argument) -> str:
    names = arg.names
    shorts = {x for x in names if len(x.strip("-")) == 1}
    longs = {x for x in names if x not in shorts}
    return str(sorted(shorts if shorts else longs)[0])


def flag_key(arg: Argument) -> List[Any]:
    """
    Obtain useful key list-of-ints for sorting CLI flags.
    """
    ret: List[Any] = []
    x = sort_candidate(arg)
    # Long-style flags win over short-style ones, so the first item of
    # comparison is simply whether the flag is a single character long (with
    # non-length-1 flags coming "first" [lower number])
    ret.append(1 if len(x) == 1 else 0)
    # Next item of comparison is simply the strings themselves,
    # case-insensitive. They will compare alphabetically if compared at this
    # stage.
    ret.append(x.lower())
    # Finally, if the case-insensitive test also matched, compare
    # case-sensitive, but inverse (with lowercase letters coming first)
    ret.append(x.swapcase())
    return ret


# Value placeholders shown in help output, by argument kind.
METAVARS = {str: "STRING", float: "FLOAT", int: "INT"}


class ParserContext:
    """
    Parsing context with knowledge of flags & their format.

    Generally associated with the core program or a task.

    When run through a parser, will also hold runtime values filled in by the
    parser.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        aliases: Iterable[str] = (),
        args: Iterable[Argument] = (),
    ) -> None:
        """
        Create a new ``ParserContext`` named ``name``, with ``aliases``.

        ``name`` is optional, and should be a string if given. It's used to
        tell ParserContext objects apart, and for use in a Parser when
        determining what chunk of input might belong to a given ParserContext.

        ``aliases`` is also optional and should be an iterable containing
        strings. Parsing will honor any aliases when trying to "find" a given
        context in its input.

        May give one or more ``args``, which is a quick alternative to calling
        ``for arg in args: self.add_arg(arg)`` after initialization.
        """
        self.args = Lexicon()
        self.flags = Lexicon()
        self.name = name
        self.aliases = tuple(aliases)
        for arg in args:
            self.add_arg(arg)

    def __repr__(self) -> str:
        aliases = ""
        if self.aliases:
            aliases = " ({})".format(", ".join(self.aliases))
        name = (" {!r}{}".format(self.name, aliases)) if self.name else ""
        args = (": {!r}".format(self.args)) if self.args else ""
        return "<parser/Context{}{}>".format(name, args)

    def add_arg(self, *args: Any, **kwargs: Any) -> None:
        """
        Adds given ``Argument`` (or constructor args for one) to this context.

        The Argument in question is added to two dict attributes:

        * ``args``: "normal" access, i.e. the given names are directly exposed
          as keys.
        * ``flags``: "flaglike" access, i.e. the given names are translated
          into CLI flags, e.g. ``"foo"`` is accessible via ``flags['--foo']``.
        """
        # Normalize
        if len(args) == 1 and isinstance(args[0], Argument):
            arg = args[0]
        else:
            arg = Argument(*args, **kwargs)
        # Uniqueness constraint: no name collisions
        for name in arg.names:
            if name in self.args:
                msg = "Tried to add an argument named {!r} but one already exists!"  # noqa
                raise ValueError(msg.format(name))
        main = arg.name
        self.args[main] = arg
        self.flags[to_flag(main)] = arg
        for name in arg.nicknames:
            self.args.alias(name, to=main)
            self.flags.alias(to_flag(name), to=to_flag(main))

    @property
    def as_kwargs(self) -> Dict[str, Any]:
        """
        This context's arguments' values keyed by their ``.name`` attribute.
        """
        return {arg.name: arg.value for arg in self.args.values()}

    def names_for(self, flag: str) -> List[str]:
        return list(set([flag] + self.flags.aliases_of(flag)))

    def help_for(self, flag: str) -> Tuple[str, str]:
        """
        Return 2-tuple of ``(flag-spec, help-string)`` for given ``flag``.
        """
        if flag not in self.flags:
            err = "{!r} is not a valid flag for this context! Valid flags are: {!r}"  # noqa
            raise ValueError(err.format(flag, self.flags.keys()))
        arg = self.flags[flag]
        value = METAVARS.get(arg.kind)
        full_names = []
        for name in self.names_for(flag):
            if value:
                sep = " " if len(name.strip("-")) == 1 else "="
                name += sep + value
            full_names.append(name)
        namestr = ", ".join(sorted(full_names, key=len))
        helpstr = arg.help or ""
        return namestr, helpstr

    def help_tuples(self) -> List[Tuple[str, str]]:
        """
        Return sorted list of help tuples for all member Arguments.

        Short flags win over long flags; arguments with only long flags come
        first; otherwise alphanumeric.
        """
        return [
            self.help_for(to_flag(x.name))
            for x in sorted(self.flags.values(), key=flag_key)
        ]
