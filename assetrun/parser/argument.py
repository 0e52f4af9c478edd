from typing import Any, Callable, Iterable, Optional, Tuple


class Argument:
    """
    A command-line flag.

    :param name:
        Syntactic sugar for ``names=[<name>]``. Giving both ``name`` and
        ``names`` is invalid.
    :param names:
        List of valid identifiers for this argument. For example, a "help"
        argument may be defined with a name list of ``['help', 'h']``.
    :param kind:
        Type factory & parser hint. E.g. ``float`` will turn the text value
        parsed into a Python float; and ``bool`` will tell the parser not to
        expect an actual value but to treat the argument as a toggle/flag.
    :param default:
        Default value made available to the parser if no value is given on the
        command line.
    :param help:
        Help text, intended for use with ``--help``.
    :param attr_name:
        A Python identifier/attribute friendly name, typically filled in with
        the underscored version when ``name``/``names`` contain dashes.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        names: Iterable[str] = (),
        kind: Callable = str,
        default: Any = None,
        help: Optional[str] = None,
        attr_name: Optional[str] = None,
    ) -> None:
        if name and names:
            msg = "Cannot give both 'name' and 'names' arguments! Pick one."
            raise TypeError(msg)
        if not (name or names):
            raise TypeError("An Argument must have at least one name.")
        self.names: Tuple[str, ...] = tuple(names if names else (name,))
        self.kind = kind
        self.raw_value: Any = None
        self._value: Any = None
        self.default = default
        self.help = help
        self.attr_name = attr_name

    def __repr__(self) -> str:
        nicks = ""
        if self.nicknames:
            nicks = " ({})".format(", ".join(self.nicknames))
        return "<{}: {}{}>".format(self.__class__.__name__, self.name, nicks)

    @property
    def name(self) -> str:
        """
        The canonical attribute-friendly name for this argument.

        Will be ``attr_name`` (if given to constructor) or the first name in
        ``names`` otherwise.
        """
        return self.attr_name or self.names[0]

    @property
    def nicknames(self) -> Tuple[str, ...]:
        return self.names[1:]

    @property
    def takes_value(self) -> bool:
        return self.kind is not bool

    @property
    def value(self) -> Any:
        return self._value if self._value is not None else self.default

    @value.setter
    def value(self, arg: Any) -> None:
        self.set_value(arg, cast=True)

    def set_value(self, value: Any, cast: bool = True) -> None:
        """
        Actual explicit value-setting API call.

        Sets ``self.raw_value`` to ``value`` directly, and ``self.value`` to
        ``self.kind(value)`` unless ``cast=False``.
        """
        self.raw_value = value
        self._value = self.kind(value) if cast else value

    @property
    def got_value(self) -> bool:
        return self._value is not None
