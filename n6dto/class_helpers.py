# Copyright (c) 2026 NASK. All rights reserved.


def attr_repr(*attr_names):
    """
    Make a __repr__() implementation based on given attribute names.

    Any number of positional args:
        Names of instance attributes and/or class attributes.

    Returns:
        A function being the requested __repr__() implementation.

    >>> class A(object):
    ...    __repr__ = attr_repr('x', 'y')
    ...    x = 1
    ...    def __init__(self):
    ...        self.y = 'qwerty'
    >>> a = A()
    >>> a
    <A x=1, y='qwerty'>
    """
    format_repr = ('<{0.__class__.__qualname__} ' +
                   ', '.join('%s={0.%s!r}' % (name, name)
                             for name in attr_names) +
                   '>').format
    format_repr_fallback = object.__repr__

    def __repr__(self):
        # noinspection PyBroadException
        try:
            return format_repr(self)
        except Exception:
            return format_repr_fallback(self)

    return __repr__


class NamedSentinel:

    """
    A hashable marker object with a readable repr, compared by identity.

    Instances are intended to be created once, at module level, and
    used as special values (e.g., dict keys) that cannot be confused
    with any regular value -- in particular, not with `None`.

    >>> MISSING = NamedSentinel('missing')
    >>> MISSING
    <missing>
    >>> MISSING == NamedSentinel('missing')
    False
    >>> {MISSING: 1}[MISSING]
    1
    >>> bool(MISSING)
    True
    """

    __slots__ = ('_name',)

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return f'<{self._name}>'

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self
